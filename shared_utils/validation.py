"""
Input validation and sanitization utilities.
Provides checks for upload payloads before anything touches storage.
"""

from typing import Optional, Sequence
import re

from shared_utils.error_handler import ValidationError


class InputValidator:
    """Utility class for input validation."""

    @staticmethod
    def validate_non_empty_string(value: Optional[str], field_name: str) -> str:
        """Validate non-empty string.

        Args:
            value: String to validate
            field_name: Name of field for error messages

        Returns:
            Stripped string

        Raises:
            ValidationError: If validation fails
        """
        if value is None:
            raise ValidationError(f"{field_name} is required", context={"field": field_name})

        if not isinstance(value, str):
            raise ValidationError(f"{field_name} must be a string", context={"field": field_name})

        if not value.strip():
            raise ValidationError(f"{field_name} cannot be empty", context={"field": field_name})

        return value.strip()

    @staticmethod
    def validate_payload(content: Optional[bytes], field_name: str, max_bytes: int) -> bytes:
        """Validate an uploaded payload is present and within the size ceiling.

        Raises:
            ValidationError: If the payload is missing, empty or too large
        """
        if content is None:
            raise ValidationError(f"{field_name} is required", context={"field": field_name})

        if len(content) == 0:
            raise ValidationError(f"{field_name} is empty", context={"field": field_name})

        if len(content) > max_bytes:
            raise ValidationError(
                f"{field_name} exceeds maximum size of {max_bytes} bytes",
                context={"field": field_name, "size_bytes": len(content), "max_bytes": max_bytes},
            )

        return content

    @staticmethod
    def validate_content_type(
        content_type: Optional[str],
        allowed: Sequence[str],
        field_name: str,
    ) -> str:
        """Validate a MIME type against an allow-list.

        An empty allow-list accepts any type. Parameters such as
        ``; charset=...`` are ignored for the comparison.

        Returns:
            Normalized (lowercase, parameter-free) content type
        """
        normalized = (content_type or "application/octet-stream").split(";", 1)[0].strip().lower()
        if allowed and normalized not in {a.lower() for a in allowed}:
            raise ValidationError(
                f"{field_name} content type {normalized} not allowed",
                context={"field": field_name, "content_type": normalized, "allowed": list(allowed)},
            )
        return normalized

    @staticmethod
    def sanitize_filename(filename: Optional[str], fallback: str, max_length: int = 128) -> str:
        """Sanitize filename to prevent path traversal and unsafe storage keys.

        Args:
            filename: Client-supplied filename (may be empty)
            fallback: Name used when nothing usable remains
            max_length: Maximum filename length; longer names keep their tail

        Returns:
            Sanitized filename

        Raises:
            ValidationError: If the name attempts path traversal
        """
        filename = (filename or "").strip()
        # Keep only the last path component
        filename = re.split(r"[\\/]", filename)[-1]
        if filename in ("..", "."):
            raise ValidationError("Invalid filename format", context={"filename": filename})

        filename = re.sub(r'[<>:"|?*\x00-\x1f]', '', filename)
        filename = re.sub(r"\s+", "_", filename).lstrip(".")

        if not filename:
            return fallback

        if len(filename) > max_length:
            filename = filename[-max_length:]

        return filename
