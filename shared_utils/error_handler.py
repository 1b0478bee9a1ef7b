"""
Structured error handling and response formatting.
Provides consistent error responses with error codes and context.
"""

from typing import Optional, Dict, Any, List
import logging

from shared_utils.constants import ErrorCode, LogScope
from shared_utils.logging_utils import get_scoped_logger

class AppException(Exception):
    """Base exception for application errors."""

    def __init__(
        self,
        error_code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        http_status: int = 500
    ):
        self.error_code = error_code
        self.message = message
        self.context = context or {}
        self.http_status = http_status
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to response dictionary."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "context": self.context
            }
        }


class ValidationError(AppException):
    """Validation/input error. Raised before any side effect."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            error_code=ErrorCode.INVALID_INPUT.value,
            message=message,
            context=context,
            http_status=400
        )


class InvalidNameError(ValidationError):
    """Display name is empty or has no slug-safe characters."""

    def __init__(self, name: str):
        super().__init__(
            message="Name must contain at least one letter or digit",
            context={"name": name},
        )
        self.error_code = ErrorCode.INVALID_NAME.value


class ConfigurationError(AppException):
    """Configuration error."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            error_code=ErrorCode.INVALID_CONFIG.value,
            message=message,
            context=context,
            http_status=500
        )


class ExternalServiceError(AppException):
    """External service unavailable error."""

    def __init__(self, service: str, message: str, context: Optional[Dict[str, Any]] = None):
        full_message = f"{service} unavailable: {message}"
        super().__init__(
            error_code=ErrorCode.EXTERNAL_SERVICE_ERROR.value,
            message=full_message,
            context={**(context or {}), "service": service},
            http_status=503
        )


class StorageError(AppException):
    """Blob store failure during ingestion or retrieval."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            error_code=ErrorCode.STORAGE_ERROR.value,
            message=message,
            context=context,
            http_status=500,
        )


class CatalogError(AppException):
    """Catalog store failure."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        error_code: str = ErrorCode.CATALOG_ERROR.value,
        http_status: int = 500,
    ):
        super().__init__(
            error_code=error_code,
            message=message,
            context=context,
            http_status=http_status,
        )


class SlugConflictError(CatalogError):
    """A live record already uses this slug."""

    def __init__(self, slug: str):
        super().__init__(
            message=f"Slug already in use: {slug}",
            context={"slug": slug},
            error_code=ErrorCode.SLUG_CONFLICT.value,
            http_status=409,
        )


class NotFoundError(AppException):
    """Requested record or blob does not exist."""

    def __init__(self, message: str = "Not found", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            error_code=ErrorCode.NOT_FOUND.value,
            message=message,
            context=context,
            http_status=404,
        )


class PartialRetirementError(AppException):
    """Catalog record deleted but one or more blobs could not be removed.

    The catalog is the source of truth for existence, so callers report
    this as success with a warning.
    """

    def __init__(self, slug: str, failed_locations: List[str]):
        super().__init__(
            error_code=ErrorCode.PARTIAL_RETIREMENT.value,
            message=f"Retired {slug} but {len(failed_locations)} blob(s) could not be deleted",
            context={"slug": slug, "failed_locations": list(failed_locations)},
            http_status=200,
        )
        self.failed_locations = list(failed_locations)


def log_exception(
    exc: Exception,
    scope: str = LogScope.ERROR_HANDLER,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log exception with structured context.

    Args:
        exc: Exception to log
        scope: Log scope identifier
        logger: Optional custom logger (uses structlog if not provided)
    """
    if logger is None:
        logger = get_scoped_logger(scope)

    if isinstance(exc, AppException):
        logger.error(
            "app_exception",
            error_code=exc.error_code,
            message=exc.message,
            http_status=exc.http_status,
            context=exc.context
        )
    else:
        logger.error(
            "unexpected_exception",
            error_type=type(exc).__name__,
            message=str(exc),
            traceback=True
        )


def handle_error(
    exc: Exception,
    scope: str = LogScope.ERROR_HANDLER,
    default_error_code: str = ErrorCode.EXTERNAL_SERVICE_ERROR.value
) -> Dict[str, Any]:
    """Handle exception and return structured error response.

    Args:
        exc: Exception to handle
        scope: Log scope
        default_error_code: Default error code for non-AppException errors

    Returns:
        Structured error response dictionary
    """
    log_exception(exc, scope)

    if isinstance(exc, AppException):
        return exc.to_dict()
    else:
        return {
            "error": {
                "code": default_error_code,
                "message": f"An unexpected error occurred: {str(exc)}",
                "context": {"error_type": type(exc).__name__}
            }
        }
