"""
Constants management.
Centralized configuration for all magic values, backend names, and defaults.
"""

from enum import Enum
from typing import Final


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class BlobBackend(str, Enum):
    """Supported blob storage backends."""
    LOCAL = "local"
    S3 = "s3"
    MEMORY = "memory"


class CatalogBackend(str, Enum):
    """Supported catalog storage backends."""
    DYNAMODB = "dynamodb"
    MEMORY = "memory"


# Default values
class Defaults:
    """Defaults shared by settings, services and adapters."""
    MAX_UPLOAD_BYTES: Final[int] = 200 * 1024 * 1024
    ARTIFACT_PREFIX: Final[str] = "apks"
    PREVIEW_PREFIX: Final[str] = "images"
    ARTIFACT_FALLBACK_FILENAME: Final[str] = "artifact.bin"
    PREVIEW_FALLBACK_FILENAME: Final[str] = "preview"
    KEY_TOKEN_LENGTH: Final[int] = 8
    PRESIGNED_URL_TTL_SECONDS: Final[int] = 3600
    ORPHAN_MIN_AGE_SECONDS: Final[int] = 3600
    LOG_LEVEL: Final[str] = "INFO"
    AWS_REGION: Final[str] = "eu-west-2"
    PREVIEW_CONTENT_TYPES: Final[tuple] = (
        "image/png",
        "image/jpeg",
        "image/webp",
        "image/gif",
    )


# Logging scopes
class LogScope:
    """Standardized logging scope names."""
    CONFIG = "config_loader"
    API = "api"
    VALIDATION = "validation"
    ERROR_HANDLER = "error_handler"
    INGESTION = "ingestion"
    RETIREMENT = "retirement"
    CATALOG = "catalog"
    SLUG = "slug"
    RECONCILIATION = "reconciliation"
    WORKER = "worker"
    ADAPTER = "adapter"


# API endpoints and paths
class APIEndpoints:
    """API route definitions."""
    HEALTH = "/health"
    ADMIN_AUTH = "/api/admin-auth"
    LIST_ARTIFACTS = "/api/apks"
    GET_ARTIFACT = "/api/apk/{slug}"
    UPLOAD_ARTIFACT = "/api/upload-apk"
    DELETE_ARTIFACT = "/api/delete-apk/{key}"
    FILES = "/files/{location:path}"
    SITEMAP = "/sitemap.xml"


# Error codes
class ErrorCode(str, Enum):
    """Standardized error codes for consistency."""
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_NAME = "INVALID_NAME"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    CATALOG_ERROR = "CATALOG_ERROR"
    SLUG_CONFLICT = "SLUG_CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    PARTIAL_RETIREMENT = "PARTIAL_RETIREMENT"
