from pydantic_settings import BaseSettings
from pydantic import field_validator, ConfigDict
from functools import lru_cache
from typing import List, Optional
import json
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shared_utils.constants import (
    BlobBackend,
    CatalogBackend,
    Defaults,
    Environment,
    LogScope,
)
from shared_utils.logging_utils import get_scoped_logger

logger = get_scoped_logger(LogScope.CONFIG)


def get_secret_from_aws(
    secret_name: str,
    region: str = Defaults.AWS_REGION,
    field: str = "admin_code",
) -> str:
    """Fetch a single field from a JSON secret in AWS Secrets Manager.

    Args:
        secret_name: Name of the secret in Secrets Manager
        region: AWS region
        field: Key inside the secret's JSON document

    Returns:
        Secret value or empty string if fetch fails
    """
    try:
        client = boto3.client("secretsmanager", region_name=region)
        response = client.get_secret_value(SecretId=secret_name)
        if "SecretString" in response:
            secret = json.loads(response["SecretString"])
            return secret.get(field, "")
        return ""
    except (BotoCoreError, ClientError, ValueError) as e:
        logger.warning("secret_fetch_failed", secret_name=secret_name, error=str(e))
        return ""


class Settings(BaseSettings):
    """Application configuration with environment variable precedence.

    Precedence: 1) Environment Variables > 2) .env file > 3) Class defaults

    Defaults run the service locally: blobs on disk under ``local_blob_root``
    and an in-memory catalog (lost on restart; use DynamoDB when deployed).
    """
    # Application metadata
    app_name: str = "Artifact Catalog"
    app_version: str = "1.0.0"
    app_description: str = "Artifact ingestion and catalog service"
    environment: str = Environment.DEVELOPMENT.value
    log_level: str = Defaults.LOG_LEVEL

    # Backend selection
    blob_backend: str = BlobBackend.LOCAL.value
    catalog_backend: str = CatalogBackend.MEMORY.value

    # AWS
    aws_region: str = Defaults.AWS_REGION
    aws_endpoint_url: str = ""  # LocalStack / MinIO override
    s3_bucket: str = ""
    s3_public_base_url: str = ""  # empty -> presigned GET URLs
    dynamodb_table_name: str = "ArtifactCatalog"

    # Local filesystem blobs
    local_blob_root: str = "data/blobs"
    public_base_url: str = "http://localhost:8000"

    # Ingestion policy
    max_upload_bytes: int = Defaults.MAX_UPLOAD_BYTES
    allowed_artifact_types: List[str] = []  # empty -> accept any type
    allowed_preview_types: List[str] = list(Defaults.PREVIEW_CONTENT_TYPES)
    require_preview: bool = False
    artifact_prefix: str = Defaults.ARTIFACT_PREFIX
    preview_prefix: str = Defaults.PREVIEW_PREFIX

    # HTTP glue
    cors_origins: List[str] = ["http://localhost:3000"]
    admin_code: Optional[str] = None
    admin_secret_name: Optional[str] = None
    site_base_url: str = "http://localhost:3000"
    rate_limit_enabled: bool = True
    upload_rate_limit: str = "20/minute"
    admin_auth_rate_limit: str = "10/minute"

    # Reconciliation
    orphan_min_age_seconds: int = Defaults.ORPHAN_MIN_AGE_SECONDS

    model_config = ConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is recognized."""
        valid_envs = {e.value for e in Environment}
        if v.lower() not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}, got {v}")
        return v.lower()

    @field_validator('blob_backend')
    @classmethod
    def validate_blob_backend(cls, v: str) -> str:
        """Validate blob backend is supported."""
        valid_backends = {b.value for b in BlobBackend}
        if v.lower() not in valid_backends:
            raise ValueError(f"blob_backend must be one of {valid_backends}, got {v}")
        return v.lower()

    @field_validator('catalog_backend')
    @classmethod
    def validate_catalog_backend(cls, v: str) -> str:
        """Validate catalog backend is supported."""
        valid_backends = {b.value for b in CatalogBackend}
        if v.lower() not in valid_backends:
            raise ValueError(f"catalog_backend must be one of {valid_backends}, got {v}")
        return v.lower()

    @field_validator('max_upload_bytes')
    @classmethod
    def validate_max_upload_bytes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_upload_bytes must be positive, got {v}")
        return v

    @field_validator('public_base_url', 'site_base_url', 's3_public_base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Load and cache application settings.

    If ADMIN_SECRET_NAME is set and no ADMIN_CODE was provided directly,
    the admin code is fetched from AWS Secrets Manager.

    Returns:
        Validated Settings instance

    Raises:
        ValueError: If settings are invalid
    """
    settings = Settings()

    if settings.admin_secret_name and not settings.admin_code:
        secret = get_secret_from_aws(settings.admin_secret_name, settings.aws_region)
        if secret:
            settings.admin_code = secret
            logger.debug("fetched_admin_code_from_secrets_manager")

    # Sensitive values are never logged
    logger.info(
        "configuration_loaded",
        environment=settings.environment,
        blob_backend=settings.blob_backend,
        catalog_backend=settings.catalog_backend,
        max_upload_bytes=settings.max_upload_bytes,
        admin_gate_configured=bool(settings.admin_code),
    )

    return settings
