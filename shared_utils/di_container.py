"""
Dependency injection container for managing application dependencies.
Centralizes adapter selection (from settings) and service lifecycle.
"""

from typing import Optional
import logging

from shared_utils.config_loader import get_settings
from shared_utils.constants import BlobBackend, CatalogBackend, LogScope
from shared_utils.error_handler import ConfigurationError


logger = logging.getLogger(__name__)


class DIContainer:
    """Singleton dependency injection container."""

    _instance: Optional['DIContainer'] = None

    _blob_store: Optional[object] = None
    _catalog_store: Optional[object] = None
    _slug_generator: Optional[object] = None
    _ingestion_service: Optional[object] = None
    _retirement_service: Optional[object] = None
    _catalog_service: Optional[object] = None
    _reconciliation_service: Optional[object] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def reset(self):
        """Reset container (useful for testing)."""
        self._blob_store = None
        self._catalog_store = None
        self._slug_generator = None
        self._ingestion_service = None
        self._retirement_service = None
        self._catalog_service = None
        self._reconciliation_service = None

    # ------------------------------------------------------------------
    # Adapters
    # ------------------------------------------------------------------

    def get_blob_store(self):
        """Get or create the configured blob store adapter (lazy singleton)."""
        if self._blob_store is None:
            settings = get_settings()
            backend = settings.blob_backend
            if backend == BlobBackend.S3.value:
                if not settings.s3_bucket:
                    raise ConfigurationError(
                        "S3_BUCKET is required for the s3 blob backend",
                        context={"blob_backend": backend},
                    )
                from adapters.s3_blob_store import S3BlobStoreAdapter

                self._blob_store = S3BlobStoreAdapter(
                    bucket=settings.s3_bucket,
                    region=settings.aws_region,
                    endpoint_url=settings.aws_endpoint_url,
                    public_base_url=settings.s3_public_base_url,
                )
            elif backend == BlobBackend.LOCAL.value:
                from adapters.local_blob_store import LocalBlobStoreAdapter

                self._blob_store = LocalBlobStoreAdapter(
                    root=settings.local_blob_root,
                    public_base_url=settings.public_base_url,
                )
            else:
                from adapters.in_memory_blob_store import InMemoryBlobStoreAdapter

                self._blob_store = InMemoryBlobStoreAdapter(
                    public_base_url=settings.public_base_url,
                )
            logger.info(
                "Initialized blob store",
                extra={"scope": LogScope.CONFIG, "backend": backend}
            )
        return self._blob_store

    def get_catalog_store(self):
        """Get or create the configured catalog store adapter (lazy singleton)."""
        if self._catalog_store is None:
            settings = get_settings()
            backend = settings.catalog_backend
            if backend == CatalogBackend.DYNAMODB.value:
                from adapters.dynamo_catalog_store import DynamoCatalogStoreAdapter

                self._catalog_store = DynamoCatalogStoreAdapter(
                    table_name=settings.dynamodb_table_name,
                    region=settings.aws_region,
                    endpoint_url=settings.aws_endpoint_url,
                )
            else:
                from adapters.in_memory_catalog_store import InMemoryCatalogStoreAdapter

                self._catalog_store = InMemoryCatalogStoreAdapter()
                logger.warning(
                    "In-memory catalog selected; records are lost on restart",
                    extra={"scope": LogScope.CONFIG}
                )
            logger.info(
                "Initialized catalog store",
                extra={"scope": LogScope.CONFIG, "backend": backend}
            )
        return self._catalog_store

    def validate_backends(self) -> bool:
        """Build both stores so misconfiguration fails at startup.

        Raises:
            ConfigurationError: If a backend cannot be constructed.
        """
        try:
            self.get_blob_store()
            self.get_catalog_store()
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(
                "Backend initialization failed",
                extra={"scope": LogScope.CONFIG, "error": str(e)}
            )
            raise ConfigurationError(f"Backend initialization failed: {e}") from e
        return True

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def get_slug_generator(self):
        """Process-wide slug generator so the timestamp suffix never repeats."""
        if self._slug_generator is None:
            from services.slug_service import SlugGenerator

            self._slug_generator = SlugGenerator()
        return self._slug_generator

    def get_ingestion_service(self):
        """Get or create IngestionService (lazy singleton)."""
        if self._ingestion_service is None:
            from services.ingestion_service import IngestionService

            settings = get_settings()
            self._ingestion_service = IngestionService(
                blob_store=self.get_blob_store(),
                catalog_store=self.get_catalog_store(),
                slug_generator=self.get_slug_generator(),
                max_upload_bytes=settings.max_upload_bytes,
                allowed_artifact_types=settings.allowed_artifact_types,
                allowed_preview_types=settings.allowed_preview_types,
                require_preview=settings.require_preview,
                artifact_prefix=settings.artifact_prefix,
                preview_prefix=settings.preview_prefix,
            )
            logger.info("Initialized IngestionService")
        return self._ingestion_service

    def get_retirement_service(self):
        """Get or create RetirementService (lazy singleton)."""
        if self._retirement_service is None:
            from services.retirement_service import RetirementService

            self._retirement_service = RetirementService(
                blob_store=self.get_blob_store(),
                catalog_store=self.get_catalog_store(),
            )
            logger.info("Initialized RetirementService")
        return self._retirement_service

    def get_catalog_service(self):
        """Get or create CatalogService (lazy singleton)."""
        if self._catalog_service is None:
            from services.catalog_service import CatalogService

            self._catalog_service = CatalogService(
                catalog_store=self.get_catalog_store(),
                blob_store=self.get_blob_store(),
            )
            logger.info("Initialized CatalogService")
        return self._catalog_service

    def get_reconciliation_service(self):
        """Get or create ReconciliationService (lazy singleton)."""
        if self._reconciliation_service is None:
            from services.reconciliation_service import ReconciliationService

            settings = get_settings()
            self._reconciliation_service = ReconciliationService(
                blob_store=self.get_blob_store(),
                catalog_store=self.get_catalog_store(),
                prefixes=(settings.artifact_prefix, settings.preview_prefix),
                min_age_seconds=settings.orphan_min_age_seconds,
            )
            logger.info("Initialized ReconciliationService")
        return self._reconciliation_service


# Global singleton instance
_container = DIContainer()


def get_di_container() -> DIContainer:
    """Get global DI container instance."""
    return _container
