"""
Retirement service — removes an artifact from the catalog and blob store.

The catalog row is deleted first so readers stop receiving references to
blobs that are about to disappear. Blob deletions follow; a failure there
leaves an orphan but never a dangling catalog row.
"""

from __future__ import annotations

from typing import Optional

from domain.models import ArtifactRecord, RetirementReport
from ports.blob_store import BlobStorePort
from ports.catalog_store import CatalogStorePort
from shared_utils.constants import LogScope
from shared_utils.error_handler import (
    CatalogError,
    NotFoundError,
    PartialRetirementError,
    log_exception,
)
from shared_utils.logging_utils import get_scoped_logger

logger = get_scoped_logger(LogScope.RETIREMENT)


class RetirementService:
    """Deletes a catalog record and its blobs. Safe to retry."""

    def __init__(
        self,
        blob_store: BlobStorePort,
        catalog_store: CatalogStorePort,
    ) -> None:
        self._blobs = blob_store
        self._catalog = catalog_store

    def retire(
        self,
        key: str,
        missing_ok: bool = True,
        raise_on_partial: bool = False,
    ) -> RetirementReport:
        """Retire the record identified by ``key`` (id or slug).

        Args:
            key: Record id or slug.
            missing_ok: Report an absent record as already retired instead
                of raising NotFoundError.
            raise_on_partial: Raise PartialRetirementError when blob
                deletion fails instead of returning a partial report.

        Returns:
            RetirementReport; ``success`` is True once the catalog delete
            has committed, whatever happened to the blobs.

        Raises:
            NotFoundError: No record matches and ``missing_ok`` is False.
            CatalogError: The catalog lookup or delete failed.
            PartialRetirementError: Only with ``raise_on_partial``.
        """
        # 1. Lookup
        record = self._lookup(key)
        if record is None:
            if not missing_ok:
                raise NotFoundError(f"No artifact matches {key}", context={"key": key})
            logger.info("retire_already_absent", key=key)
            return RetirementReport(key=key, already_absent=True)

        report = RetirementReport(key=key, record_id=record.id, slug=record.slug)

        # 2. Catalog delete flips visibility off
        try:
            deleted = self._catalog.delete(record.slug)
        except Exception as exc:
            logger.error("catalog_delete_failed", slug=record.slug, error=str(exc))
            raise CatalogError(
                f"Failed to delete catalog record {record.slug}",
                context={"slug": record.slug},
            ) from exc

        if not deleted:
            # A concurrent retirement removed it first and owns blob cleanup
            logger.info("retire_lost_race", slug=record.slug)
            report.already_absent = True
            return report

        # 3. Blob deletes, independent of each other
        for location in record.blob_locations:
            try:
                self._blobs.delete(location)
                report.deleted_locations.append(location)
            except Exception as exc:
                logger.error(
                    "blob_delete_failed",
                    slug=record.slug,
                    location=location,
                    error=str(exc),
                )
                report.failed_locations.append(location)

        # 4. Result
        if report.partial:
            warning = PartialRetirementError(record.slug, report.failed_locations)
            log_exception(warning, scope=LogScope.RETIREMENT)
            if raise_on_partial:
                raise warning

        logger.info(
            "artifact_retired",
            record_id=record.id,
            slug=record.slug,
            blobs_deleted=len(report.deleted_locations),
            blobs_failed=len(report.failed_locations),
        )
        return report

    def _lookup(self, key: str) -> Optional[ArtifactRecord]:
        try:
            return self._catalog.get_by_id(key) or self._catalog.get_by_slug(key)
        except Exception as exc:
            logger.error("catalog_lookup_failed", key=key, error=str(exc))
            raise CatalogError(
                f"Failed to look up {key}",
                context={"key": key},
            ) from exc
