"""
Orphan reconciliation — finds blobs no live catalog record references.

Orphans appear when the process dies between a blob write and the catalog
insert, or when rollback / retirement cleanup fails. Blobs younger than the
grace period are skipped because their ingestion may still be in flight.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, Set

from domain.models import BlobInfo, ReconciliationReport
from ports.blob_store import BlobStorePort
from ports.catalog_store import CatalogStorePort
from shared_utils.constants import Defaults, LogScope
from shared_utils.logging_utils import get_scoped_logger, log_execution

logger = get_scoped_logger(LogScope.RECONCILIATION)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReconciliationService:
    """Diffs blob-store contents against catalog references."""

    def __init__(
        self,
        blob_store: BlobStorePort,
        catalog_store: CatalogStorePort,
        prefixes: Sequence[str] = (Defaults.ARTIFACT_PREFIX, Defaults.PREVIEW_PREFIX),
        min_age_seconds: int = Defaults.ORPHAN_MIN_AGE_SECONDS,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._blobs = blob_store
        self._catalog = catalog_store
        self._prefixes = tuple(p.strip("/") + "/" for p in prefixes)
        self._min_age = timedelta(seconds=min_age_seconds)
        self._now = now

    def find_orphans(self, report: Optional[ReconciliationReport] = None) -> List[str]:
        """Return locations of unreferenced blobs older than the grace period."""
        report = report if report is not None else ReconciliationReport()

        # Blobs are listed before the catalog is read: a record inserted in
        # between is then seen as referenced rather than orphaned.
        blobs: List[BlobInfo] = []
        for prefix in self._prefixes:
            blobs.extend(self._blobs.list_blobs(prefix))
        referenced: Set[str] = {
            location
            for record in self._catalog.list_records()
            for location in record.blob_locations
        }

        cutoff = self._now() - self._min_age
        orphans: List[str] = []
        for blob in blobs:
            if blob.location in referenced:
                report.referenced += 1
            elif blob.last_modified is not None and blob.last_modified > cutoff:
                report.skipped_recent += 1
            else:
                orphans.append(blob.location)

        report.blobs_scanned = len(blobs)
        report.orphans = orphans
        return orphans

    @log_execution(scope=LogScope.RECONCILIATION)
    def sweep(self, dry_run: bool = True) -> ReconciliationReport:
        """Find orphans and, unless ``dry_run``, delete them.

        Individual delete failures are logged and listed in the report;
        they do not stop the sweep.
        """
        started = time.time()
        report = ReconciliationReport(dry_run=dry_run, started_at=self._now().isoformat())
        orphans = self.find_orphans(report)

        if not dry_run:
            for location in orphans:
                try:
                    self._blobs.delete(location)
                    report.deleted.append(location)
                except Exception as exc:
                    logger.error("orphan_delete_failed", location=location, error=str(exc))
                    report.failed.append(location)

        report.duration_ms = (time.time() - started) * 1000
        logger.info(
            "reconciliation_complete",
            dry_run=dry_run,
            scanned=report.blobs_scanned,
            orphans=len(orphans),
            deleted=len(report.deleted),
            failed=len(report.failed),
        )
        return report
