"""
Worker entrypoint for the orphan reconciliation sweep.

Run on a schedule (cron, ECS scheduled task) with environment:
    DRY_RUN          — "false" to delete orphans; anything else only reports
    MIN_AGE_SECONDS  — optional override of the grace period for young blobs

The worker:
    1. Lists blobs under the artifact and preview prefixes.
    2. Diffs them against locations referenced by live catalog records.
    3. Deletes unreferenced blobs older than the grace period (unless dry-run).
    4. Exits 0 on success (including dry-run), 1 on failure or any delete error.

All logging is JSON (structlog).
"""

from __future__ import annotations

import os
import sys

from shared_utils.config_loader import get_settings
from shared_utils.constants import LogScope
from shared_utils.di_container import get_di_container
from shared_utils.logging_utils import get_scoped_logger

logger = get_scoped_logger(LogScope.WORKER)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def main() -> int:
    """Worker main — parse env vars, build deps, run one sweep."""
    dry_run = _env_flag("DRY_RUN", default=True)
    min_age_raw = os.environ.get("MIN_AGE_SECONDS", "").strip()

    try:
        container = get_di_container()
        reconciler = container.get_reconciliation_service()

        if min_age_raw:
            from services.reconciliation_service import ReconciliationService

            settings = get_settings()
            reconciler = ReconciliationService(
                blob_store=container.get_blob_store(),
                catalog_store=container.get_catalog_store(),
                prefixes=(settings.artifact_prefix, settings.preview_prefix),
                min_age_seconds=int(min_age_raw),
            )

        logger.info("worker_started", dry_run=dry_run)
        report = reconciler.sweep(dry_run=dry_run)

    except Exception as exc:
        logger.error("worker_failed", error=str(exc))
        return 1

    logger.info(
        "worker_completed",
        dry_run=report.dry_run,
        scanned=report.blobs_scanned,
        orphans=len(report.orphans),
        deleted=len(report.deleted),
        failed=len(report.failed),
        duration_ms=round(report.duration_ms, 1),
    )
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
