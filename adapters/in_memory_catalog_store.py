"""
In-memory catalog store adapter for local development and tests.

NOT for production — state is lost on restart and is not shared between
processes, so a multi-instance deployment must use DynamoDB.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from domain.models import ArtifactRecord
from shared_utils.constants import LogScope
from shared_utils.error_handler import SlugConflictError
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.ADAPTER)


class InMemoryCatalogStoreAdapter:
    """Dict-backed implementation of CatalogStorePort, keyed by slug."""

    def __init__(self) -> None:
        self._records: Dict[str, ArtifactRecord] = {}
        self._lock = threading.Lock()

    def insert(self, record: ArtifactRecord) -> ArtifactRecord:
        with self._lock:
            if record.slug in self._records:
                raise SlugConflictError(record.slug)
            self._records[record.slug] = record
            total = len(self._records)
        logger.info("inmemory_record_inserted", slug=record.slug, total=total)
        return record

    def list_records(self) -> List[ArtifactRecord]:
        with self._lock:
            return list(self._records.values())

    def get_by_id(self, record_id: str) -> Optional[ArtifactRecord]:
        with self._lock:
            for record in self._records.values():
                if record.id == record_id:
                    return record
        return None

    def get_by_slug(self, slug: str) -> Optional[ArtifactRecord]:
        with self._lock:
            return self._records.get(slug)

    def delete(self, slug: str) -> bool:
        with self._lock:
            removed = self._records.pop(slug, None)
        logger.info("inmemory_record_deleted", slug=slug, deleted=removed is not None)
        return removed is not None
