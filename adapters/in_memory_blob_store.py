"""
In-memory blob store adapter for local development and tests.

NOT for production — no persistence across restarts.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, List, Tuple
from urllib.parse import quote

from domain.models import BlobInfo
from shared_utils.constants import LogScope
from shared_utils.error_handler import NotFoundError
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.ADAPTER)


class InMemoryBlobStoreAdapter:
    """Dict-backed implementation of BlobStorePort. Locations are the keys."""

    def __init__(self, public_base_url: str = "") -> None:
        self.public_base_url = public_base_url.rstrip("/")
        self._blobs: Dict[str, Tuple[bytes, str, datetime]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # BlobStorePort implementation
    # ------------------------------------------------------------------

    def put(self, key: str, content: bytes, content_type: str) -> str:
        with self._lock:
            self._blobs[key] = (bytes(content), content_type, datetime.now(timezone.utc))
        logger.info("inmemory_blob_stored", location=key, size_bytes=len(content))
        return key

    def get(self, location: str) -> bytes:
        with self._lock:
            entry = self._blobs.get(location)
        if entry is None:
            raise NotFoundError("Blob not found", context={"location": location})
        return entry[0]

    def exists(self, location: str) -> bool:
        with self._lock:
            return location in self._blobs

    def get_public_url(self, location: str) -> str:
        return f"{self.public_base_url}/files/{quote(location)}"

    def delete(self, location: str) -> None:
        with self._lock:
            self._blobs.pop(location, None)
        logger.info("inmemory_blob_deleted", location=location)

    def list_blobs(self, prefix: str = "") -> List[BlobInfo]:
        with self._lock:
            items = list(self._blobs.items())
        return [
            BlobInfo(location=key, size_bytes=len(content), last_modified=stored_at)
            for key, (content, _, stored_at) in items
            if key.startswith(prefix)
        ]
