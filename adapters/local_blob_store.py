"""
Local filesystem blob store adapter.

Implements BlobStorePort on a directory tree. Locations are POSIX keys
relative to the root; the API serves them under ``/files/``.
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List
from urllib.parse import quote

from domain.models import BlobInfo
from shared_utils.constants import LogScope
from shared_utils.error_handler import ExternalServiceError, NotFoundError
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.ADAPTER)

_TMP_PREFIX = ".upload-"


class LocalBlobStoreAdapter:
    """Filesystem implementation of BlobStorePort.

    Writes go to a temp file in the target directory and are moved into
    place with ``os.replace`` so readers never see a partial blob.
    """

    def __init__(self, root: str, public_base_url: str = "") -> None:
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # BlobStorePort implementation
    # ------------------------------------------------------------------

    def put(self, key: str, content: bytes, content_type: str) -> str:
        target = self._resolve(key)
        tmp_path = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb", delete=False, dir=str(target.parent), prefix=_TMP_PREFIX
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, target)
        except OSError as exc:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            logger.error("local_put_failed", key=key, error=str(exc))
            raise ExternalServiceError("LocalFS", f"Failed to write blob: {exc}") from exc

        logger.info(
            "blob_stored",
            location=key,
            size_bytes=len(content),
            content_type=content_type,
        )
        return key

    def get(self, location: str) -> bytes:
        path = self._resolve(location)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError("Blob not found", context={"location": location}) from exc
        except OSError as exc:
            raise ExternalServiceError("LocalFS", f"Failed to read blob: {exc}") from exc

    def exists(self, location: str) -> bool:
        return self._resolve(location).is_file()

    def get_public_url(self, location: str) -> str:
        return f"{self.public_base_url}/files/{quote(location)}"

    def delete(self, location: str) -> None:
        path = self._resolve(location)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("local_delete_failed", location=location, error=str(exc))
            raise ExternalServiceError("LocalFS", f"Failed to delete blob: {exc}") from exc
        logger.info("blob_deleted", location=location)

    def list_blobs(self, prefix: str = "") -> List[BlobInfo]:
        blobs: List[BlobInfo] = []
        for path in self.root.rglob("*"):
            if not path.is_file() or path.name.startswith(_TMP_PREFIX):
                continue
            key = path.relative_to(self.root).as_posix()
            if not key.startswith(prefix):
                continue
            stat = path.stat()
            blobs.append(
                BlobInfo(
                    location=key,
                    size_bytes=stat.st_size,
                    last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return blobs

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve(self, key: str) -> Path:
        """Map a key to a path under the root, rejecting traversal."""
        path = (self.root / key).resolve()
        if path == self.root or self.root not in path.parents:
            raise ValueError(f"Key escapes blob root: {key}")
        return path
