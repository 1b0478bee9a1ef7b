"""
Port interface for blob (file) storage.

Implementations: S3BlobStoreAdapter, LocalBlobStoreAdapter,
InMemoryBlobStoreAdapter (adapters/)
"""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from domain.models import BlobInfo


@runtime_checkable
class BlobStorePort(Protocol):
    """Abstract interface for artifact and preview byte storage.

    Locations returned by ``put`` are opaque to callers; every other method
    accepts exactly those values back.
    """

    def put(self, key: str, content: bytes, content_type: str) -> str:
        """Store bytes under a key.

        Args:
            key: Storage key, unique per blob (e.g. apks/demo-app-1700000000000-1a2b3c4d-app.apk).
            content: Raw file bytes.
            content_type: MIME type recorded with the object.

        Returns:
            Location of the stored object.

        Raises:
            ExternalServiceError: If the backend rejects the write.
        """
        ...

    def get(self, location: str) -> bytes:
        """Read a stored blob.

        Raises:
            NotFoundError: If nothing is stored at the location.
            ExternalServiceError: If the read fails.
        """
        ...

    def exists(self, location: str) -> bool:
        """Return True if a blob is stored at the location."""
        ...

    def get_public_url(self, location: str) -> str:
        """Return a URL clients can download the blob from."""
        ...

    def delete(self, location: str) -> None:
        """Delete a blob. Deleting a missing blob is not an error.

        Raises:
            ExternalServiceError: If the backend fails.
        """
        ...

    def list_blobs(self, prefix: str = "") -> List[BlobInfo]:
        """List stored blobs whose key starts with ``prefix``."""
        ...
