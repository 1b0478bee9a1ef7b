"""
Port interface for artifact catalog storage.

Implementations: DynamoCatalogStoreAdapter, InMemoryCatalogStoreAdapter (adapters/)
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from domain.models import ArtifactRecord


@runtime_checkable
class CatalogStorePort(Protocol):
    """Abstract interface for artifact record persistence."""

    def insert(self, record: ArtifactRecord) -> ArtifactRecord:
        """Insert a new record. Never overwrites.

        Args:
            record: Complete record to store.

        Returns:
            The stored record.

        Raises:
            SlugConflictError: If a live record already uses ``record.slug``.
            ExternalServiceError: If the store is unreachable.
        """
        ...

    def list_records(self) -> List[ArtifactRecord]:
        """Return all live records in no particular order."""
        ...

    def get_by_id(self, record_id: str) -> Optional[ArtifactRecord]:
        """Retrieve a record by id, None if absent."""
        ...

    def get_by_slug(self, slug: str) -> Optional[ArtifactRecord]:
        """Retrieve a record by slug, None if absent."""
        ...

    def delete(self, slug: str) -> bool:
        """Delete the record with this slug.

        Returns:
            True if a record was removed, False if none existed.

        Raises:
            ExternalServiceError: If the store is unreachable.
        """
        ...
