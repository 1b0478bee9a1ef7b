"""
Pure domain models for the artifact catalog.

These models contain NO storage SDK types. They represent the core business
concepts that flow through ports and services.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadedBlob(BaseModel):
    """A file received from a client, not yet stored."""

    filename: str = ""
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class ArtifactRecord(BaseModel):
    """Catalog entry referencing a stored artifact and its optional preview.

    Blob references are never rewritten; an update is a retire followed by
    a fresh ingest.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    artifact_location: str
    artifact_content_type: str = "application/octet-stream"
    artifact_size_bytes: int = 0
    preview_location: Optional[str] = None
    preview_content_type: Optional[str] = None
    created_at: datetime

    @property
    def blob_locations(self) -> List[str]:
        """Artifact location first, then the preview when present."""
        locations = [self.artifact_location]
        if self.preview_location:
            locations.append(self.preview_location)
        return locations


class BlobInfo(BaseModel):
    """Listing entry for a stored blob."""

    location: str
    size_bytes: int = 0
    last_modified: Optional[datetime] = None


class RetirementReport(BaseModel):
    """Outcome of retiring a catalog record."""

    key: str
    record_id: Optional[str] = None
    slug: Optional[str] = None
    success: bool = True
    already_absent: bool = False
    deleted_locations: List[str] = []
    failed_locations: List[str] = []

    @property
    def partial(self) -> bool:
        return bool(self.failed_locations)


class ReconciliationReport(BaseModel):
    """Result of an orphan sweep over the blob store."""

    dry_run: bool = True
    blobs_scanned: int = 0
    referenced: int = 0
    skipped_recent: int = 0
    orphans: List[str] = []
    deleted: List[str] = []
    failed: List[str] = []
    started_at: str = ""  # ISO 8601
    duration_ms: float = 0.0
