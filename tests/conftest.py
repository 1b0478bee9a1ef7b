"""
Root conftest.py — shared fixtures for the entire test suite.

Guidelines:
    • No __init__.py in test sub-directories (avoids shadowing root packages).
    • pytest.ini_options lives in pyproject.toml with pythonpath=["."].
    • Markers: integration.
"""

import os

# Settings are read (and cached) when the API module is imported; keep the
# suite on in-memory backends with rate limiting off.
os.environ.setdefault("BLOB_BACKEND", "memory")
os.environ.setdefault("CATALOG_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ADMIN_CODE", "test-admin-code")
os.environ.setdefault("ENVIRONMENT", "development")

from datetime import datetime, timezone
from itertools import count
from unittest.mock import MagicMock

import pytest

from adapters.in_memory_blob_store import InMemoryBlobStoreAdapter
from adapters.in_memory_catalog_store import InMemoryCatalogStoreAdapter
from domain.models import ArtifactRecord, UploadedBlob
from services.slug_service import SlugGenerator


APK_CONTENT_TYPE = "application/vnd.android.package-archive"


# ---------------------------------------------------------------------------
# Upload fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def apk_upload() -> UploadedBlob:
    """A 1 KiB artifact as received from a client."""
    return UploadedBlob(filename="demo.apk", content=b"A" * 1024, content_type=APK_CONTENT_TYPE)


@pytest.fixture()
def png_upload() -> UploadedBlob:
    """A 500-byte preview image."""
    return UploadedBlob(filename="icon.png", content=b"P" * 500, content_type="image/png")


# ---------------------------------------------------------------------------
# Adapter fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def blob_store() -> InMemoryBlobStoreAdapter:
    return InMemoryBlobStoreAdapter(public_base_url="http://files.test")


@pytest.fixture()
def catalog_store() -> InMemoryCatalogStoreAdapter:
    return InMemoryCatalogStoreAdapter()


@pytest.fixture()
def fixed_clock_generator() -> SlugGenerator:
    """Slug generator whose wall clock is stuck at one millisecond."""
    return SlugGenerator(clock=lambda: 1_700_000_000_000)


@pytest.fixture()
def mock_blob_store() -> MagicMock:
    """Pre-configured blob store mock; put returns the key as location."""
    mock = MagicMock()
    mock.put.side_effect = lambda key, content, content_type: f"mem://{key}"
    mock.get_public_url.side_effect = lambda location: f"http://files.test/{location}"
    return mock


@pytest.fixture()
def mock_catalog_store() -> MagicMock:
    """Pre-configured catalog store mock; insert echoes the record."""
    mock = MagicMock()
    mock.insert.side_effect = lambda record: record
    return mock


# ---------------------------------------------------------------------------
# Domain object factories
# ---------------------------------------------------------------------------

_ids = count(1)


def make_record(
    slug: str = "demo-app-1700000000000",
    created_at: datetime = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc),
    record_id: str = "",
    preview: bool = True,
    **overrides,
) -> ArtifactRecord:
    """Build an ArtifactRecord with sensible defaults."""
    fields = dict(
        id=record_id or f"{next(_ids):013d}-abcdef12",
        name="Demo App",
        slug=slug,
        description="x",
        category="tools",
        artifact_location=f"apks/{slug}-11111111-demo.apk",
        artifact_content_type=APK_CONTENT_TYPE,
        artifact_size_bytes=1024,
        preview_location=f"images/{slug}-22222222-icon.png" if preview else None,
        preview_content_type="image/png" if preview else None,
        created_at=created_at,
    )
    fields.update(overrides)
    return ArtifactRecord(**fields)


@pytest.fixture()
def sample_record() -> ArtifactRecord:
    return make_record()
