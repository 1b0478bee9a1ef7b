"""
Ingestion service — orchestrates the two-phase artifact write.

Flow:  validate → slug → store artifact blob → store preview blob → insert catalog record.

Blobs are written before the catalog row so a visible record can always be
dereferenced. Any failure after a blob write deletes the blobs written by the
same request (best effort) before the error is returned.

Depends only on ports (protocol interfaces) — never on concrete adapters.
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from domain.models import ArtifactRecord, UploadedBlob
from ports.blob_store import BlobStorePort
from ports.catalog_store import CatalogStorePort
from services.slug_service import SlugGenerator
from shared_utils.constants import Defaults, LogScope
from shared_utils.error_handler import CatalogError, StorageError
from shared_utils.logging_utils import get_scoped_logger
from shared_utils.validation import InputValidator

logger = get_scoped_logger(LogScope.INGESTION)


# ---------------------------------------------------------------------------
# Key helpers (pure functions, no external deps)
# ---------------------------------------------------------------------------

def _storage_key(prefix: str, slug: str, filename: str) -> str:
    """``<prefix>/<slug>-<random>-<filename>``.

    The random token keeps keys distinct even if two requests share a slug
    (e.g. across processes within one millisecond).
    """
    token = uuid.uuid4().hex[: Defaults.KEY_TOKEN_LENGTH]
    return f"{prefix.strip('/')}/{slug}-{token}-{filename}"


def _record_id(timestamp_ms: int) -> str:
    """Time-ordered id: zero-padded epoch ms plus a random suffix."""
    return f"{timestamp_ms:013d}-{uuid.uuid4().hex[:8]}"


# ---------------------------------------------------------------------------
# IngestionService
# ---------------------------------------------------------------------------

class IngestionService:
    """Stores an artifact (and optional preview) and catalogs it.

    All storage interactions go through port interfaces — no direct boto3.
    """

    def __init__(
        self,
        blob_store: BlobStorePort,
        catalog_store: CatalogStorePort,
        slug_generator: Optional[SlugGenerator] = None,
        max_upload_bytes: int = Defaults.MAX_UPLOAD_BYTES,
        allowed_artifact_types: Sequence[str] = (),
        allowed_preview_types: Sequence[str] = Defaults.PREVIEW_CONTENT_TYPES,
        require_preview: bool = False,
        artifact_prefix: str = Defaults.ARTIFACT_PREFIX,
        preview_prefix: str = Defaults.PREVIEW_PREFIX,
    ) -> None:
        self._blobs = blob_store
        self._catalog = catalog_store
        self._slugs = slug_generator or SlugGenerator()
        self._max_upload_bytes = max_upload_bytes
        self._allowed_artifact_types = tuple(allowed_artifact_types)
        self._allowed_preview_types = tuple(allowed_preview_types)
        self._require_preview = require_preview
        self._artifact_prefix = artifact_prefix
        self._preview_prefix = preview_prefix

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ingest(
        self,
        name: Optional[str],
        description: Optional[str],
        category: Optional[str],
        artifact: Optional[UploadedBlob],
        preview: Optional[UploadedBlob] = None,
    ) -> ArtifactRecord:
        """Run the complete ingestion for one artifact.

        Steps:
            1. Validate inputs (no side effects on failure).
            2. Generate slug.
            3. Derive storage keys.
            4. Store artifact blob.
            5. Store preview blob, if any.
            6. Insert catalog record.
            7. Return the record, now visible to readers.

        Raises:
            ValidationError: Bad or missing input; nothing was written.
            StorageError: A blob write failed; earlier blobs were cleaned up.
            CatalogError: The catalog insert failed; both blobs were cleaned up.
        """
        started = time.time()

        # 1. Validate
        clean_name = InputValidator.validate_non_empty_string(name, "name")
        artifact_filename, artifact_type = self._validate_blob(
            artifact,
            field_name="artifact",
            allowed_types=self._allowed_artifact_types,
            fallback_filename=Defaults.ARTIFACT_FALLBACK_FILENAME,
        )
        preview_filename = preview_type = None
        if preview is not None or self._require_preview:
            preview_filename, preview_type = self._validate_blob(
                preview,
                field_name="preview",
                allowed_types=self._allowed_preview_types,
                fallback_filename=Defaults.PREVIEW_FALLBACK_FILENAME,
            )

        # 2. Slug
        timestamp_ms = self._slugs.next_timestamp_ms()
        slug = self._slugs.make_slug(clean_name, timestamp_ms)

        # 3. Keys
        artifact_key = _storage_key(self._artifact_prefix, slug, artifact_filename)
        preview_key = (
            _storage_key(self._preview_prefix, slug, preview_filename)
            if preview is not None
            else None
        )

        logger.info(
            "ingestion_started",
            slug=slug,
            artifact_size_bytes=artifact.size_bytes,
            has_preview=preview is not None,
        )

        # 4. Artifact blob
        written: List[str] = []
        try:
            artifact_location = self._blobs.put(artifact_key, artifact.content, artifact_type)
        except Exception as exc:
            logger.error("artifact_store_failed", slug=slug, key=artifact_key, error=str(exc))
            raise StorageError(
                f"Failed to store artifact for {slug}",
                context={"slug": slug, "key": artifact_key},
            ) from exc
        written.append(artifact_location)

        # 5. Preview blob
        preview_location = None
        if preview is not None:
            try:
                preview_location = self._blobs.put(preview_key, preview.content, preview_type)
            except Exception as exc:
                logger.error("preview_store_failed", slug=slug, key=preview_key, error=str(exc))
                self._discard(written, slug=slug, reason="preview_store_failed")
                raise StorageError(
                    f"Failed to store preview for {slug}",
                    context={"slug": slug, "key": preview_key},
                ) from exc
            written.append(preview_location)

        # 6. Catalog insert (visibility point)
        record = ArtifactRecord(
            id=_record_id(timestamp_ms),
            name=clean_name,
            slug=slug,
            description=description or None,
            category=category or None,
            artifact_location=artifact_location,
            artifact_content_type=artifact_type,
            artifact_size_bytes=artifact.size_bytes,
            preview_location=preview_location,
            preview_content_type=preview_type if preview is not None else None,
            created_at=datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc),
        )
        try:
            stored = self._catalog.insert(record)
        except CatalogError as exc:
            logger.error("catalog_insert_failed", slug=slug, error_code=exc.error_code)
            self._discard(written, slug=slug, reason="catalog_insert_failed")
            raise
        except Exception as exc:
            logger.error("catalog_insert_failed", slug=slug, error=str(exc))
            self._discard(written, slug=slug, reason="catalog_insert_failed")
            raise CatalogError(
                f"Failed to catalog {slug}",
                context={"slug": slug},
            ) from exc

        # 7. Done
        logger.info(
            "artifact_ingested",
            record_id=stored.id,
            slug=slug,
            blobs=len(written),
            duration_ms=round((time.time() - started) * 1000, 1),
        )
        return stored

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _validate_blob(
        self,
        blob: Optional[UploadedBlob],
        field_name: str,
        allowed_types: Sequence[str],
        fallback_filename: str,
    ) -> tuple[str, str]:
        """Check presence, size and type; return (safe filename, content type)."""
        InputValidator.validate_payload(
            blob.content if blob is not None else None,
            field_name,
            self._max_upload_bytes,
        )
        content_type = InputValidator.validate_content_type(
            blob.content_type, allowed_types, field_name
        )
        filename = InputValidator.sanitize_filename(blob.filename, fallback_filename)
        return filename, content_type

    def _discard(self, locations: List[str], slug: str, reason: str) -> None:
        """Best-effort removal of blobs written by a failed ingestion.

        Failures are logged and never raised; the caller is already
        propagating the original error. Blobs left behind are orphans for
        the reconciliation sweep.
        """
        for location in locations:
            try:
                self._blobs.delete(location)
                logger.info("orphan_cleaned", slug=slug, location=location, reason=reason)
            except Exception as exc:
                logger.error(
                    "orphan_cleanup_failed",
                    slug=slug,
                    location=location,
                    reason=reason,
                    error=str(exc),
                )
