"""
Catalog read side: ordered listing, slug lookup, public serialization and
the sitemap derived from the listing.
"""

from __future__ import annotations

from typing import Any, Dict, List
from xml.sax.saxutils import escape

from domain.models import ArtifactRecord
from ports.blob_store import BlobStorePort
from ports.catalog_store import CatalogStorePort
from shared_utils.constants import LogScope
from shared_utils.error_handler import CatalogError, NotFoundError
from shared_utils.logging_utils import get_scoped_logger

logger = get_scoped_logger(LogScope.CATALOG)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"


def order_records(records: List[ArtifactRecord]) -> List[ArtifactRecord]:
    """Newest first; equal timestamps ordered by id ascending."""
    by_id = sorted(records, key=lambda r: r.id)
    # sort is stable, so the id order survives among equal timestamps
    return sorted(by_id, key=lambda r: r.created_at, reverse=True)


class CatalogService:
    """Read-only view over the catalog. Holds no cache."""

    def __init__(
        self,
        catalog_store: CatalogStorePort,
        blob_store: BlobStorePort,
    ) -> None:
        self._catalog = catalog_store
        self._blobs = blob_store

    def list_artifacts(self) -> List[ArtifactRecord]:
        try:
            records = self._catalog.list_records()
        except Exception as exc:
            logger.error("catalog_list_failed", error=str(exc))
            raise CatalogError("Failed to list artifacts") from exc
        return order_records(records)

    def get_by_slug(self, slug: str) -> ArtifactRecord:
        """Return the live record for ``slug``.

        Raises:
            NotFoundError: If no live record matches.
            CatalogError: If the store fails.
        """
        try:
            record = self._catalog.get_by_slug(slug)
        except Exception as exc:
            logger.error("catalog_get_failed", slug=slug, error=str(exc))
            raise CatalogError(f"Failed to load {slug}", context={"slug": slug}) from exc
        if record is None:
            raise NotFoundError("Not found", context={"slug": slug})
        return record

    def present(self, record: ArtifactRecord) -> Dict[str, Any]:
        """Public JSON shape of a record, with resolved download URLs."""
        return {
            "id": record.id,
            "name": record.name,
            "slug": record.slug,
            "description": record.description,
            "category": record.category,
            "artifactUrl": self._blobs.get_public_url(record.artifact_location),
            "previewUrl": (
                self._blobs.get_public_url(record.preview_location)
                if record.preview_location
                else None
            ),
            "artifactContentType": record.artifact_content_type,
            "artifactSizeBytes": record.artifact_size_bytes,
            "createdAt": record.created_at.isoformat(),
        }

    def render_sitemap(self, site_base_url: str) -> str:
        """sitemaps.org XML with one entry per live record."""
        base = site_base_url.rstrip("/")
        entries = "".join(
            "<url>"
            f"<loc>{escape(f'{base}/apk/{record.slug}')}</loc>"
            f"<lastmod>{record.created_at.date().isoformat()}</lastmod>"
            "</url>"
            for record in self.list_artifacts()
        )
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<urlset xmlns="{SITEMAP_NAMESPACE}">\n'
            f"{entries}\n"
            "</urlset>"
        )
