"""
FastAPI backend for the artifact catalog.

Endpoints:
    GET    /health                   — Health check
    POST   /api/admin-auth           — Shared-secret UI gate
    GET    /api/apks                 — Catalog listing (newest first)
    GET    /api/apk/{slug}           — Single record by slug
    POST   /api/upload-apk           — Multipart ingestion (artifact + optional preview)
    DELETE /api/delete-apk/{key}     — Retire by id or slug (idempotent)
    GET    /files/{location}         — Serve blobs for local / in-memory backends
    GET    /sitemap.xml              — Sitemap derived from the listing
"""

import hmac
import mimetypes
from typing import Optional

from fastapi import FastAPI, File, Form, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
import uvicorn

from domain.models import UploadedBlob
from shared_utils.config_loader import get_settings
from shared_utils.constants import APIEndpoints, Environment, ErrorCode, LogScope
from shared_utils.di_container import get_di_container
from shared_utils.error_handler import (
    AppException,
    NotFoundError,
    ValidationError,
    handle_error,
)
from shared_utils.logging_utils import ContextualLogger, configure_logging


# ---------------------------------------------------------------------------
# Application bootstrap
# ---------------------------------------------------------------------------

settings = get_settings()
configure_logging(
    settings.log_level,
    json_output=settings.environment != Environment.DEVELOPMENT.value,
)
logger = ContextualLogger(scope=LogScope.API)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=settings.app_description,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Build the configured backends once at startup so we fail fast
try:
    _container = get_di_container()
    _container.validate_backends()
    logger.info(
        "api_initialized",
        environment=settings.environment,
        blob_backend=settings.blob_backend,
        catalog_backend=settings.catalog_backend,
    )
except Exception as e:
    logger.error("api_initialization_failed", error=str(e))
    raise


def _error_response(exc: Exception) -> JSONResponse:
    """Map an exception to the structured error envelope."""
    if isinstance(exc, AppException):
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=handle_error(exc, scope=LogScope.API),
    )


async def _read_upload(upload: UploadFile) -> UploadedBlob:
    """Read at most one byte past the ceiling so oversize uploads fail validation
    without buffering the whole body."""
    content = await upload.read(settings.max_upload_bytes + 1)
    return UploadedBlob(
        filename=upload.filename or "",
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get(APIEndpoints.HEALTH)
def health_check() -> dict:
    """Health check endpoint."""
    logger.debug("health_check_requested")
    return {
        "status": "healthy",
        "environment": settings.environment,
        "blob_backend": settings.blob_backend,
        "catalog_backend": settings.catalog_backend,
    }


# ---------------------------------------------------------------------------
# Admin gate
# ---------------------------------------------------------------------------

@app.post(APIEndpoints.ADMIN_AUTH)
@limiter.limit(settings.admin_auth_rate_limit)
async def admin_auth(request: Request, body: dict) -> JSONResponse:
    """Compare the submitted code with the configured secret.

    A UI convenience gate, not an authorization boundary.
    """
    expected = settings.admin_code or ""
    submitted = str(body.get("code") or "")
    if expected and hmac.compare_digest(submitted.encode(), expected.encode()):
        return JSONResponse(content={"success": True})
    logger.warning("admin_auth_rejected")
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"success": False},
    )


# ---------------------------------------------------------------------------
# Catalog reads
# ---------------------------------------------------------------------------

@app.get(APIEndpoints.LIST_ARTIFACTS)
async def list_artifacts() -> JSONResponse:
    """List catalog records, newest first."""
    try:
        catalog = get_di_container().get_catalog_service()
        records = catalog.list_artifacts()
        return JSONResponse(content=[catalog.present(r) for r in records])
    except Exception as e:
        return _error_response(e)


@app.get(APIEndpoints.GET_ARTIFACT)
async def get_artifact(slug: str) -> JSONResponse:
    """Single record by slug; 404 if absent."""
    try:
        catalog = get_di_container().get_catalog_service()
        return JSONResponse(content=catalog.present(catalog.get_by_slug(slug)))
    except Exception as e:
        return _error_response(e)


@app.get(APIEndpoints.SITEMAP)
async def sitemap() -> Response:
    try:
        catalog = get_di_container().get_catalog_service()
        xml = catalog.render_sitemap(settings.site_base_url)
        return Response(content=xml, media_type="application/xml")
    except Exception as e:
        return _error_response(e)


@app.get(APIEndpoints.FILES)
async def serve_file(location: str) -> Response:
    """Stream a stored blob (local and in-memory backends only)."""
    try:
        blob_store = get_di_container().get_blob_store()
        try:
            content = blob_store.get(location)
        except ValueError as exc:
            raise NotFoundError("Not found", context={"location": location}) from exc
        media_type = mimetypes.guess_type(location)[0] or "application/octet-stream"
        return Response(content=content, media_type=media_type)
    except Exception as e:
        return _error_response(e)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

@app.post(APIEndpoints.UPLOAD_ARTIFACT)
@limiter.limit(settings.upload_rate_limit)
async def upload_artifact(
    request: Request,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    apkFile: Optional[UploadFile] = File(None),
    apk: Optional[UploadFile] = File(None),
    imageFile: Optional[UploadFile] = File(None),
    image: Optional[UploadFile] = File(None),
) -> JSONResponse:
    """Store the artifact and preview, then catalog them.

    ``apkFile``/``apk`` and ``imageFile``/``image`` are accepted as aliases.
    """
    try:
        artifact_upload = apkFile if apkFile is not None else apk
        preview_upload = imageFile if imageFile is not None else image
        if artifact_upload is None:
            raise ValidationError(
                "Artifact file missing",
                context={"fields": ["apkFile", "apk"]},
            )

        artifact = await _read_upload(artifact_upload)
        preview = await _read_upload(preview_upload) if preview_upload is not None else None

        # Nothing has been written yet; a vanished client costs no I/O
        if await request.is_disconnected():
            logger.warning("upload_client_disconnected", name=name)
            raise ValidationError("Client disconnected before upload completed")

        container = get_di_container()
        # Runs in a worker thread: once blob writes start they finish or fail
        record = await run_in_threadpool(
            container.get_ingestion_service().ingest,
            name=name,
            description=description,
            category=category,
            artifact=artifact,
            preview=preview,
        )

        logger.info("upload_accepted", slug=record.slug, record_id=record.id)
        return JSONResponse(
            content={
                "success": True,
                "apk": container.get_catalog_service().present(record),
            }
        )

    except AppException as e:
        logger.warning("upload_error", error_code=e.error_code)
        return _error_response(e)
    except Exception as e:
        return _error_response(e)


# ---------------------------------------------------------------------------
# Retirement
# ---------------------------------------------------------------------------

@app.delete(APIEndpoints.DELETE_ARTIFACT)
async def delete_artifact(key: str) -> JSONResponse:
    """Retire by id or slug. Already-absent records report success."""
    try:
        retirement = get_di_container().get_retirement_service()
        report = await run_in_threadpool(retirement.retire, key)

        body: dict = {"success": True}
        if report.partial:
            body["warnings"] = [
                {"code": ErrorCode.PARTIAL_RETIREMENT.value, "location": location}
                for location in report.failed_locations
            ]
        return JSONResponse(content=body)

    except Exception as e:
        return _error_response(e)


if __name__ == "__main__":
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level=settings.log_level.lower()
    )
