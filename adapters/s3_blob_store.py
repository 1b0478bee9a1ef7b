"""
S3-backed blob store adapter.

Implements BlobStorePort using boto3. Locations are ``s3://bucket/key`` URIs.
"""

from __future__ import annotations

from typing import List, Optional
from urllib.parse import quote, urlparse

import boto3
from botocore.exceptions import ClientError

from domain.models import BlobInfo
from shared_utils.constants import Defaults, LogScope
from shared_utils.error_handler import ExternalServiceError, NotFoundError
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.ADAPTER)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3BlobStoreAdapter:
    """Amazon S3 (or S3-compatible) implementation of BlobStorePort.

    Public URLs are built from ``public_base_url`` when one is configured
    (bucket website, CDN); otherwise a presigned GET URL is issued.
    """

    def __init__(
        self,
        bucket: str,
        region: str = Defaults.AWS_REGION,
        endpoint_url: str = "",
        public_base_url: str = "",
        presign_ttl_seconds: int = Defaults.PRESIGNED_URL_TTL_SECONDS,
        s3_client: Optional[object] = None,
    ) -> None:
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.presign_ttl_seconds = presign_ttl_seconds
        client_kwargs: dict = {"region_name": region}
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        self._s3 = s3_client or boto3.client("s3", **client_kwargs)

    # ------------------------------------------------------------------
    # BlobStorePort implementation
    # ------------------------------------------------------------------

    def put(self, key: str, content: bytes, content_type: str) -> str:
        """Upload bytes to S3."""
        try:
            self._s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except ClientError as exc:
            logger.error("s3_put_failed", key=key, error=str(exc))
            raise ExternalServiceError("S3", f"Failed to upload blob: {exc}") from exc

        uri = f"s3://{self.bucket}/{key}"
        logger.info("blob_stored", s3_uri=uri, size_bytes=len(content))
        return uri

    def get(self, location: str) -> bytes:
        """Download a blob by its URI."""
        bucket, key = self._parse_s3_uri(location)
        try:
            response = self._s3.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except ClientError as exc:
            if self._is_missing(exc):
                raise NotFoundError("Blob not found", context={"location": location}) from exc
            logger.error("s3_get_failed", s3_uri=location, error=str(exc))
            raise ExternalServiceError("S3", f"Failed to download blob: {exc}") from exc

    def exists(self, location: str) -> bool:
        bucket, key = self._parse_s3_uri(location)
        try:
            self._s3.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as exc:
            if self._is_missing(exc):
                return False
            raise ExternalServiceError("S3", f"Failed to inspect blob: {exc}") from exc

    def get_public_url(self, location: str) -> str:
        bucket, key = self._parse_s3_uri(location)
        if self.public_base_url:
            return f"{self.public_base_url}/{quote(key)}"
        return self._s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=self.presign_ttl_seconds,
        )

    def delete(self, location: str) -> None:
        """Delete a blob. S3 treats deleting a missing key as success."""
        bucket, key = self._parse_s3_uri(location)
        try:
            self._s3.delete_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            logger.error("s3_delete_failed", s3_uri=location, error=str(exc))
            raise ExternalServiceError("S3", f"Failed to delete blob: {exc}") from exc
        logger.info("blob_deleted", s3_uri=location)

    def list_blobs(self, prefix: str = "") -> List[BlobInfo]:
        """List objects under a prefix (paginated)."""
        blobs: List[BlobInfo] = []
        try:
            paginator = self._s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    blobs.append(
                        BlobInfo(
                            location=f"s3://{self.bucket}/{obj['Key']}",
                            size_bytes=obj.get("Size", 0),
                            last_modified=obj.get("LastModified"),
                        )
                    )
        except ClientError as exc:
            logger.error("s3_list_failed", prefix=prefix, error=str(exc))
            raise ExternalServiceError("S3", f"Failed to list blobs: {exc}") from exc
        return blobs

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _is_missing(exc: ClientError) -> bool:
        return exc.response.get("Error", {}).get("Code") in _MISSING_CODES

    @staticmethod
    def _parse_s3_uri(uri: str) -> tuple[str, str]:
        """Parse ``s3://bucket/key`` into (bucket, key)."""
        parsed = urlparse(uri)
        if parsed.scheme != "s3":
            raise ValueError(f"Expected s3:// URI, got: {uri}")
        bucket = parsed.netloc
        key = parsed.path.lstrip("/")
        return bucket, key
