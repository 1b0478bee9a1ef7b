"""
DynamoDB-backed catalog store adapter.

Implements CatalogStorePort using boto3 for the ArtifactCatalog table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from domain.models import ArtifactRecord
from shared_utils.constants import Defaults, LogScope
from shared_utils.error_handler import ExternalServiceError, SlugConflictError
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.ADAPTER)


class DynamoCatalogStoreAdapter:
    """Amazon DynamoDB implementation of CatalogStorePort.

    Table key: ``slug`` (partition key, no sort key). Keying by slug lets a
    conditional put enforce slug uniqueness; lookups by id use a scan.
    """

    def __init__(
        self,
        table_name: str,
        region: str = Defaults.AWS_REGION,
        endpoint_url: str = "",
        dynamodb_resource: Optional[object] = None,
    ) -> None:
        self._table_name = table_name
        resource_kwargs: dict = {"region_name": region}
        if endpoint_url:
            resource_kwargs["endpoint_url"] = endpoint_url
        self._dynamo = dynamodb_resource or boto3.resource(
            "dynamodb", **resource_kwargs
        )
        self._table = self._dynamo.Table(table_name)

    # ------------------------------------------------------------------
    # CatalogStorePort implementation
    # ------------------------------------------------------------------

    def insert(self, record: ArtifactRecord) -> ArtifactRecord:
        """Conditional put; fails if the slug is already taken."""
        item = self._to_dynamo_item(record)
        try:
            self._table.put_item(
                Item=item,
                ConditionExpression="attribute_not_exists(slug)",
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code == "ConditionalCheckFailedException":
                logger.warning("dynamo_slug_conflict", slug=record.slug)
                raise SlugConflictError(record.slug) from exc
            logger.error(
                "dynamo_insert_failed",
                slug=record.slug,
                error=str(exc),
            )
            raise ExternalServiceError(
                "DynamoDB", f"Failed to insert artifact record: {exc}"
            ) from exc

        logger.info("dynamo_insert", record_id=record.id, slug=record.slug)
        return record

    def list_records(self) -> List[ArtifactRecord]:
        """Full scan (paginated). Ordering is applied by the caller."""
        items = self._scan()
        logger.info("dynamo_list_records", results=len(items))
        return [self._from_dynamo_item(item) for item in items]

    def get_by_id(self, record_id: str) -> Optional[ArtifactRecord]:
        items = self._scan(Attr("id").eq(record_id))
        if not items:
            return None
        return self._from_dynamo_item(items[0])

    def get_by_slug(self, slug: str) -> Optional[ArtifactRecord]:
        try:
            response = self._table.get_item(Key={"slug": slug})
        except ClientError as exc:
            logger.error("dynamo_get_failed", slug=slug, error=str(exc))
            raise ExternalServiceError(
                "DynamoDB", f"Failed to get artifact record: {exc}"
            ) from exc
        item = response.get("Item")
        if item is None:
            return None
        return self._from_dynamo_item(item)

    def delete(self, slug: str) -> bool:
        try:
            response = self._table.delete_item(
                Key={"slug": slug},
                ReturnValues="ALL_OLD",
            )
        except ClientError as exc:
            logger.error("dynamo_delete_failed", slug=slug, error=str(exc))
            raise ExternalServiceError(
                "DynamoDB", f"Failed to delete artifact record: {exc}"
            ) from exc
        deleted = bool(response.get("Attributes"))
        logger.info("dynamo_delete", slug=slug, deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _scan(self, filter_expr: Any = None) -> List[Dict[str, Any]]:
        scan_kwargs: Dict[str, Any] = {}
        if filter_expr is not None:
            scan_kwargs["FilterExpression"] = filter_expr

        items: List[Dict[str, Any]] = []
        try:
            while True:
                response = self._table.scan(**scan_kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if last_key is None:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_key
        except ClientError as exc:
            logger.error("dynamo_scan_failed", error=str(exc))
            raise ExternalServiceError(
                "DynamoDB", f"Failed to scan artifact records: {exc}"
            ) from exc
        return items

    @staticmethod
    def _to_dynamo_item(record: ArtifactRecord) -> Dict[str, Any]:
        """Convert domain ArtifactRecord → DynamoDB item dict."""
        item: Dict[str, Any] = {
            "slug": record.slug,
            "id": record.id,
            "name": record.name,
            "artifact_location": record.artifact_location,
            "artifact_content_type": record.artifact_content_type,
            "artifact_size_bytes": record.artifact_size_bytes,
            "created_at": record.created_at.isoformat(),
        }
        # DynamoDB rejects empty strings in some index contexts; omit optionals
        for field in ("description", "category", "preview_location", "preview_content_type"):
            value = getattr(record, field)
            if value:
                item[field] = value
        return item

    @staticmethod
    def _from_dynamo_item(item: Dict[str, Any]) -> ArtifactRecord:
        """Convert DynamoDB item dict → domain ArtifactRecord."""
        return ArtifactRecord(
            id=item["id"],
            name=item["name"],
            slug=item["slug"],
            description=item.get("description"),
            category=item.get("category"),
            artifact_location=item["artifact_location"],
            artifact_content_type=item.get(
                "artifact_content_type", "application/octet-stream"
            ),
            # boto3 returns numbers as Decimal
            artifact_size_bytes=int(item.get("artifact_size_bytes", 0)),
            preview_location=item.get("preview_location"),
            preview_content_type=item.get("preview_content_type"),
            created_at=datetime.fromisoformat(item["created_at"]),
        )
