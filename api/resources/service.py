"""
Resource handling business logic, shared by every entity type.

`ResourceHandler` is parameterized by an entity descriptor and a storage
table. Each operation runs one sequential pipeline:

    parse/validate input -> lifecycle check -> storage call -> response shaping

Client mistakes are raised as `core.errors` taxonomy errors before storage is
touched; storage failures are mapped by `resources.errors.storage_errors`.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from core.errors import AlreadyDeleted, BadRequest, Internal, NotFound

from . import lifecycle, pagination, schemas, validation
from .descriptors import MAX_ENTITY_ID, EntityDescriptor
from .errors import storage_errors

logger = logging.getLogger(__name__)


class ResourceHandler:
    def __init__(self, descriptor: EntityDescriptor, table: Any) -> None:
        self.descriptor = descriptor
        self.table = table
        self._model = schemas.entity_model(descriptor)

    # Input parsing.

    def parse_id(self, raw_id: str) -> int:
        entity_id = validation.parse_positive_int(raw_id)
        if entity_id is None:
            raise BadRequest(self.descriptor.invalid_id_message())
        return entity_id

    @staticmethod
    def parse_body(raw_body: bytes) -> dict[str, Any]:
        try:
            body = json.loads(raw_body)
        except ValueError as exc:
            raise BadRequest("Invalid JSON body") from exc
        if not isinstance(body, dict):
            raise BadRequest("Request body must be a JSON object")
        return body

    def string_fields(self, body: dict[str, Any], *, partial: bool) -> dict[str, str]:
        """
        Pick the descriptor's fields out of a request body, checking types.

        With `partial=False` every field is required. Unknown keys are ignored.
        """
        fields: dict[str, str] = {}
        for spec in self.descriptor.fields:
            if spec.name not in body:
                if not partial:
                    raise BadRequest(f"{spec.label} is required")
                continue
            value = body[spec.name]
            if not isinstance(value, str):
                raise BadRequest(f"{spec.label} must be a string")
            fields[spec.name] = value
        return fields

    def _validated(self, fields: dict[str, str]) -> dict[str, str]:
        violation = validation.validate_fields(self.descriptor, fields)
        if violation is not None:
            raise BadRequest(violation.reason)
        return validation.normalize_fields(self.descriptor, fields)

    async def _fetch(self, entity_id: int) -> dict[str, Any] | None:
        # Ids past the integer column range were never issued.
        if entity_id > MAX_ENTITY_ID:
            return None
        return await self.table.get(entity_id)

    # Response shaping.

    def to_entity(self, row: dict[str, Any]) -> dict[str, Any]:
        return schemas.dump(self._model.model_validate(row))

    # Operations.

    async def list_entities(
        self,
        page_param: str | None = None,
        limit_param: str | None = None,
    ) -> list[dict[str, Any]] | dict[str, Any]:
        """
        Active entities, newest first.

        Without page/limit the whole collection comes back as a bare array;
        with either one the result is a pagination envelope.
        """
        d = self.descriptor
        if not pagination.is_requested(page_param, limit_param):
            async with storage_errors(d, "get", many=True):
                rows = await self.table.select(active_only=True)
            return [self.to_entity(row) for row in rows]

        page = pagination.resolve(page_param, limit_param)
        async with storage_errors(d, "get", many=True):
            total = await self.table.count(active_only=True)
            # Pages past the end are empty without a query.
            rows = []
            if page.offset < total:
                rows = await self.table.select(active_only=True, limit=page.limit, offset=page.offset)

        meta = schemas.PaginationMeta(
            page=page.page,
            limit=page.limit,
            total=total,
            total_pages=page.total_pages(total),
        )
        return {
            "data": [self.to_entity(row) for row in rows],
            "pagination": schemas.dump(meta),
        }

    async def get(self, raw_id: str) -> dict[str, Any]:
        d = self.descriptor
        entity_id = self.parse_id(raw_id)
        async with storage_errors(d, "get"):
            row = await self._fetch(entity_id)
        return self.to_entity(lifecycle.require_active(d, row))

    async def create(self, raw_body: bytes) -> dict[str, Any]:
        d = self.descriptor
        body = self.parse_body(raw_body)
        values = self._validated(self.string_fields(body, partial=False))

        async with storage_errors(d, "create"):
            row = await self.table.insert(values)
            if row is None:
                logger.error("insert_returned_nothing resource=%s", d.plural)
                raise Internal(d.failure_message("create"))

        logger.info("resource_created resource=%s id=%s", d.plural, row["id"])
        return self.to_entity(row)

    async def update(self, raw_id: str, raw_body: bytes) -> dict[str, Any]:
        d = self.descriptor
        entity_id = self.parse_id(raw_id)
        async with storage_errors(d, "update"):
            existing = await self._fetch(entity_id)
        lifecycle.require_active(d, existing)

        body = self.parse_body(raw_body)
        values = {
            name: value
            for name, value in self._validated(self.string_fields(body, partial=True)).items()
            if value
        }
        if not values:
            raise BadRequest("No fields to update")

        async with storage_errors(d, "update"):
            row = await self.table.update(entity_id, values)
        if row is None:
            # Soft-deleted between the check and the write.
            raise NotFound(d.not_found_message())

        logger.info("resource_updated resource=%s id=%s fields=%s", d.plural, entity_id, ",".join(values))
        return self.to_entity(row)

    async def delete(self, raw_id: str) -> dict[str, Any]:
        d = self.descriptor
        entity_id = self.parse_id(raw_id)
        async with storage_errors(d, "delete"):
            existing = await self._fetch(entity_id)
        lifecycle.require_deletable(d, existing)

        async with storage_errors(d, "delete"):
            row = await self.table.soft_delete(entity_id)
        if row is None:
            # Another request stamped deleted_at first.
            raise AlreadyDeleted(d.already_deleted_message())

        logger.info("resource_deleted resource=%s id=%s", d.plural, entity_id)
        return {"message": d.deleted_message(), d.name: self.to_entity(row)}
