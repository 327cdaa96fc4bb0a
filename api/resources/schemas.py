"""
Pydantic response models, generated per entity descriptor.

Rows come out of storage with snake_case columns; clients see camelCase keys.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, create_model
from pydantic.alias_generators import to_camel

from .descriptors import EntityDescriptor


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntityResponse(CamelModel):
    id: int
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None


class PaginationMeta(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


def entity_model(descriptor: EntityDescriptor) -> type[EntityResponse]:
    fields: dict[str, Any] = {name: (str, ...) for name in descriptor.field_names}
    return create_model(
        f"{descriptor.label}Response",
        __base__=EntityResponse,
        **fields,
    )


def dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)
