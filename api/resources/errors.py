"""
Storage-failure mapping for resource operations.

Handlers wrap each operation in `storage_errors(...)`. Taxonomy errors raised
inside pass through unchanged; a uniqueness violation becomes a 409; anything
else is logged with its traceback and surfaces as an opaque 500.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from core.errors import ApiError, Conflict, Internal

from .descriptors import EntityDescriptor, FieldSpec
from .repository import UniqueViolation

logger = logging.getLogger(__name__)


def violated_field(descriptor: EntityDescriptor, exc: UniqueViolation) -> FieldSpec | None:
    """
    Best-effort match of a unique violation to the descriptor field behind it.

    Postgres names unique constraints `<table>_<column>_key` by default; custom
    names usually still contain the column name.
    """
    unique = descriptor.unique_fields
    if exc.field is not None:
        for spec in unique:
            if spec.name == exc.field:
                return spec
    constraint = (exc.constraint or "").lower()
    for spec in unique:
        if spec.name.lower() in constraint:
            return spec
    return unique[0] if unique else None


def conflict_for(descriptor: EntityDescriptor, exc: UniqueViolation) -> Conflict:
    spec = violated_field(descriptor, exc)
    if spec is None:
        return Conflict(f"{descriptor.label} already exists")
    return Conflict(f"{spec.label} already exists")


@asynccontextmanager
async def storage_errors(
    descriptor: EntityDescriptor,
    action: str,
    *,
    many: bool = False,
) -> AsyncIterator[None]:
    try:
        yield
    except ApiError:
        raise
    except UniqueViolation as exc:
        logger.info(
            "unique_violation resource=%s action=%s constraint=%s",
            descriptor.plural,
            action,
            exc.constraint,
        )
        raise conflict_for(descriptor, exc) from exc
    except Exception as exc:
        logger.exception("storage_failed resource=%s action=%s", descriptor.plural, action)
        raise Internal(descriptor.failure_message(action, many=many)) from exc
