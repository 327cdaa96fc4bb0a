"""
Soft-delete lifecycle.

A row is Active while `deleted_at IS NULL` and Deleted once it is stamped.
The transition is one-way: nothing here (or in the repository) clears
`deleted_at`.
"""

from __future__ import annotations

import enum
from typing import Any

from core.errors import AlreadyDeleted, NotFound

from .descriptors import EntityDescriptor


class LifecycleState(str, enum.Enum):
    ACTIVE = "active"
    DELETED = "deleted"


def state_of(row: dict[str, Any]) -> LifecycleState:
    if row.get("deleted_at") is None:
        return LifecycleState.ACTIVE
    return LifecycleState.DELETED


def is_active(row: dict[str, Any] | None) -> bool:
    return row is not None and state_of(row) is LifecycleState.ACTIVE


def require_active(descriptor: EntityDescriptor, row: dict[str, Any] | None) -> dict[str, Any]:
    """
    Reads and updates treat a soft-deleted row exactly like a missing one.
    """
    if not is_active(row):
        raise NotFound(descriptor.not_found_message())
    return row


def require_deletable(descriptor: EntityDescriptor, row: dict[str, Any] | None) -> dict[str, Any]:
    """
    Deletes tell "never existed" (404) apart from "already deleted" (410).
    """
    if row is None:
        raise NotFound(descriptor.not_found_message())
    if state_of(row) is LifecycleState.DELETED:
        raise AlreadyDeleted(descriptor.already_deleted_message())
    return row
