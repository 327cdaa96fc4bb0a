from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from main import create_app
from resources.descriptors import EntityDescriptor
from resources.repository import UniqueViolation
from resources.service import ResourceHandler


class MemoryTable:
    """
    In-memory stand-in for `PgTable`.

    Mirrors the Postgres behavior the handler relies on: identity ids that are
    never reused, unique constraints that also cover soft-deleted rows, and a
    clock that moves forward on every write.
    """

    def __init__(self, descriptor: EntityDescriptor) -> None:
        self.descriptor = descriptor
        self.rows: dict[int, dict[str, Any]] = {}
        self.fail_with: Exception | None = None
        self.insert_returns_nothing = False
        self._next_id = 1
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _ensure_unique(self, values: dict[str, str], *, exclude_id: int | None = None) -> None:
        for spec in self.descriptor.unique_fields:
            if spec.name not in values:
                continue
            for row in self.rows.values():
                if row["id"] != exclude_id and row[spec.name] == values[spec.name]:
                    raise UniqueViolation(f"{self.descriptor.table}_{spec.name}_key")

    async def get(self, entity_id: int) -> dict[str, Any] | None:
        self._maybe_fail()
        row = self.rows.get(entity_id)
        return dict(row) if row is not None else None

    async def select(
        self,
        *,
        active_only: bool = True,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        self._maybe_fail()
        rows = [r for r in self.rows.values() if not active_only or r["deleted_at"] is None]
        rows.sort(key=lambda r: (r["created_at"], r["id"]), reverse=True)
        if limit is not None:
            rows = rows[offset : offset + limit]
        return [dict(r) for r in rows]

    async def count(self, *, active_only: bool = True) -> int:
        self._maybe_fail()
        return sum(1 for r in self.rows.values() if not active_only or r["deleted_at"] is None)

    async def insert(self, values: dict[str, str]) -> dict[str, Any] | None:
        self._maybe_fail()
        if self.insert_returns_nothing:
            return None
        self._ensure_unique(values)
        now = self._now()
        row = {
            "id": self._next_id,
            **values,
            "created_at": now,
            "updated_at": now,
            "deleted_at": None,
        }
        self._next_id += 1
        self.rows[row["id"]] = row
        return dict(row)

    async def update(self, entity_id: int, values: dict[str, str]) -> dict[str, Any] | None:
        self._maybe_fail()
        row = self.rows.get(entity_id)
        if row is None or row["deleted_at"] is not None:
            return None
        self._ensure_unique(values, exclude_id=entity_id)
        row.update(values)
        row["updated_at"] = self._now()
        return dict(row)

    async def soft_delete(self, entity_id: int) -> dict[str, Any] | None:
        self._maybe_fail()
        row = self.rows.get(entity_id)
        if row is None or row["deleted_at"] is not None:
            return None
        row["deleted_at"] = self._now()
        return dict(row)


@pytest.fixture()
def tables() -> dict[str, MemoryTable]:
    return {}


@pytest.fixture()
def client(tables: dict[str, MemoryTable]) -> TestClient:
    def factory(descriptor: EntityDescriptor) -> MemoryTable:
        table = MemoryTable(descriptor)
        tables[descriptor.plural] = table
        return table

    return TestClient(create_app(factory), raise_server_exceptions=False)


@pytest.fixture()
def make_handler():
    def build(descriptor: EntityDescriptor) -> tuple[ResourceHandler, MemoryTable]:
        table = MemoryTable(descriptor)
        return ResourceHandler(descriptor, table), table

    return build
