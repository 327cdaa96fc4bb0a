"""
Resource persistence (raw SQL) over one table per entity descriptor.

`PgTable` is the storage capability the resource handler consumes. Any object
exposing the same coroutine methods can replace it (tests use an in-memory
table).

Identifiers in the SQL below come from descriptors, never from requests;
values always go through asyncpg placeholders.
"""

from __future__ import annotations

from typing import Any

import asyncpg

from core import db

from .descriptors import EntityDescriptor


class UniqueViolation(Exception):
    """
    Storage rejected a write because it would duplicate a unique value.
    """

    def __init__(self, constraint: str | None = None, *, field: str | None = None) -> None:
        super().__init__(constraint or field or "unique violation")
        self.constraint = constraint
        self.field = field


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _active_filter(active_only: bool) -> str:
    return "WHERE deleted_at IS NULL" if active_only else ""


class PgTable:
    def __init__(self, descriptor: EntityDescriptor) -> None:
        self.descriptor = descriptor
        self._table = _quote(descriptor.table)
        self._columns = ", ".join(
            ["id", *(_quote(name) for name in descriptor.field_names), "created_at", "updated_at", "deleted_at"]
        )

    async def get(self, entity_id: int) -> dict[str, Any] | None:
        """
        Fetch a row in any lifecycle state.
        """
        return await db.fetch_one(
            f"""
            SELECT {self._columns}
            FROM {self._table}
            WHERE id = $1
            LIMIT 1
            """,
            entity_id,
        )

    async def select(
        self,
        *,
        active_only: bool = True,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """
        Newest first. Without `limit` every matching row is returned.
        """
        sql = f"""
            SELECT {self._columns}
            FROM {self._table}
            {_active_filter(active_only)}
            ORDER BY created_at DESC, id DESC
        """
        if limit is None:
            return await db.fetch_all(sql)
        return await db.fetch_all(sql + " LIMIT $1 OFFSET $2", limit, offset)

    async def count(self, *, active_only: bool = True) -> int:
        value = await db.fetch_value(
            f"""
            SELECT count(*)
            FROM {self._table}
            {_active_filter(active_only)}
            """
        )
        return int(value or 0)

    async def insert(self, values: dict[str, str]) -> dict[str, Any] | None:
        names = list(values)
        placeholders = ", ".join(f"${i}" for i in range(1, len(names) + 1))
        try:
            return await db.fetch_one(
                f"""
                INSERT INTO {self._table} ({", ".join(_quote(n) for n in names)})
                VALUES ({placeholders})
                RETURNING {self._columns}
                """,
                *(values[n] for n in names),
            )
        except asyncpg.UniqueViolationError as exc:
            raise UniqueViolation(getattr(exc, "constraint_name", None)) from exc

    async def update(self, entity_id: int, values: dict[str, str]) -> dict[str, Any] | None:
        """
        Apply `values` to an active row and refresh `updated_at`.

        Returns None when the row is missing or was soft-deleted meanwhile.
        """
        names = list(values)
        assignments = ", ".join(f"{_quote(n)} = ${i}" for i, n in enumerate(names, start=2))
        try:
            return await db.fetch_one(
                f"""
                UPDATE {self._table}
                SET {assignments},
                    updated_at = greatest(now(), updated_at + interval '1 microsecond')
                WHERE id = $1
                  AND deleted_at IS NULL
                RETURNING {self._columns}
                """,
                entity_id,
                *(values[n] for n in names),
            )
        except asyncpg.UniqueViolationError as exc:
            raise UniqueViolation(getattr(exc, "constraint_name", None)) from exc

    async def soft_delete(self, entity_id: int) -> dict[str, Any] | None:
        """
        Stamp `deleted_at` on an active row.

        Returns None when the row is missing or already deleted.
        """
        return await db.fetch_one(
            f"""
            UPDATE {self._table}
            SET deleted_at = now()
            WHERE id = $1
              AND deleted_at IS NULL
            RETURNING {self._columns}
            """,
            entity_id,
        )
