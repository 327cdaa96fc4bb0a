"""
SQL shape tests for `PgTable`, with `core.db` helpers replaced by recorders.
"""

from __future__ import annotations

from typing import Any

import asyncpg
import pytest

from core import db
from resources.descriptors import ITEMS, USERS
from resources.repository import PgTable, UniqueViolation


class Recorder:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.result = result
        self.error = error

    async def __call__(self, sql: str, *args: Any) -> Any:
        self.calls.append((" ".join(sql.split()), args))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture()
def fetch_one(monkeypatch: pytest.MonkeyPatch) -> Recorder:
    recorder = Recorder(result={"id": 1})
    monkeypatch.setattr(db, "fetch_one", recorder)
    return recorder


@pytest.mark.asyncio
async def test_get_reads_any_state(fetch_one: Recorder) -> None:
    await PgTable(USERS).get(3)

    sql, args = fetch_one.calls[0]
    assert 'FROM "users" WHERE id = $1' in sql
    assert "deleted_at IS NULL" not in sql
    assert args == (3,)


@pytest.mark.asyncio
async def test_select_composes_active_filter_and_paging(monkeypatch: pytest.MonkeyPatch) -> None:
    recorder = Recorder(result=[])
    monkeypatch.setattr(db, "fetch_all", recorder)
    table = PgTable(ITEMS)

    await table.select(active_only=True)
    await table.select(active_only=True, limit=10, offset=20)
    await table.select(active_only=False)

    unpaged, paged, everything = recorder.calls
    assert "WHERE deleted_at IS NULL ORDER BY created_at DESC, id DESC" in unpaged[0]
    assert "LIMIT" not in unpaged[0]
    assert paged[0].endswith("LIMIT $1 OFFSET $2")
    assert paged[1] == (10, 20)
    assert "deleted_at IS NULL" not in everything[0]


@pytest.mark.asyncio
async def test_count(monkeypatch: pytest.MonkeyPatch) -> None:
    recorder = Recorder(result=7)
    monkeypatch.setattr(db, "fetch_value", recorder)

    assert await PgTable(USERS).count() == 7
    assert "SELECT count(*) FROM \"users\" WHERE deleted_at IS NULL" in recorder.calls[0][0]


@pytest.mark.asyncio
async def test_insert_uses_placeholders(fetch_one: Recorder) -> None:
    await PgTable(USERS).insert({"name": "Ada", "email": "ada@example.com"})

    sql, args = fetch_one.calls[0]
    assert 'INSERT INTO "users" ("name", "email") VALUES ($1, $2)' in sql
    assert "RETURNING id" in sql
    assert args == ("Ada", "ada@example.com")


@pytest.mark.asyncio
async def test_update_only_touches_active_rows(fetch_one: Recorder) -> None:
    await PgTable(ITEMS).update(5, {"description": "new"})

    sql, args = fetch_one.calls[0]
    assert 'SET "description" = $2' in sql
    assert "updated_at = greatest(now(), updated_at + interval '1 microsecond')" in sql
    assert "WHERE id = $1 AND deleted_at IS NULL" in sql
    assert args == (5, "new")


@pytest.mark.asyncio
async def test_soft_delete_stamps_active_rows(fetch_one: Recorder) -> None:
    await PgTable(ITEMS).soft_delete(9)

    sql, args = fetch_one.calls[0]
    assert "SET deleted_at = now() WHERE id = $1 AND deleted_at IS NULL" in sql
    assert args == (9,)


@pytest.mark.asyncio
async def test_unique_violation_is_translated(monkeypatch: pytest.MonkeyPatch) -> None:
    error = asyncpg.UniqueViolationError("duplicate key value violates unique constraint")
    error.constraint_name = "users_email_key"
    monkeypatch.setattr(db, "fetch_one", Recorder(error=error))

    with pytest.raises(UniqueViolation) as exc_info:
        await PgTable(USERS).insert({"name": "Ada", "email": "ada@example.com"})
    assert exc_info.value.constraint == "users_email_key"

    with pytest.raises(UniqueViolation):
        await PgTable(USERS).update(1, {"email": "ada@example.com"})


def test_sanitize_database_url_drops_sslmode() -> None:
    url = "postgresql://u:p@localhost:5432/app?sslmode=require&application_name=api"
    assert db._sanitize_database_url(url) == "postgresql://u:p@localhost:5432/app?application_name=api"


def test_database_url_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError, match="DATABASE_URL is not set"):
        db.database_url()
