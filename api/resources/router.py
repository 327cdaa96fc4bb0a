"""
FastAPI routes for one resource.

Routing stays thin: pull raw values off the request and hand them to the
`ResourceHandler`. Ids and query values arrive as plain strings so the handler
can answer malformed input with its own 400 messages.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse

from .service import ResourceHandler


def build_router(handler: ResourceHandler) -> APIRouter:
    router = APIRouter()

    @router.get("")
    async def list_entities(
        page: str | None = Query(default=None),
        limit: str | None = Query(default=None),
    ) -> Any:
        return await handler.list_entities(page, limit)

    @router.get("/{entity_id}")
    async def get_entity(entity_id: str) -> dict:
        return await handler.get(entity_id)

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_entity(request: Request) -> JSONResponse:
        entity = await handler.create(await request.body())
        return JSONResponse(status_code=status.HTTP_201_CREATED, content=entity)

    @router.put("/{entity_id}")
    async def update_entity(entity_id: str, request: Request) -> dict:
        return await handler.update(entity_id, await request.body())

    @router.delete("/{entity_id}")
    async def delete_entity(entity_id: str) -> dict:
        return await handler.delete(entity_id)

    return router
