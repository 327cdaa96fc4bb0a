from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from core import db, settings
from core.errors import register_error_handlers
from core.logging import configure_logging
from resources.descriptors import DESCRIPTORS, EntityDescriptor
from resources.repository import PgTable
from resources.router import build_router
from resources.service import ResourceHandler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


def create_app(table_factory: Callable[[EntityDescriptor], Any] | None = None) -> FastAPI:
    """
    Build the API. `table_factory` swaps the Postgres tables for another
    storage (tests); the DB pool lifespan is only attached for Postgres.
    """
    configure_logging(settings.log_level())

    app = FastAPI(lifespan=lifespan if table_factory is None else None)
    factory = table_factory or PgTable

    # Allow local frontend dev server to call this API from the browser.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    for descriptor in DESCRIPTORS:
        handler = ResourceHandler(descriptor, factory(descriptor))
        app.include_router(build_router(handler), prefix=descriptor.path, tags=[descriptor.plural])

    @app.get("/", include_in_schema=False)
    def root() -> RedirectResponse:
        return RedirectResponse(url="/api")

    @app.get("/api")
    def index() -> dict:
        return {
            "message": "Dayan mock API",
            "endpoints": {d.plural: d.path for d in DESCRIPTORS},
        }

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("starting host=%s port=%s", settings.host(), settings.port())
    uvicorn.run(app, host=settings.host(), port=settings.port())
