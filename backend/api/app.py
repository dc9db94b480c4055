"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection and initialises the
schema.  Handlers share it through ``backend.api.dependencies.locked_db``,
which serialises them on ``app.state.db_lock``.  On shutdown the connection
is closed.

Routers
-------
    /scrape     : TOC initialisation, batch steps, re-scrape, verification
    /articles   : Article aggregates and their paragraphs
    /paragraphs : Random race paragraphs and typing targets
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.db import get_connection, init_db

from backend.api.routers import articles as articles_router
from backend.api.routers import paragraphs as paragraphs_router
from backend.api.routers import scrape as scrape_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB on startup and close it on shutdown."""
    conn = get_connection()
    init_db(conn)
    app.state.db = conn
    app.state.db_lock = threading.Lock()
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Type Harder API",
        description=(
            "Scrapes a sequence-structured essay site into typing-race "
            "paragraphs and serves them, with their canonical typing text, "
            "to race clients."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(scrape_router.router, prefix="/scrape", tags=["scrape"])
    app.include_router(articles_router.router, prefix="/articles", tags=["articles"])
    app.include_router(paragraphs_router.router, prefix="/paragraphs", tags=["paragraphs"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn backend.api.app:app --reload
app = create_app()
