"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection, initialises the schema
and wraps it in a :class:`~fairmap.db.repository.SqliteRepository` shared
across all requests via ``request.app.state.repo``.  On shutdown it closes
the connection cleanly.

Routers
-------
    /entries, /search, /ratings, /users, /login, /logout,
    /subscribe-to-bbox, /unsubscribe-all-bboxes, /bbox-subscriptions,
    /tags, /categories, /count/*, /duplicates, /server/version
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from fairmap import __version__
from fairmap.api.errors import install_error_handlers
from fairmap.api.routers import entries as entries_router
from fairmap.api.routers import meta as meta_router
from fairmap.api.routers import ratings as ratings_router
from fairmap.api.routers import search as search_router
from fairmap.api.routers import subscriptions as subscriptions_router
from fairmap.api.routers import users as users_router
from fairmap.config import settings
from fairmap.core.search import SearchConfig
from fairmap.db import SqliteRepository, get_connection, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB on startup and close it on shutdown."""
    conn = get_connection()
    init_db(conn)
    app.state.repo = SqliteRepository(conn)
    logger.info("Database ready at %s", settings.db_path)
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="fairmap API",
        description=(
            "Directory of geotagged entries with categories, tags and "
            "community ratings.  Exposes entry CRUD, bounded search, "
            "ratings, users and bounding-box subscriptions."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.search_config = SearchConfig.from_settings(settings)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie="fairmap_session",
        same_site="lax",
        https_only=False,
    )
    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    app.include_router(entries_router.router, prefix="/entries", tags=["entries"])
    app.include_router(search_router.router, prefix="/search", tags=["search"])
    app.include_router(ratings_router.router, prefix="/ratings", tags=["ratings"])
    app.include_router(users_router.router, tags=["users"])
    app.include_router(subscriptions_router.router, tags=["subscriptions"])
    app.include_router(meta_router.router, tags=["meta"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn fairmap.api.app:app --reload
app = create_app()
