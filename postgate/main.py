#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Postgate - FastAPI application factory
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import postgate.models  # noqa: F401  (registers tables on Base.metadata)
from postgate.core.config import get_settings
from postgate.core.database import create_all_tables, dispose_db, init_db
from postgate.core.errors import install_error_handlers
from postgate.routes import admin, auth, posts, users
from postgate.schemas import ERROR_RESPONSES

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings = get_settings()
    init_db()
    await create_all_tables()   # safe: CREATE TABLE IF NOT EXISTS
    log.info("%s %s started (%s)", settings.app_name, settings.app_version, settings.environment)
    yield
    await dispose_db()


# -----------------------------------------------------------------------------

def create_app() -> FastAPI:
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Blog post API with email-verified accounts and JWT sessions.",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # ── CORS ──────────────────────────────────────────────────────────────

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── API routers ───────────────────────────────────────────────────────

    prefix = "/api/v1"

    app.include_router(auth.router,  prefix=prefix, responses=ERROR_RESPONSES)
    app.include_router(users.router, prefix=prefix, responses=ERROR_RESPONSES)
    app.include_router(admin.router, prefix=prefix, responses=ERROR_RESPONSES)
    app.include_router(posts.router, prefix=prefix, responses=ERROR_RESPONSES)

    # ── Error handlers ────────────────────────────────────────────────────

    install_error_handlers(app)

    # ── Health check ──────────────────────────────────────────────────────

    @app.get("/api/health", tags=["system"])
    async def health():
        return {"status": "ok", "version": settings.app_version, "app": settings.app_name}

    return app


# -----------------------------------------------------------------------------

app = create_app()


# -----------------------------------------------------------------------------
