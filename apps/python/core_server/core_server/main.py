"""FastAPI application composing the ideaboard routers."""

from __future__ import annotations

import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config import settings

import ideas_repo
import profiles_repo
from ideas_api import (
    comments_router,
    idea_comments_router,
    profile_router,
    register_exception_handlers,
    router as ideas_router,
)
from ideas_api.kratos_client import close_client


def _configure_logging() -> None:
    level = os.getenv("LOG_LEVEL") or os.getenv("LOGURU_LEVEL") or "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
    logger.info("Logger configured at {level} level", level=level.upper())


_configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_indexes:
        await profiles_repo.ensure_indexes()
        await ideas_repo.ensure_indexes()
        logger.info("MongoDB indexes ensured")
    yield
    await close_client()


app = FastAPI(title=settings.api_title, version=settings.api_version, lifespan=lifespan)

# Allow the front-end origins (with credentials) to talk to this API.
if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
logger.info("CORS middleware added {origins}", origins=settings.cors_allow_origins)

register_exception_handlers(app)


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Simple liveness endpoint for load balancers and probes."""

    return {"status": "ok"}


app.include_router(ideas_router)
app.include_router(idea_comments_router)
app.include_router(comments_router)
app.include_router(profile_router)

"""Run with:

    uvicorn core_server.main:app --host 0.0.0.0 --port 8000 --reload
"""
