"""Async MongoDB helpers built on top of Motor.

Only generic utilities live here; domain repositories import these helpers and
build their own collections, indexes and ownership checks on top."""

from datetime import datetime, timezone
from functools import lru_cache

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from .settings import settings


@lru_cache
def get_mongo_client() -> AsyncIOMotorClient:
    """Return a cached Motor client configured via ``db_core.settings``."""

    return AsyncIOMotorClient(settings.uri, tz_aware=True)


def get_db() -> AsyncIOMotorDatabase:
    """Return the main application database defined by ``settings.db_name``."""

    client = get_mongo_client()
    return client[settings.db_name]


def utcnow() -> datetime:
    """Timestamp used for ``created_at``/``updated_at`` fields."""

    return datetime.now(timezone.utc)
