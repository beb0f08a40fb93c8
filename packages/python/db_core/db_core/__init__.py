"""Minimal MongoDB helpers shared across domain repositories.

Example usage in a domain repository:

    from db_core import get_db

    async def list_ideas():
        db = get_db()
        cursor = db["ideas"].find({"author_id": "profile-123"}).sort("created_at", -1)
        return await cursor.to_list(length=100)
"""

from .settings import MongoSettings, settings
from .mongo import get_mongo_client, get_db, utcnow

__all__ = [
    "MongoSettings",
    "settings",
    "get_mongo_client",
    "get_db",
    "utcnow",
]
