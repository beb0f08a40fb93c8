from datetime import timedelta
from uuid import uuid4

import pytest
from mongomock_motor import AsyncMongoMockClient

from db_core import mongo, utcnow


@pytest.fixture(autouse=True)
def mock_db(monkeypatch):
    """Point every repository at a fresh in-memory database."""

    client = AsyncMongoMockClient()
    monkeypatch.setattr(mongo, "get_mongo_client", lambda: client)
    return client[mongo.settings.db_name]


@pytest.fixture()
def seed_idea(mock_db):
    """Insert an idea whose vote ledger holds the requested number of votes."""

    async def _seed(upvotes=0, downvotes=0, is_validated=False, **fields):
        now = utcnow() - timedelta(minutes=1)
        votes = {}
        for prefix, vote_type, count in (("up", "UPVOTE", upvotes), ("down", "DOWNVOTE", downvotes)):
            for index in range(count):
                votes[f"{prefix}{index}"] = {
                    "id": uuid4().hex,
                    "vote_type": vote_type,
                    "created_at": now,
                    "updated_at": now,
                }
        doc = {
            "_id": uuid4().hex,
            "title": "Shared tool library",
            "description": "Lend drills and ladders to neighbours.",
            "tags": ["Community"],
            "author_id": "author-1",
            "upvotes": upvotes,
            "downvotes": downvotes,
            "is_validated": is_validated,
            "votes": votes,
            "created_at": now,
            "updated_at": now,
        }
        doc.update(fields)
        await mock_db["ideas"].insert_one(doc)
        return doc["_id"]

    return _seed


class InterleavedCollection:
    """Collection proxy that lets queued writes land just before each ``update_one``."""

    def __init__(self, inner, competing):
        self._inner = inner
        self._competing = list(competing)

    def __getattr__(self, name):
        return getattr(self._inner, name)

    async def update_one(self, *args, **kwargs):
        if self._competing:
            await self._competing.pop(0)()
        return await self._inner.update_one(*args, **kwargs)


@pytest.fixture()
def interleave(mock_db, monkeypatch):
    """Route a repository module's ``ideas`` collection through ``InterleavedCollection``."""

    def install(module, *competing):
        proxy = InterleavedCollection(mock_db["ideas"], competing)
        monkeypatch.setattr(module, "get_db", lambda: {"ideas": proxy})
        return proxy

    return install
