"""Async persistence layer for ideas along with ownership enforcement."""

from __future__ import annotations

import math
import re
from typing import Iterable, List, Optional
from uuid import uuid4

from db_core import get_db, utcnow
from loguru import logger
from pymongo import ASCENDING, DESCENDING

from profiles_repo import get_author_summaries

from .errors import IdeaNotFoundError, InvalidInputError, PermissionDeniedError
from .models import Idea, IdeaCreate, IdeaPage, IdeaSort, IdeaUpdate, Pagination

COLLECTION_NAME = "ideas"
COMMENTS_COLLECTION = "comments"
MAX_PAGE_SIZE = 100

# The vote ledger never leaves the repository.
_PUBLIC_PROJECTION = {"votes": 0}

_SORTS = {
    IdeaSort.NEWEST: [("created_at", DESCENDING)],
    IdeaSort.POPULAR: [("upvotes", DESCENDING), ("created_at", DESCENDING)],
    IdeaSort.VALIDATED: [
        ("is_validated", DESCENDING),
        ("upvotes", DESCENDING),
        ("created_at", DESCENDING),
    ],
}


def _collection():
    return get_db()[COLLECTION_NAME]


def _doc_to_model(doc: dict) -> Idea:
    return Idea(
        id=str(doc.get("_id") or doc["id"]),
        title=doc["title"],
        description=doc["description"],
        tags=list(doc.get("tags") or []),
        author_id=doc["author_id"],
        upvotes=int(doc.get("upvotes", 0)),
        downvotes=int(doc.get("downvotes", 0)),
        is_validated=bool(doc.get("is_validated", False)),
        created_at=doc["created_at"],
        updated_at=doc["updated_at"],
    )


def _clean_tags(tags: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for tag in tags:
        value = (tag or "").strip()
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def _required_text(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidInputError(f"{field} is required")
    return text


async def ensure_indexes() -> None:
    collection = _collection()
    await collection.create_index([("created_at", DESCENDING)])
    await collection.create_index([("upvotes", DESCENDING)])
    await collection.create_index([("author_id", ASCENDING), ("created_at", DESCENDING)])
    await collection.create_index([("tags", ASCENDING)])


async def _comment_counts(idea_ids: List[str]) -> dict[str, int]:
    if not idea_ids:
        return {}
    pipeline = [
        {"$match": {"idea_id": {"$in": idea_ids}}},
        {"$group": {"_id": "$idea_id", "count": {"$sum": 1}}},
    ]
    cursor = get_db()[COMMENTS_COLLECTION].aggregate(pipeline)
    return {doc["_id"]: doc["count"] async for doc in cursor}


async def _enrich(ideas: List[Idea]) -> List[Idea]:
    """Attach author summaries and comment counts."""

    authors = await get_author_summaries(idea.author_id for idea in ideas)
    counts = await _comment_counts([idea.id for idea in ideas])
    for idea in ideas:
        idea.author = authors.get(idea.author_id)
        idea.comments_count = counts.get(idea.id, 0)
    return ideas


async def _fetch_owned(idea_id: str, author_id: str) -> dict:
    doc = await _collection().find_one({"_id": idea_id}, _PUBLIC_PROJECTION)
    if not doc:
        raise IdeaNotFoundError(f"Idea {idea_id} not found")
    if doc["author_id"] != author_id:
        raise PermissionDeniedError(f"Idea {idea_id} is not owned by {author_id}")
    return doc


async def create_idea(author_id: str, payload: IdeaCreate) -> Idea:
    """Submit a new idea with zeroed counters."""

    now = utcnow()
    doc = {
        "_id": uuid4().hex,
        "title": _required_text(payload.title, "Title"),
        "description": _required_text(payload.description, "Description"),
        "tags": _clean_tags(payload.tags),
        "author_id": author_id,
        "upvotes": 0,
        "downvotes": 0,
        "is_validated": False,
        "votes": {},
        "created_at": now,
        "updated_at": now,
    }
    await _collection().insert_one(doc)
    logger.info("Idea {idea_id} created by {author_id}", idea_id=doc["_id"], author_id=author_id)
    [idea] = await _enrich([_doc_to_model(doc)])
    return idea


async def get_idea(idea_id: str) -> Idea:
    doc = await _collection().find_one({"_id": idea_id}, _PUBLIC_PROJECTION)
    if not doc:
        raise IdeaNotFoundError(f"Idea {idea_id} not found")
    [idea] = await _enrich([_doc_to_model(doc)])
    return idea


async def idea_exists(idea_id: str) -> bool:
    return await _collection().count_documents({"_id": idea_id}, limit=1) > 0


async def list_ideas(
    search: str = "",
    tags: Optional[Iterable[str]] = None,
    sort_by: IdeaSort = IdeaSort.POPULAR,
    page: int = 1,
    limit: int = 10,
) -> IdeaPage:
    """Return one page of ideas matching the search text and tags."""

    if page < 1:
        raise InvalidInputError("page must be >= 1")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise InvalidInputError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

    query: dict = {}
    search = (search or "").strip()
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [{"title": pattern}, {"description": pattern}]
    wanted_tags = _clean_tags(tags or [])
    if wanted_tags:
        query["tags"] = {"$in": wanted_tags}

    collection = _collection()
    total = await collection.count_documents(query)
    cursor = (
        collection.find(query, _PUBLIC_PROJECTION)
        .sort(_SORTS[sort_by])
        .skip((page - 1) * limit)
        .limit(limit)
    )
    ideas = [_doc_to_model(doc) async for doc in cursor]
    await _enrich(ideas)

    return IdeaPage(
        ideas=ideas,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


async def list_ideas_by_author(author_id: str) -> List[Idea]:
    cursor = (
        _collection()
        .find({"author_id": author_id}, _PUBLIC_PROJECTION)
        .sort("created_at", DESCENDING)
    )
    ideas = [_doc_to_model(doc) async for doc in cursor]
    return await _enrich(ideas)


async def count_contributions(author_id: str) -> tuple[int, int]:
    """Return ``(ideas_count, comments_count)`` authored by the profile."""

    ideas = await _collection().count_documents({"author_id": author_id})
    comments = await get_db()[COMMENTS_COLLECTION].count_documents({"author_id": author_id})
    return ideas, comments


async def update_idea(idea_id: str, author_id: str, payload: IdeaUpdate) -> Idea:
    """Edit title, description or tags. Only the author may do this."""

    await _fetch_owned(idea_id, author_id)

    changes = payload.model_dump(exclude_unset=True)
    updates: dict = {}
    if "title" in changes:
        updates["title"] = _required_text(changes["title"], "Title")
    if "description" in changes:
        updates["description"] = _required_text(changes["description"], "Description")
    if changes.get("tags") is not None:
        updates["tags"] = _clean_tags(changes["tags"])

    if updates:
        updates["updated_at"] = utcnow()
        result = await _collection().update_one({"_id": idea_id}, {"$set": updates})
        if not result.matched_count:
            raise IdeaNotFoundError(f"Idea {idea_id} not found")
    return await get_idea(idea_id)


async def delete_idea(idea_id: str, author_id: str) -> None:
    """Delete an idea with its votes and comments. Only the author may do this."""

    await _fetch_owned(idea_id, author_id)
    await _collection().delete_one({"_id": idea_id})
    result = await get_db()[COMMENTS_COLLECTION].delete_many({"idea_id": idea_id})
    logger.info(
        "Idea {idea_id} deleted by {author_id} ({comments} comments removed)",
        idea_id=idea_id,
        author_id=author_id,
        comments=result.deleted_count,
    )
