"""Comments on ideas with one level of threaded replies."""

from __future__ import annotations

from typing import Iterable, List, Optional
from uuid import uuid4

from db_core import get_db, utcnow
from loguru import logger
from pymongo import ASCENDING, ReturnDocument

from profiles_repo import get_author_summaries

from .errors import (
    CommentNotFoundError,
    IdeaNotFoundError,
    InvalidInputError,
    PermissionDeniedError,
)
from .models import Comment, CommentThread
from .repo import idea_exists

COLLECTION_NAME = "comments"


def _collection():
    return get_db()[COLLECTION_NAME]


def _doc_to_model(doc: dict) -> Comment:
    return Comment(
        id=str(doc.get("_id") or doc["id"]),
        idea_id=doc["idea_id"],
        author_id=doc["author_id"],
        content=doc["content"],
        parent_id=doc.get("parent_id"),
        created_at=doc["created_at"],
        updated_at=doc["updated_at"],
    )


def _clean_content(content: Optional[str]) -> str:
    text = (content or "").strip()
    if not text:
        raise InvalidInputError("Content is required")
    return text


def build_comment_tree(comments: Iterable[Comment]) -> List[CommentThread]:
    """
    Group flat comments into top-level threads with their direct replies.

    Threads are ordered newest first, replies oldest first. Replies whose
    parent is not among ``comments`` are dropped, and replies to replies are
    not nested further.
    """

    comments = list(comments)
    threads = {
        comment.id: CommentThread(**comment.model_dump())
        for comment in comments
        if comment.parent_id is None
    }
    for comment in sorted(comments, key=lambda c: c.created_at):
        if comment.parent_id is None:
            continue
        parent = threads.get(comment.parent_id)
        if parent is not None:
            parent.replies.append(comment)
    return sorted(threads.values(), key=lambda t: t.created_at, reverse=True)


async def ensure_indexes() -> None:
    collection = _collection()
    await collection.create_index([("idea_id", ASCENDING), ("created_at", ASCENDING)])
    await collection.create_index([("parent_id", ASCENDING)])
    await collection.create_index([("author_id", ASCENDING)])


async def _attach_authors(comments: List[Comment]) -> List[Comment]:
    authors = await get_author_summaries(comment.author_id for comment in comments)
    for comment in comments:
        comment.author = authors.get(comment.author_id)
    return comments


async def list_comments_for_idea(idea_id: str) -> List[CommentThread]:
    cursor = _collection().find({"idea_id": idea_id}).sort("created_at", ASCENDING)
    comments = [_doc_to_model(doc) async for doc in cursor]
    await _attach_authors(comments)
    return build_comment_tree(comments)


async def _fetch_owned(comment_id: str, author_id: str) -> dict:
    doc = await _collection().find_one({"_id": comment_id})
    if not doc:
        raise CommentNotFoundError("Comment not found")
    if doc["author_id"] != author_id:
        raise PermissionDeniedError(f"Comment {comment_id} is not owned by {author_id}")
    return doc


async def _resolve_parent(idea_id: str, parent_id: str) -> str:
    """Return the top-level comment a reply should hang under."""

    parent = await _collection().find_one({"_id": parent_id, "idea_id": idea_id})
    if not parent:
        raise CommentNotFoundError("Parent comment not found")
    # Replies to replies are attached to the thread's top-level comment.
    return parent.get("parent_id") or str(parent["_id"])


async def create_comment(
    idea_id: str,
    author_id: str,
    content: Optional[str],
    parent_id: Optional[str] = None,
) -> Comment:
    """Add a comment, or a reply when ``parent_id`` is given."""

    text = _clean_content(content)
    if not await idea_exists(idea_id):
        raise IdeaNotFoundError(f"Idea {idea_id} not found")
    if parent_id:
        parent_id = await _resolve_parent(idea_id, parent_id)

    now = utcnow()
    doc = {
        "_id": uuid4().hex,
        "idea_id": idea_id,
        "author_id": author_id,
        "content": text,
        "parent_id": parent_id or None,
        "created_at": now,
        "updated_at": now,
    }
    await _collection().insert_one(doc)
    logger.debug(
        "Comment {comment_id} added to idea {idea_id} by {author_id}",
        comment_id=doc["_id"],
        idea_id=idea_id,
        author_id=author_id,
    )
    [comment] = await _attach_authors([_doc_to_model(doc)])
    return comment


async def update_comment(comment_id: str, author_id: str, content: Optional[str]) -> Comment:
    text = _clean_content(content)
    await _fetch_owned(comment_id, author_id)
    doc = await _collection().find_one_and_update(
        {"_id": comment_id},
        {"$set": {"content": text, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise CommentNotFoundError("Comment not found")
    [comment] = await _attach_authors([_doc_to_model(doc)])
    return comment


async def delete_comment(comment_id: str, author_id: str) -> None:
    """Delete a comment and its replies. Only the author may do this."""

    await _fetch_owned(comment_id, author_id)
    collection = _collection()
    await collection.delete_many({"parent_id": comment_id})
    await collection.delete_one({"_id": comment_id})
