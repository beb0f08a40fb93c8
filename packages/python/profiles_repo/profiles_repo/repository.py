from __future__ import annotations

from typing import Any, Iterable, Optional
from uuid import uuid4

from db_core import get_db, utcnow
from loguru import logger
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from .errors import InvalidProfileError, ProfileCreationError, ProfileNotFoundError
from .models import AuthorSummary, Profile, ProfileUpdate

COLLECTION_NAME = "profiles"


def _collection():
    return get_db()[COLLECTION_NAME]


def _doc_to_model(doc: dict[str, Any]) -> Profile:
    payload = {
        "id": str(doc.get("_id") or doc["id"]),
        "user_id": doc["user_id"],
        "email": doc["email"],
        "display_name": doc["display_name"],
        "avatar": doc.get("avatar"),
        "bio": doc.get("bio"),
        "created_at": doc.get("created_at"),
        "updated_at": doc.get("updated_at"),
    }
    return Profile.model_validate(payload)


async def ensure_indexes() -> None:
    collection = _collection()
    await collection.create_index([("user_id", ASCENDING)], unique=True)
    await collection.create_index([("email", ASCENDING)], unique=True)


async def get_profile_by_user_id(user_id: str) -> Optional[Profile]:
    doc = await _collection().find_one({"user_id": user_id})
    return _doc_to_model(doc) if doc else None


async def get_profile(profile_id: str) -> Profile:
    doc = await _collection().find_one({"_id": profile_id})
    if not doc:
        raise ProfileNotFoundError(f"Profile {profile_id} not found")
    return _doc_to_model(doc)


async def get_author_summaries(profile_ids: Iterable[str]) -> dict[str, AuthorSummary]:
    """Return ``{profile_id: AuthorSummary}`` for every id that exists."""

    ids = list({pid for pid in profile_ids if pid})
    if not ids:
        return {}
    cursor = _collection().find(
        {"_id": {"$in": ids}},
        {"display_name": 1, "avatar": 1},
    )
    return {
        str(doc["_id"]): AuthorSummary(
            id=str(doc["_id"]),
            display_name=doc["display_name"],
            avatar=doc.get("avatar"),
        )
        async for doc in cursor
    }


async def ensure_profile(user_id: str, email: str, display_name: str) -> Profile:
    """
    Return the profile for ``user_id``, creating it on first registration.

    Two registrations for the same identity can race; the loser of the
    insert hits the unique index and re-reads the winner's record, first by
    identity and then by email. Only when neither lookup finds anything is
    the failure surfaced.
    """

    existing = await get_profile_by_user_id(user_id)
    if existing:
        return existing

    email = (email or "").strip().lower()
    display_name = (display_name or "").strip()
    if not email:
        raise InvalidProfileError("Email is required")
    if not display_name:
        display_name = email.split("@", 1)[0]

    collection = _collection()
    now = utcnow()
    record = {
        "_id": uuid4().hex,
        "user_id": user_id,
        "email": email,
        "display_name": display_name,
        "avatar": None,
        "bio": None,
        "created_at": now,
        "updated_at": now,
    }
    try:
        await collection.insert_one(record)
    except DuplicateKeyError as exc:
        logger.warning(
            "Profile insert for {user_id} collided with an existing record: {error}",
            user_id=user_id,
            error=exc,
        )
        doc = await collection.find_one({"user_id": user_id})
        if not doc:
            doc = await collection.find_one({"email": email})
        if doc:
            return _doc_to_model(doc)
        raise ProfileCreationError(f"Failed to create profile for user {user_id}") from exc

    logger.info("Created profile {profile_id} for user {user_id}", profile_id=record["_id"], user_id=user_id)
    return _doc_to_model(record)


async def update_profile(user_id: str, payload: ProfileUpdate) -> Profile:
    """Apply the owner's changes to their own profile."""

    updates = payload.model_dump(exclude_unset=True)
    if "display_name" in updates:
        name = (updates["display_name"] or "").strip()
        if not name:
            raise InvalidProfileError("Display name cannot be empty")
        updates["display_name"] = name
    if "bio" in updates and updates["bio"] is not None:
        updates["bio"] = updates["bio"].strip() or None

    collection = _collection()
    if not updates:
        doc = await collection.find_one({"user_id": user_id})
    else:
        updates["updated_at"] = utcnow()
        doc = await collection.find_one_and_update(
            {"user_id": user_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
    if not doc:
        raise ProfileNotFoundError(f"Profile not found for user {user_id}")
    return _doc_to_model(doc)
