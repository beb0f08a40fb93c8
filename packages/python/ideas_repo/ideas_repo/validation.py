"""Derive an idea's validated flag from its vote counters."""

from __future__ import annotations

from db_core import get_db, utcnow
from loguru import logger

COLLECTION_NAME = "ideas"

# Net upvotes at which an idea counts as validated by the community.
VALIDATION_THRESHOLD = 50


def should_be_validated(upvotes: int, downvotes: int) -> bool:
    return upvotes - downvotes >= VALIDATION_THRESHOLD


async def reconcile_validation(idea_id: str) -> bool:
    """
    Bring ``is_validated`` in line with the idea's current counters.

    The flag is written only when it differs from the stored value, and the
    write is conditioned on the counters that were read: if another vote
    landed in between, that vote's own reconciliation owns the outcome.

    Returns True when a write happened. A missing idea is a no-op.
    """

    collection = get_db()[COLLECTION_NAME]
    doc = await collection.find_one(
        {"_id": idea_id},
        {"upvotes": 1, "downvotes": 1, "is_validated": 1},
    )
    if not doc:
        return False

    upvotes = int(doc.get("upvotes", 0))
    downvotes = int(doc.get("downvotes", 0))
    current = bool(doc.get("is_validated", False))
    target = should_be_validated(upvotes, downvotes)
    if target == current:
        return False

    result = await collection.update_one(
        {
            "_id": idea_id,
            "upvotes": upvotes,
            "downvotes": downvotes,
            "is_validated": current,
        },
        {"$set": {"is_validated": target, "updated_at": utcnow()}},
    )
    if result.matched_count:
        logger.info(
            "Idea {idea_id} validation -> {validated} (net {net})",
            idea_id=idea_id,
            validated=target,
            net=upvotes - downvotes,
        )
        return True
    return False
