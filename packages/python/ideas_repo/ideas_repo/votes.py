"""Vote ledger: one vote per (idea, profile) with counters kept in step.

Each idea document carries its ledger under ``votes.<profile_id>`` next to
the ``upvotes``/``downvotes`` counters, so a vote mutation and the counter
mutation it implies are a single-document update and commit together.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import uuid4

from db_core import get_db, utcnow
from loguru import logger
from pymongo.errors import WriteError

from .errors import IdeaNotFoundError, InvalidInputError, VoteConflictError
from .models import VoteAction, VoteOutcome, VoteType
from .validation import reconcile_validation

COLLECTION_NAME = "ideas"
MAX_VOTE_ATTEMPTS = 5


def _collection():
    return get_db()[COLLECTION_NAME]


def _ledger_key(voter_id: str) -> str:
    if not voter_id or "." in voter_id or voter_id.startswith("$"):
        raise InvalidInputError("Invalid voter id")
    return f"votes.{voter_id}"


def parse_vote_type(value: Any) -> VoteType:
    """Accept exactly ``"UPVOTE"`` or ``"DOWNVOTE"``."""

    if isinstance(value, VoteType):
        return value
    if not isinstance(value, str):
        raise InvalidInputError("Invalid vote type")
    try:
        return VoteType(value)
    except ValueError:
        raise InvalidInputError("Invalid vote type") from None


def _plan(
    key: str,
    existing: Optional[VoteType],
    requested: VoteType,
) -> tuple[dict, dict, VoteOutcome]:
    """Return ``(filter, update, outcome)`` for moving from ``existing`` to ``requested``."""

    now = utcnow()
    if existing is None:
        guard = {key: {"$exists": False}}
        update = {
            "$set": {
                key: {
                    "id": uuid4().hex,
                    "vote_type": requested.value,
                    "created_at": now,
                    "updated_at": now,
                },
                "updated_at": now,
            },
            "$inc": {requested.counter_field: 1},
        }
        return guard, update, VoteOutcome(action=VoteAction.ADDED, vote_type=requested)

    guard = {f"{key}.vote_type": existing.value}
    if existing is requested:
        update = {
            "$unset": {key: ""},
            "$set": {"updated_at": now},
            "$inc": {requested.counter_field: -1},
        }
        return guard, update, VoteOutcome(action=VoteAction.REMOVED, vote_type=None)

    update = {
        "$set": {
            f"{key}.vote_type": requested.value,
            f"{key}.updated_at": now,
            "updated_at": now,
        },
        "$inc": {requested.counter_field: 1, existing.counter_field: -1},
    }
    return guard, update, VoteOutcome(action=VoteAction.CHANGED, vote_type=requested)


async def cast_vote(idea_id: str, voter_id: str, requested_type: Any) -> VoteOutcome:
    """
    Create, toggle off, or switch ``voter_id``'s vote on ``idea_id``.

    - no vote yet: record it and bump the matching counter
    - same type again: remove it and decrement the matching counter
    - opposite type: flip it, moving one count between the counters

    The update is guarded by the ledger entry observed on read. When a
    concurrent request for the same voter changed that entry first, the
    guard no longer matches and the vote is re-planned from fresh state.
    """

    requested = parse_vote_type(requested_type)
    key = _ledger_key(voter_id)
    collection = _collection()

    for attempt in range(1, MAX_VOTE_ATTEMPTS + 1):
        doc = await collection.find_one({"_id": idea_id}, {key: 1})
        if not doc:
            raise IdeaNotFoundError(f"Idea {idea_id} not found")

        entry = (doc.get("votes") or {}).get(voter_id)
        existing = VoteType(entry["vote_type"]) if entry else None
        guard, update, outcome = _plan(key, existing, requested)

        try:
            result = await collection.update_one({"_id": idea_id, **guard}, update)
        except WriteError as exc:
            # e.g. the idea document reached MongoDB's 16 MB limit
            logger.error(
                "Vote on idea {idea_id} by {voter_id} rejected by the store: {error}",
                idea_id=idea_id,
                voter_id=voter_id,
                error=exc,
            )
            raise VoteConflictError(f"Vote on idea {idea_id} could not be stored") from exc
        if result.matched_count:
            logger.debug(
                "Vote {action} on idea {idea_id} by {voter_id}: {previous} -> {current}",
                action=outcome.action.value,
                idea_id=idea_id,
                voter_id=voter_id,
                previous=existing.value if existing else None,
                current=outcome.vote_type.value if outcome.vote_type else None,
            )
            await reconcile_validation(idea_id)
            return outcome

        logger.warning(
            "Vote on idea {idea_id} by {voter_id} lost a race (attempt {attempt}/{total})",
            idea_id=idea_id,
            voter_id=voter_id,
            attempt=attempt,
            total=MAX_VOTE_ATTEMPTS,
        )

    raise VoteConflictError(
        f"Vote on idea {idea_id} by {voter_id} conflicted {MAX_VOTE_ATTEMPTS} times"
    )


async def get_vote_for_user(idea_id: str, voter_id: str) -> Optional[VoteType]:
    """Return the voter's current vote on the idea, or None."""

    key = _ledger_key(voter_id)
    doc = await _collection().find_one({"_id": idea_id}, {key: 1})
    if not doc:
        return None
    entry = (doc.get("votes") or {}).get(voter_id)
    return VoteType(entry["vote_type"]) if entry else None


async def count_votes(idea_id: str) -> dict[str, int]:
    """Tally the ledger entries of an idea by vote type."""

    doc = await _collection().find_one({"_id": idea_id}, {"votes": 1})
    if not doc:
        raise IdeaNotFoundError(f"Idea {idea_id} not found")
    tally = {VoteType.UPVOTE.counter_field: 0, VoteType.DOWNVOTE.counter_field: 0}
    for entry in (doc.get("votes") or {}).values():
        tally[VoteType(entry["vote_type"]).counter_field] += 1
    return tally
