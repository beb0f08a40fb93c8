"""FastAPI router exposing idea and vote operations."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response

from ideas_repo import (
    Idea,
    IdeaCreate,
    IdeaPage,
    IdeaSort,
    IdeaUpdate,
    VoteAction,
    VoteType,
    cast_vote,
    create_idea,
    delete_idea,
    get_idea,
    get_vote_for_user,
    list_ideas,
    parse_vote_type,
    update_idea,
)
from profiles_repo import Profile
from profiles_repo.models import ApiModel

from .dependencies import get_current_profile, get_optional_profile
from .kratos_client import get_identity

router = APIRouter(prefix="/ideas", tags=["ideas"])

_VOTE_MESSAGES = {
    VoteAction.ADDED: "Vote added",
    VoteAction.CHANGED: "Vote changed",
    VoteAction.REMOVED: "Vote removed",
}


class VoteResponse(ApiModel):
    message: str
    vote_type: Optional[VoteType] = None


class VoteStatus(ApiModel):
    vote_type: Optional[VoteType] = None


async def requested_vote_type(payload: dict = Body(...)) -> VoteType:
    return parse_vote_type(payload.get("voteType"))


@router.get("", response_model=IdeaPage)
async def get_ideas(
    search: str = Query(default=""),
    tags: str = Query(default=""),
    sort_by: IdeaSort = Query(default=IdeaSort.POPULAR, alias="sortBy"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
):
    """List ideas with optional search text, comma-separated tags and sort order."""

    return await list_ideas(
        search=search,
        tags=tags.split(","),
        sort_by=sort_by,
        page=page,
        limit=limit,
    )


@router.post("", response_model=Idea, status_code=201)
async def post_idea(
    payload: IdeaCreate,
    profile: Profile = Depends(get_current_profile),
):
    return await create_idea(author_id=profile.id, payload=payload)


@router.get("/{idea_id}", response_model=Idea)
async def get_single_idea(idea_id: str):
    return await get_idea(idea_id)


@router.put("/{idea_id}", response_model=Idea)
async def put_idea(
    idea_id: str,
    payload: IdeaUpdate,
    profile: Profile = Depends(get_current_profile),
):
    """Edit an idea; only its author may do this."""

    return await update_idea(idea_id=idea_id, author_id=profile.id, payload=payload)


@router.delete("/{idea_id}")
async def remove_idea(
    idea_id: str,
    profile: Profile = Depends(get_current_profile),
):
    await delete_idea(idea_id=idea_id, author_id=profile.id)
    return {"success": True}


@router.post("/{idea_id}/vote", response_model=VoteResponse)
async def vote_on_idea(
    idea_id: str,
    response: Response,
    identity: dict = Depends(get_identity),
    vote_type: VoteType = Depends(requested_vote_type),
    profile: Profile = Depends(get_current_profile),
):
    """
    Add, switch or remove the caller's vote and report the resulting vote.

    Checked in order: authentication (401), vote type (400), profile (404),
    idea (404).
    """

    outcome = await cast_vote(idea_id=idea_id, voter_id=profile.id, requested_type=vote_type)
    if outcome.action is VoteAction.ADDED:
        response.status_code = 201
    return VoteResponse(message=_VOTE_MESSAGES[outcome.action], vote_type=outcome.vote_type)


@router.get("/{idea_id}/vote", response_model=VoteStatus)
async def read_vote(
    idea_id: str,
    profile: Optional[Profile] = Depends(get_optional_profile),
):
    """Return the caller's vote; anonymous callers simply get null."""

    if profile is None:
        return VoteStatus()
    return VoteStatus(vote_type=await get_vote_for_user(idea_id, profile.id))
