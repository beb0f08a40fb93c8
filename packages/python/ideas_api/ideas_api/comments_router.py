"""FastAPI routers for comments on ideas."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from ideas_repo import (
    Comment,
    CommentThread,
    create_comment,
    delete_comment,
    list_comments_for_idea,
    update_comment,
)
from profiles_repo import Profile

from .dependencies import get_current_profile

idea_comments_router = APIRouter(prefix="/ideas/{idea_id}/comments", tags=["comments"])
router = APIRouter(prefix="/comments", tags=["comments"])


@idea_comments_router.get("", response_model=list[CommentThread])
async def get_comments(idea_id: str):
    """Top-level comments newest first, each with its replies oldest first."""

    return await list_comments_for_idea(idea_id)


@idea_comments_router.post("", response_model=Comment, status_code=201)
async def post_comment(
    idea_id: str,
    payload: dict = Body(...),
    profile: Profile = Depends(get_current_profile),
):
    return await create_comment(
        idea_id=idea_id,
        author_id=profile.id,
        content=payload.get("content"),
        parent_id=payload.get("parentId"),
    )


@router.put("/{comment_id}", response_model=Comment)
async def put_comment(
    comment_id: str,
    payload: dict = Body(...),
    profile: Profile = Depends(get_current_profile),
):
    return await update_comment(
        comment_id=comment_id,
        author_id=profile.id,
        content=payload.get("content"),
    )


@router.delete("/{comment_id}")
async def remove_comment(
    comment_id: str,
    profile: Profile = Depends(get_current_profile),
):
    await delete_comment(comment_id=comment_id, author_id=profile.id)
    return {"success": True}
