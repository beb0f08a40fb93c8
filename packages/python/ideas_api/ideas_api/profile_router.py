"""FastAPI router for the caller's profile and public profiles."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from ideas_repo import Idea, count_contributions, list_ideas_by_author
from profiles_repo import (
    Profile,
    ProfileUpdate,
    PublicProfile,
    ensure_profile,
    get_profile,
    update_profile,
)

from .dependencies import get_current_profile, identity_traits
from .kratos_client import get_identity

router = APIRouter(prefix="/profile", tags=["profile"])


class ProfileIdeas(BaseModel):
    ideas: list[Idea]


@router.post("", response_model=Profile, status_code=201)
async def register_profile(
    payload: dict | None = Body(default=None),
    identity: dict = Depends(get_identity),
):
    """Create the caller's profile after sign-up (returns the existing one if present)."""

    email, name = identity_traits(identity)
    payload = payload or {}
    return await ensure_profile(
        user_id=identity["id"],
        email=email,
        display_name=payload.get("displayName") or name,
    )


@router.get("", response_model=Profile)
async def read_own_profile(profile: Profile = Depends(get_current_profile)):
    return profile


@router.put("", response_model=Profile)
async def edit_own_profile(
    payload: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
):
    return await update_profile(user_id=profile.user_id, payload=payload)


@router.get("/ideas", response_model=ProfileIdeas)
async def read_own_ideas(profile: Profile = Depends(get_current_profile)):
    return ProfileIdeas(ideas=await list_ideas_by_author(profile.id))


@router.get("/{profile_id}", response_model=PublicProfile)
async def read_public_profile(profile_id: str):
    profile = await get_profile(profile_id)
    ideas_count, comments_count = await count_contributions(profile.id)
    return PublicProfile(
        **profile.model_dump(),
        ideas_count=ideas_count,
        comments_count=comments_count,
    )
