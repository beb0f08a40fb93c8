"""Request dependencies resolving the caller's profile."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Depends, HTTPException

from profiles_repo import Profile, get_profile_by_user_id

from .kratos_client import get_identity, get_optional_identity


async def get_current_profile(identity: dict = Depends(get_identity)) -> Profile:
    """Profile of the authenticated caller; 404 when they never registered one."""

    profile = await get_profile_by_user_id(identity["id"])
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


async def get_optional_profile(
    identity: Optional[dict] = Depends(get_optional_identity),
) -> Optional[Profile]:
    if identity is None:
        return None
    return await get_profile_by_user_id(identity["id"])


def identity_traits(identity: dict[str, Any]) -> tuple[str, str]:
    """Return ``(email, display_name)`` from a Kratos identity's traits."""

    traits = identity.get("traits")
    if not isinstance(traits, dict):
        return "", ""
    email = traits.get("email") if isinstance(traits.get("email"), str) else ""
    name = traits.get("display_name") or traits.get("name") or ""
    if isinstance(name, dict):
        name = " ".join(str(part) for part in (name.get("first"), name.get("last")) if part)
    return email, name if isinstance(name, str) else ""
