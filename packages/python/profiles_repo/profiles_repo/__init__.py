"""Profile repository package exposing domain models and services."""

from .errors import InvalidProfileError, ProfileCreationError, ProfileNotFoundError
from .models import AuthorSummary, Profile, ProfileUpdate, PublicProfile
from .repository import (
    ensure_indexes,
    ensure_profile,
    get_author_summaries,
    get_profile,
    get_profile_by_user_id,
    update_profile,
)

__all__ = [
    "AuthorSummary",
    "Profile",
    "ProfileUpdate",
    "PublicProfile",
    "InvalidProfileError",
    "ProfileCreationError",
    "ProfileNotFoundError",
    "ensure_indexes",
    "ensure_profile",
    "get_author_summaries",
    "get_profile",
    "get_profile_by_user_id",
    "update_profile",
]
