from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model serialised with camelCase keys for the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Profile(ApiModel):
    """
    Application-level user record.

    One profile per identity-provider identity (``user_id``); ``email`` is
    unique as well.
    """

    id: str
    user_id: str
    email: str
    display_name: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PublicProfile(Profile):
    ideas_count: int = 0
    comments_count: int = 0


class AuthorSummary(ApiModel):
    """Subset of a profile embedded in idea and comment responses."""

    id: str
    display_name: str
    avatar: Optional[str] = None


class ProfileUpdate(ApiModel):
    """Fields the owner may change on their profile."""

    display_name: Optional[str] = Field(default=None, max_length=80)
    bio: Optional[str] = Field(default=None, max_length=1000)
    avatar: Optional[str] = None
