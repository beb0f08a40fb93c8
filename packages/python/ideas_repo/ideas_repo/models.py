"""Pydantic models describing ideas, votes and comments."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from profiles_repo.models import ApiModel, AuthorSummary


class VoteType(str, Enum):
    UPVOTE = "UPVOTE"
    DOWNVOTE = "DOWNVOTE"

    @property
    def counter_field(self) -> str:
        """Name of the idea counter this vote type feeds."""
        return "upvotes" if self is VoteType.UPVOTE else "downvotes"


class VoteAction(str, Enum):
    ADDED = "ADDED"
    CHANGED = "CHANGED"
    REMOVED = "REMOVED"


class VoteOutcome(ApiModel):
    """Result of casting a vote: what happened and the caller's effective vote."""

    action: VoteAction
    vote_type: Optional[VoteType] = None


class Idea(ApiModel):
    """Representation of an idea stored in MongoDB (without its vote ledger)."""

    id: str
    title: str
    description: str
    tags: List[str] = Field(default_factory=list)
    author_id: str
    upvotes: int = Field(default=0, ge=0)
    downvotes: int = Field(default=0, ge=0)
    is_validated: bool = False
    created_at: datetime
    updated_at: datetime
    author: Optional[AuthorSummary] = None
    comments_count: int = 0


class IdeaCreate(ApiModel):
    """Payload for submitting a new idea."""

    title: str = Field(max_length=200)
    description: str
    tags: List[str] = Field(default_factory=list)


class IdeaUpdate(ApiModel):
    """Payload for editing an idea; omitted fields stay unchanged."""

    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    tags: Optional[List[str]] = None


class IdeaSort(str, Enum):
    NEWEST = "newest"
    POPULAR = "popular"
    VALIDATED = "validated"


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    total_pages: int


class IdeaPage(ApiModel):
    ideas: List[Idea]
    pagination: Pagination


class Comment(ApiModel):
    id: str
    idea_id: str
    author_id: str
    content: str
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    author: Optional[AuthorSummary] = None


class CommentThread(Comment):
    """A top-level comment together with its direct replies."""

    replies: List[Comment] = Field(default_factory=list)
