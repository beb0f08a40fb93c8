"""Ideas repository: ideas, the vote ledger, validation and comments."""

from .models import (
    Comment,
    CommentThread,
    Idea,
    IdeaCreate,
    IdeaPage,
    IdeaSort,
    IdeaUpdate,
    Pagination,
    VoteAction,
    VoteOutcome,
    VoteType,
)
from .errors import (
    CommentNotFoundError,
    IdeaNotFoundError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    VoteConflictError,
)
from .repo import (
    count_contributions,
    create_idea,
    delete_idea,
    get_idea,
    list_ideas,
    list_ideas_by_author,
    update_idea,
)
from .votes import cast_vote, get_vote_for_user, parse_vote_type
from .validation import VALIDATION_THRESHOLD, reconcile_validation, should_be_validated
from .comments import (
    build_comment_tree,
    create_comment,
    delete_comment,
    list_comments_for_idea,
    update_comment,
)
from . import comments as _comments, repo as _repo


async def ensure_indexes() -> None:
    """Create the indexes for the ideas and comments collections."""

    await _repo.ensure_indexes()
    await _comments.ensure_indexes()


__all__ = [
    "Comment",
    "CommentThread",
    "Idea",
    "IdeaCreate",
    "IdeaPage",
    "IdeaSort",
    "IdeaUpdate",
    "Pagination",
    "VoteAction",
    "VoteOutcome",
    "VoteType",
    "CommentNotFoundError",
    "IdeaNotFoundError",
    "InvalidInputError",
    "NotFoundError",
    "PermissionDeniedError",
    "VoteConflictError",
    "count_contributions",
    "create_idea",
    "delete_idea",
    "get_idea",
    "list_ideas",
    "list_ideas_by_author",
    "update_idea",
    "cast_vote",
    "get_vote_for_user",
    "parse_vote_type",
    "VALIDATION_THRESHOLD",
    "reconcile_validation",
    "should_be_validated",
    "build_comment_tree",
    "create_comment",
    "delete_comment",
    "list_comments_for_idea",
    "update_comment",
    "ensure_indexes",
]
