"""Domain-level errors for the ideas repository."""


class NotFoundError(Exception):
    """Base class for lookups that found nothing."""


class IdeaNotFoundError(NotFoundError):
    """Raised when an idea cannot be located."""


class CommentNotFoundError(NotFoundError):
    """Raised when a comment (or a reply's parent) cannot be located."""


class InvalidInputError(Exception):
    """Raised for malformed vote types, blank content and similar input."""


class PermissionDeniedError(Exception):
    """Raised when a user lacks permissions to perform an action."""


class VoteConflictError(Exception):
    """Raised when a vote kept losing races against concurrent requests."""
