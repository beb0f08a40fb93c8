"""Domain-level errors for the profile repository."""


class ProfileNotFoundError(Exception):
    """Raised when no profile exists for the requested id or identity."""


class InvalidProfileError(Exception):
    """Raised when submitted profile fields are malformed."""


class ProfileCreationError(Exception):
    """Raised when a profile could neither be inserted nor found afterwards."""
