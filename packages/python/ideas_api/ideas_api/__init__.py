"""Expose the ideaboard FastAPI routers."""

from .comments_router import idea_comments_router, router as comments_router
from .errors import register_exception_handlers
from .profile_router import router as profile_router
from .router import router

__all__ = [
    "router",
    "comments_router",
    "idea_comments_router",
    "profile_router",
    "register_exception_handlers",
]
