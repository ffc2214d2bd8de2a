# src/commune_api/api/app/__init__.py
"""Community-scoped API mounted under ``/app``.

Requests carry a bearer session bound to one community; the community is
resolved from the Origin or Host header.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .boards import router as boards_router
from .community import router as community_router
from .images import router as images_router
from .messages import router as messages_router
from .moderation import router as moderation_router
from .notifications import router as notifications_router
from .posts import router as posts_router
from .profiles import router as profiles_router

app_router = APIRouter(prefix="/app")
for _router in (
    auth_router,
    community_router,
    profiles_router,
    posts_router,
    messages_router,
    notifications_router,
    boards_router,
    moderation_router,
    images_router,
):
    app_router.include_router(_router)

__all__ = ["app_router"]
