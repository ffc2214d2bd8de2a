# src/commune_api/api/console/__init__.py
"""Cross-community management API mounted under ``/console``.

Requests carry a cookie session that is not bound to any community; the
community, where relevant, comes from the ``{community_id}`` path parameter.
"""

from fastapi import APIRouter

from .applications import router as applications_router
from .auth import router as auth_router
from .blocks import router as blocks_router
from .communities import router as communities_router
from .exports import router as exports_router
from .images import router as images_router
from .members import router as members_router

console_router = APIRouter(prefix="/console")
for _router in (
    auth_router,
    communities_router,
    members_router,
    applications_router,
    exports_router,
    images_router,
    blocks_router,
):
    console_router.include_router(_router)

__all__ = ["console_router"]
