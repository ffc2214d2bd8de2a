"""Post, edit history, search, bookmark and reaction endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status

from commune_api.api.dependencies import ActingProfileDep, AppContextDep, SessionDep
from commune_api.models import Post, Profile
from commune_api.schemas.common import Page
from commune_api.schemas.post import (
    PostCreate,
    PostHistoryView,
    PostThreadResponse,
    PostUpdate,
    PostView,
    ReactionCreate,
)
from commune_api.services import posts as post_service

router = APIRouter(tags=["app-posts"])

CursorQuery = Annotated[int | None, Query(description="Id of the last item already seen")]
LimitQuery = Annotated[int | None, Query(ge=1, le=100)]


def _view(db, post: Post, viewer: Profile) -> PostView:
    [view] = post_service.serialize_posts(db, [post], viewer.id)
    return PostView.model_validate(view)


def _page(page: post_service.Page) -> Page[PostView]:
    return Page[PostView](
        items=[PostView.model_validate(item) for item in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.get("/posts", response_model=Page[PostView])
async def list_posts(
    ctx: AppContextDep,
    profile: ActingProfileDep,
    db: SessionDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = None,
) -> Page[PostView]:
    """Community timeline: published top-level posts, newest first."""
    return _page(post_service.list_posts(db, ctx.community_id, profile.id, cursor, limit))


@router.post("/posts", response_model=PostView, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> PostView:
    post = post_service.create_post(
        db,
        ctx,
        profile,
        payload.content,
        in_reply_to_id=payload.in_reply_to_id,
        image_ids=payload.image_ids,
        announcement=payload.announcement,
        content_warning=payload.content_warning,
        scheduled_at=payload.scheduled_at,
    )
    return _view(db, post, profile)


@router.get("/posts/announcements", response_model=list[PostView])
async def list_announcements(ctx: AppContextDep, db: SessionDep) -> list[PostView]:
    return [
        PostView.model_validate(view)
        for view in post_service.get_announcements(db, ctx.community_id)
    ]


@router.get("/posts/scheduled", response_model=list[PostView])
async def list_scheduled_posts(
    ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> list[PostView]:
    return [
        PostView.model_validate(view)
        for view in post_service.get_scheduled_posts(db, profile.id, ctx.community_id)
    ]


@router.get("/posts/search", response_model=Page[PostView])
async def search_posts(
    ctx: AppContextDep,
    profile: ActingProfileDep,
    db: SessionDep,
    q: Annotated[str, Query(max_length=200, description="Text to look for")],
    cursor: CursorQuery = None,
    limit: LimitQuery = None,
) -> Page[PostView]:
    """Published top-level posts containing ``q``; shorter than two characters finds nothing."""
    return _page(post_service.search_posts(db, ctx.community_id, q, profile.id, cursor, limit))


@router.get("/posts/{post_id}", response_model=PostThreadResponse)
async def get_post(
    post_id: int, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> PostThreadResponse:
    thread = post_service.get_post(db, post_id, ctx.community_id, profile.id)
    return PostThreadResponse.model_validate(
        {"post": thread.post, "parents": thread.parents, "replies": thread.replies}
    )


@router.put("/posts/{post_id}", response_model=PostView)
async def update_post(
    post_id: int,
    payload: PostUpdate,
    ctx: AppContextDep,
    profile: ActingProfileDep,
    db: SessionDep,
) -> PostView:
    post = post_service.update_post(
        db,
        profile,
        post_id,
        ctx.community_id,
        payload.content,
        image_ids=payload.image_ids,
        content_warning=payload.content_warning,
    )
    return _view(db, post, profile)


@router.get("/posts/{post_id}/history", response_model=list[PostHistoryView])
async def get_post_history(
    post_id: int, ctx: AppContextDep, db: SessionDep
) -> list[PostHistoryView]:
    return [
        PostHistoryView.model_validate(entry)
        for entry in post_service.get_post_history(db, post_id, ctx.community_id)
    ]


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> None:
    post_service.delete_post(db, ctx, profile, post_id)


@router.post("/posts/{post_id}/pin", response_model=PostView)
async def pin_post(
    post_id: int, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> PostView:
    return _view(db, post_service.pin_post(db, profile, post_id, ctx.community_id), profile)


@router.delete("/posts/{post_id}/pin", response_model=PostView)
async def unpin_post(
    post_id: int, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> PostView:
    return _view(db, post_service.unpin_post(db, profile, post_id, ctx.community_id), profile)


@router.post(
    "/posts/{post_id}/bookmark", response_model=PostView, status_code=status.HTTP_201_CREATED
)
async def bookmark_post(
    post_id: int, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> PostView:
    bookmark = post_service.create_bookmark(db, profile, post_id, ctx.community_id)
    return _view(db, db.get(Post, bookmark.post_id), profile)


@router.delete("/posts/{post_id}/bookmark", status_code=status.HTTP_204_NO_CONTENT)
async def remove_bookmark(
    post_id: int, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> None:
    post_service.delete_bookmark(db, profile, post_id, ctx.community_id)


@router.get("/bookmarks", response_model=Page[PostView])
async def list_bookmarks(
    ctx: AppContextDep,
    profile: ActingProfileDep,
    db: SessionDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = None,
) -> Page[PostView]:
    return _page(post_service.get_bookmarks(db, profile, ctx.community_id, cursor, limit))


@router.post(
    "/posts/{post_id}/reactions", response_model=PostView, status_code=status.HTTP_201_CREATED
)
async def add_reaction(
    post_id: int,
    payload: ReactionCreate,
    ctx: AppContextDep,
    profile: ActingProfileDep,
    db: SessionDep,
) -> PostView:
    reaction = post_service.create_reaction(db, ctx.community, profile, post_id, payload.emoji)
    return _view(db, db.get(Post, reaction.post_id), profile)


@router.delete("/posts/{post_id}/reactions/{emoji}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_reaction(
    post_id: int, emoji: str, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> None:
    post_service.delete_reaction(db, ctx.community, profile, post_id, emoji)
