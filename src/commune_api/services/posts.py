# src/commune_api/services/posts.py
"""Post services: authoring, editing, search, threads, scheduling, bookmarks and reactions."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from commune_api.core.errors import bad_request, conflict, forbidden, not_found
from commune_api.core.settings import settings
from commune_api.db.time import as_utc, utcnow
from commune_api.models import (
    Community,
    Image,
    ModerationAction,
    ModerationLog,
    NotificationType,
    Post,
    PostBookmark,
    PostHistory,
    PostHistoryImage,
    PostImage,
    PostReaction,
    Profile,
)
from commune_api.services import notifications
from commune_api.services.authz import AuthContext

logger = logging.getLogger(__name__)


@dataclass
class Page:
    items: list[Any]
    next_cursor: int | None = None
    has_more: bool = False


@dataclass
class PostThread:
    post: dict[str, Any]
    parents: list[dict[str, Any]] = field(default_factory=list)
    replies: list[dict[str, Any]] = field(default_factory=list)


def ensure_community_active(community: Community, action: str) -> None:
    now = utcnow()
    if not community.has_started(now):
        raise forbidden(f"Cannot {action}: the community has not started yet")
    if community.has_ended(now):
        raise forbidden(f"Cannot {action}: the community has ended")


def validate_post_community_access(db: Session, post_id: int, community_id: int) -> Post | None:
    """Return the live post only if it and its author belong to ``community_id``."""
    post = db.get(Post, post_id)
    if post is None or post.deleted_at is not None or post.community_id != community_id:
        return None
    author = db.get(Profile, post.author_id)
    if author is None or author.community_id != community_id:
        return None
    return post


def _get_visible_post(
    db: Session, post_id: int, community_id: int, author_id: int | None = None
) -> Post:
    """Fetch a live post; unpublished posts exist only for ``author_id``."""
    post = validate_post_community_access(db, post_id, community_id)
    if post is None:
        raise not_found("Post not found")
    if post.published_at is None and post.author_id != author_id:
        raise not_found("Post not found")
    return post


def _image_view(image: Image) -> dict[str, Any]:
    return {
        "id": image.id,
        "url": f"/uploads/{image.key}",
        "width": image.width,
        "height": image.height,
        "filename": image.filename,
    }


def serialize_posts(
    db: Session, posts: Sequence[Post], viewer_profile_id: int | None = None
) -> list[dict[str, Any]]:
    """Shape posts for responses, batch-loading authors, images and reactions."""
    if not posts:
        return []
    post_ids = [post.id for post in posts]
    author_ids = {post.author_id for post in posts}

    authors = {
        profile.id: profile
        for profile in db.scalars(select(Profile).where(Profile.id.in_(author_ids))).all()
    }
    images: dict[int, list[dict[str, Any]]] = defaultdict(list)
    for post_id, image in db.execute(
        select(PostImage.post_id, Image)
        .join(Image, Image.id == PostImage.image_id)
        .where(PostImage.post_id.in_(post_ids), Image.deleted_at.is_(None))
        .order_by(PostImage.id)
    ).all():
        images[post_id].append(_image_view(image))
    reactions: dict[int, list[dict[str, Any]]] = defaultdict(list)
    for reaction, profile in db.execute(
        select(PostReaction, Profile)
        .join(Profile, Profile.id == PostReaction.profile_id)
        .where(PostReaction.post_id.in_(post_ids))
        .order_by(PostReaction.id)
    ).all():
        reactions[reaction.post_id].append(
            {
                "emoji": reaction.emoji,
                "profile": {"id": profile.id, "username": profile.username, "name": profile.name},
            }
        )
    bookmarked: set[int] = set()
    if viewer_profile_id is not None:
        bookmarked = set(
            db.scalars(
                select(PostBookmark.post_id).where(
                    PostBookmark.profile_id == viewer_profile_id,
                    PostBookmark.post_id.in_(post_ids),
                )
            ).all()
        )

    result = []
    for post in posts:
        author = authors.get(post.author_id)
        result.append(
            {
                "id": post.id,
                "content": post.content,
                "announcement": post.announcement,
                "content_warning": post.content_warning,
                "in_reply_to_id": post.in_reply_to_id,
                "root_post_id": post.root_post_id,
                "depth": post.depth,
                "scheduled_at": post.scheduled_at,
                "published_at": post.published_at,
                "pinned_at": post.pinned_at,
                "edited_at": post.edited_at,
                "created_at": post.created_at,
                "author": {
                    "id": author.id,
                    "username": author.username,
                    "name": author.name,
                }
                if author
                else None,
                "images": images.get(post.id, []),
                "reactions": reactions.get(post.id, []),
                "is_bookmarked": post.id in bookmarked,
            }
        )
    return result


def paginate(rows: Sequence[Any], limit: int, key: Callable[[Any], int]) -> Page:
    has_more = len(rows) > limit
    items = list(rows[:limit])
    next_cursor = key(items[-1]) if has_more and items else None
    return Page(items=items, next_cursor=next_cursor, has_more=has_more)


def _validate_post_body(db: Session, content: str, image_ids: Sequence[int]) -> list[int]:
    image_ids = list(dict.fromkeys(image_ids))
    if not content.strip() and not image_ids:
        raise bad_request("A post needs content or at least one image")
    if image_ids:
        valid = db.scalar(
            select(func.count(Image.id)).where(Image.id.in_(image_ids), Image.deleted_at.is_(None))
        )
        if valid != len(image_ids):
            raise bad_request("Some images are not valid")
    return image_ids


def create_post(
    db: Session,
    ctx: AuthContext,
    profile: Profile,
    content: str,
    *,
    in_reply_to_id: int | None = None,
    image_ids: Sequence[int] = (),
    announcement: bool = False,
    content_warning: str | None = None,
    scheduled_at: datetime | None = None,
) -> Post:
    """Publish (or schedule) a post as ``profile``.

    ``profile`` must already be validated as usable by ``ctx.user`` in
    ``ctx.community``.
    """
    community = ctx.community
    parent: Post | None = None
    if in_reply_to_id is not None:
        parent = validate_post_community_access(db, in_reply_to_id, community.id)
        if parent is None or parent.published_at is None:
            raise not_found("Parent post not found")

    if profile.is_muted:
        raise forbidden("This profile is muted and cannot post")

    image_ids = _validate_post_body(db, content, image_ids)

    now = utcnow()
    if community.has_ended(now):
        raise forbidden("The community has ended; posting is closed")
    if not community.has_started(now) and not ctx.is_staff:
        raise forbidden("The community has not started yet")

    if scheduled_at is not None:
        scheduled_at = as_utc(scheduled_at)
        if not ctx.is_staff:
            raise forbidden("Only staff can schedule posts")
        if parent is not None:
            raise bad_request("Replies cannot be scheduled")
        if scheduled_at <= now:
            raise bad_request("Scheduled time must be in the future")
        if scheduled_at > as_utc(community.ends_at):
            raise bad_request("Scheduled time must be before the community ends")

    if announcement:
        if not ctx.is_owner:
            raise forbidden("Only the owner can post announcements")
        if parent is not None:
            raise bad_request("Replies cannot be announcements")

    post = Post(
        community_id=community.id,
        author_id=profile.id,
        created_by_user_id=ctx.user_id,
        content=content,
        announcement=announcement,
        content_warning=content_warning,
        in_reply_to_id=parent.id if parent else None,
        depth=parent.depth + 1 if parent else 0,
        root_post_id=(parent.root_post_id or parent.id) if parent else None,
        scheduled_at=scheduled_at,
        published_at=None if scheduled_at else now,
    )
    db.add(post)
    db.flush()
    for image_id in image_ids:
        db.add(PostImage(post_id=post.id, image_id=image_id))

    profile.last_active_at = now
    if post.published_at is not None:
        if parent is not None:
            notifications.notify(
                db,
                community_id=community.id,
                recipient_id=parent.author_id,
                actor_id=profile.id,
                type_=NotificationType.REPLY,
                post_id=post.id,
                content=content,
            )
        notifications.notify_mentions(db, post, profile)
    db.commit()
    return post


def _published_post_query(community_id: int):
    return select(Post).where(
        Post.community_id == community_id,
        Post.deleted_at.is_(None),
        Post.published_at.is_not(None),
    )


def list_posts(
    db: Session,
    community_id: int,
    viewer_profile_id: int | None = None,
    cursor: int | None = None,
    limit: int | None = None,
) -> Page:
    """Top-level timeline, newest first, paginated by post id."""
    limit = limit or settings.page_size
    stmt = _published_post_query(community_id).where(Post.in_reply_to_id.is_(None))
    if cursor is not None:
        stmt = stmt.where(Post.id < cursor)
    rows = db.scalars(stmt.order_by(Post.id.desc()).limit(limit + 1)).all()
    page = paginate(rows, limit, key=lambda post: post.id)
    page.items = serialize_posts(db, page.items, viewer_profile_id)
    return page


def get_post(
    db: Session, post_id: int, community_id: int, viewer_profile_id: int | None = None
) -> PostThread:
    post = validate_post_community_access(db, post_id, community_id)
    if post is None or post.published_at is None:
        raise not_found("Post not found")

    parents: list[Post] = []
    cursor = post
    while cursor.in_reply_to_id is not None:
        parent = validate_post_community_access(db, cursor.in_reply_to_id, community_id)
        if parent is None or parent.published_at is None:
            break
        parents.append(parent)
        cursor = parent
    parents.reverse()

    thread_root = post.root_post_id or post.id
    descendants = db.scalars(
        _published_post_query(community_id)
        .where(Post.root_post_id == thread_root, Post.depth > post.depth)
        .order_by(Post.created_at, Post.id)
    ).all()
    # Keep only replies that hang below this post.
    below = {post.id}
    replies: list[Post] = []
    for candidate in descendants:
        if candidate.in_reply_to_id in below:
            below.add(candidate.id)
            replies.append(candidate)

    [post_view] = serialize_posts(db, [post], viewer_profile_id)
    return PostThread(
        post=post_view,
        parents=serialize_posts(db, parents, viewer_profile_id),
        replies=serialize_posts(db, replies, viewer_profile_id),
    )


def get_announcements(db: Session, community_id: int) -> list[dict[str, Any]]:
    posts = db.scalars(
        _published_post_query(community_id)
        .where(Post.announcement.is_(True))
        .order_by(Post.created_at.desc(), Post.id.desc())
    ).all()
    return serialize_posts(db, posts)


def get_scheduled_posts(db: Session, profile_id: int, community_id: int) -> list[dict[str, Any]]:
    posts = db.scalars(
        select(Post)
        .where(
            Post.author_id == profile_id,
            Post.community_id == community_id,
            Post.scheduled_at.is_not(None),
            Post.published_at.is_(None),
            Post.deleted_at.is_(None),
        )
        .order_by(Post.scheduled_at)
    ).all()
    return serialize_posts(db, posts)


SEARCH_MIN_LENGTH = 2


def search_posts(
    db: Session,
    community_id: int,
    query: str,
    viewer_profile_id: int | None = None,
    cursor: int | None = None,
    limit: int | None = None,
) -> Page:
    """Case-insensitive substring search over published top-level posts."""
    limit = limit or settings.page_size
    query = query.strip()
    if len(query) < SEARCH_MIN_LENGTH:
        return Page(items=[])
    stmt = (
        _published_post_query(community_id)
        .join(Profile, Profile.id == Post.author_id)
        .where(
            Profile.community_id == community_id,
            Post.depth == 0,
            Post.content.icontains(query, autoescape=True),
        )
    )
    if cursor is not None:
        stmt = stmt.where(Post.id < cursor)
    rows = db.scalars(stmt.order_by(Post.id.desc()).limit(limit + 1)).all()
    page = paginate(rows, limit, key=lambda post: post.id)
    page.items = serialize_posts(db, page.items, viewer_profile_id)
    return page


def update_post(
    db: Session,
    profile: Profile,
    post_id: int,
    community_id: int,
    content: str,
    *,
    image_ids: Sequence[int] = (),
    content_warning: str | None = None,
) -> Post:
    """Replace a post's body, keeping the previous version in its history.

    The images given here replace the post's images entirely.
    """
    post = _get_visible_post(db, post_id, community_id, author_id=profile.id)
    if post.author_id != profile.id:
        raise forbidden("You can only edit your own posts")
    if post.announcement:
        raise bad_request("Announcements cannot be edited")
    if post.scheduled_at is not None:
        raise bad_request("Scheduled posts cannot be edited")
    image_ids = _validate_post_body(db, content, image_ids)

    now = utcnow()
    history = PostHistory(
        post_id=post.id,
        content=post.content,
        content_warning=post.content_warning,
        edited_by_profile_id=profile.id,
        edited_at=now,
    )
    db.add(history)
    db.flush()
    current = db.scalars(
        select(PostImage.image_id).where(PostImage.post_id == post.id).order_by(PostImage.id)
    ).all()
    for image_id in current:
        db.add(PostHistoryImage(post_history_id=history.id, image_id=image_id))

    db.execute(delete(PostImage).where(PostImage.post_id == post.id))
    for image_id in image_ids:
        db.add(PostImage(post_id=post.id, image_id=image_id))
    post.content = content
    post.content_warning = content_warning or None
    post.edited_at = now
    db.commit()
    logger.info("Post %s edited by profile %s", post.id, profile.id)
    return post


def get_post_history(db: Session, post_id: int, community_id: int) -> list[dict[str, Any]]:
    """Previous versions of a post, most recent edit first."""
    post = _get_visible_post(db, post_id, community_id)
    rows = db.execute(
        select(PostHistory, Profile)
        .join(Profile, Profile.id == PostHistory.edited_by_profile_id)
        .where(PostHistory.post_id == post.id)
        .order_by(PostHistory.edited_at.desc(), PostHistory.id.desc())
    ).all()
    if not rows:
        return []

    images: dict[int, list[dict[str, Any]]] = defaultdict(list)
    for history_id, image in db.execute(
        select(PostHistoryImage.post_history_id, Image)
        .join(Image, Image.id == PostHistoryImage.image_id)
        .where(PostHistoryImage.post_history_id.in_([entry.id for entry, _ in rows]))
        .order_by(PostHistoryImage.id)
    ).all():
        images[history_id].append(_image_view(image))

    return [
        {
            "id": entry.id,
            "content": entry.content,
            "content_warning": entry.content_warning,
            "edited_at": entry.edited_at,
            "edited_by": {"id": editor.id, "username": editor.username, "name": editor.name},
            "images": images.get(entry.id, []),
        }
        for entry, editor in rows
    ]


def delete_post(db: Session, ctx: AuthContext, profile: Profile, post_id: int) -> Post:
    """Soft delete; staff deleting someone else's post leaves an audit row."""
    post = _get_visible_post(db, post_id, ctx.community_id, author_id=profile.id)
    is_author = post.author_id == profile.id
    if not (is_author or ctx.is_staff):
        raise forbidden("Only the author or community staff can delete this post")

    post.deleted_at = utcnow()
    if not is_author:
        author = db.get(Profile, post.author_id)
        excerpt = post.content[:50] + ("..." if len(post.content) > 50 else "")
        author_name = author.username if author else "unknown"
        db.add(
            ModerationLog(
                community_id=ctx.community_id,
                action=ModerationAction.DELETE_POST,
                description=f'Deleted a post by @{author_name}: "{excerpt}"',
                moderator_id=profile.id,
                target_profile_id=post.author_id,
                target_post_id=post.id,
            )
        )
    db.commit()
    return post


def pin_post(db: Session, profile: Profile, post_id: int, community_id: int) -> Post:
    post = _get_visible_post(db, post_id, community_id, author_id=profile.id)
    if post.author_id != profile.id:
        raise forbidden("You can only pin your own posts")
    if post.pinned_at is not None:
        raise conflict("Post is already pinned")
    pinned = db.scalar(
        select(func.count(Post.id)).where(
            Post.author_id == profile.id,
            Post.pinned_at.is_not(None),
            Post.deleted_at.is_(None),
        )
    )
    if (pinned or 0) >= settings.max_pinned_posts:
        raise bad_request(
            f"At most {settings.max_pinned_posts} posts can be pinned; unpin another post first"
        )
    post.pinned_at = utcnow()
    db.commit()
    return post


def unpin_post(db: Session, profile: Profile, post_id: int, community_id: int) -> Post:
    post = _get_visible_post(db, post_id, community_id, author_id=profile.id)
    if post.author_id != profile.id:
        raise forbidden("You can only unpin your own posts")
    if post.pinned_at is None:
        raise bad_request("Post is not pinned")
    post.pinned_at = None
    db.commit()
    return post


def publish_scheduled_posts(db: Session) -> int:
    """Publish every scheduled post whose time has come. Returns the count."""
    now = utcnow()
    result = db.execute(
        update(Post)
        .where(
            Post.scheduled_at.is_not(None),
            Post.published_at.is_(None),
            Post.scheduled_at <= now,
            Post.deleted_at.is_(None),
        )
        .values(published_at=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return int(result.rowcount or 0)


def create_bookmark(db: Session, profile: Profile, post_id: int, community_id: int) -> PostBookmark:
    post = _get_visible_post(db, post_id, community_id)
    existing = db.scalar(
        select(PostBookmark).where(
            PostBookmark.profile_id == profile.id, PostBookmark.post_id == post.id
        )
    )
    if existing is not None:
        raise conflict("Post is already bookmarked")
    bookmark = PostBookmark(profile_id=profile.id, post_id=post.id)
    db.add(bookmark)
    db.commit()
    return bookmark


def delete_bookmark(db: Session, profile: Profile, post_id: int, community_id: int) -> None:
    post = _get_visible_post(db, post_id, community_id)
    bookmark = db.scalar(
        select(PostBookmark).where(
            PostBookmark.profile_id == profile.id, PostBookmark.post_id == post.id
        )
    )
    if bookmark is None:
        raise not_found("Bookmark not found")
    db.delete(bookmark)
    db.commit()


def get_bookmarks(
    db: Session,
    profile: Profile,
    community_id: int,
    cursor: int | None = None,
    limit: int | None = None,
) -> Page:
    limit = limit or settings.page_size
    stmt = (
        select(PostBookmark, Post)
        .join(Post, Post.id == PostBookmark.post_id)
        .where(
            PostBookmark.profile_id == profile.id,
            Post.community_id == community_id,
            Post.deleted_at.is_(None),
            Post.published_at.is_not(None),
        )
    )
    if cursor is not None:
        stmt = stmt.where(PostBookmark.id < cursor)
    rows = db.execute(stmt.order_by(PostBookmark.id.desc()).limit(limit + 1)).all()
    page = paginate(rows, limit, key=lambda row: row[0].id)
    views = serialize_posts(db, [post for _, post in page.items], profile.id)
    for view, (bookmark, _) in zip(views, page.items, strict=True):
        view["bookmarked_at"] = bookmark.created_at
    page.items = views
    return page


def create_reaction(
    db: Session, community: Community, profile: Profile, post_id: int, emoji: str
) -> PostReaction:
    ensure_community_active(community, "react")
    post = _get_visible_post(db, post_id, community.id)
    existing = db.scalar(
        select(PostReaction).where(
            PostReaction.profile_id == profile.id,
            PostReaction.post_id == post.id,
            PostReaction.emoji == emoji,
        )
    )
    if existing is not None:
        raise bad_request("Reaction already exists")
    reaction = PostReaction(profile_id=profile.id, post_id=post.id, emoji=emoji)
    db.add(reaction)
    notifications.notify(
        db,
        community_id=community.id,
        recipient_id=post.author_id,
        actor_id=profile.id,
        type_=NotificationType.REACTION,
        post_id=post.id,
        content=emoji,
    )
    db.commit()
    return reaction


def delete_reaction(
    db: Session, community: Community, profile: Profile, post_id: int, emoji: str
) -> None:
    ensure_community_active(community, "remove a reaction")
    post = _get_visible_post(db, post_id, community.id)
    reaction = db.scalar(
        select(PostReaction).where(
            PostReaction.profile_id == profile.id,
            PostReaction.post_id == post.id,
            PostReaction.emoji == emoji,
        )
    )
    if reaction is None:
        raise not_found("Reaction not found")
    db.delete(reaction)
    db.commit()
