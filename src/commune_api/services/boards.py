"""Community boards: owner-curated topic areas with member posts."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from commune_api.core.errors import bad_request, conflict, forbidden, not_found
from commune_api.db.time import utcnow
from commune_api.models import Board, BoardPost, Profile
from commune_api.services.authz import AuthContext


def list_boards(db: Session, community_id: int) -> Sequence[Board]:
    return db.scalars(
        select(Board)
        .where(Board.community_id == community_id, Board.deleted_at.is_(None))
        .order_by(Board.id)
    ).all()


def get_board(db: Session, community_id: int, slug: str) -> Board:
    board = db.scalar(
        select(Board).where(
            Board.community_id == community_id,
            Board.slug == slug,
            Board.deleted_at.is_(None),
        )
    )
    if board is None:
        raise not_found("Board not found")
    return board


def create_board(
    db: Session, community_id: int, name: str, slug: str, description: str | None = None
) -> Board:
    """Caller has already checked the requester owns the community."""
    existing = db.scalar(
        select(Board.id).where(Board.community_id == community_id, Board.slug == slug)
    )
    if existing is not None:
        raise conflict("A board with this slug already exists")
    board = Board(community_id=community_id, name=name, slug=slug, description=description)
    try:
        with db.begin_nested():
            db.add(board)
            db.flush()
    except IntegrityError as exc:
        raise conflict("A board with this slug already exists") from exc
    db.commit()
    return board


def list_board_posts(db: Session, board: Board, limit: int = 50) -> Sequence[BoardPost]:
    return db.scalars(
        select(BoardPost)
        .where(BoardPost.board_id == board.id, BoardPost.deleted_at.is_(None))
        .order_by(BoardPost.id.desc())
        .limit(limit)
    ).all()


def create_board_post(
    db: Session, board: Board, author: Profile, title: str, content: str
) -> BoardPost:
    if not title.strip() or not content.strip():
        raise bad_request("Board posts need a title and content")
    if author.is_muted:
        raise forbidden("This profile is muted and cannot post")
    post = BoardPost(board_id=board.id, author_id=author.id, title=title, content=content)
    db.add(post)
    db.commit()
    return post


def delete_board_post(
    db: Session, ctx: AuthContext, board: Board, post_id: int, acting_profile: Profile
) -> BoardPost:
    post = db.scalar(
        select(BoardPost).where(
            BoardPost.id == post_id,
            BoardPost.board_id == board.id,
            BoardPost.deleted_at.is_(None),
        )
    )
    if post is None:
        raise not_found("Board post not found")
    if post.author_id != acting_profile.id and not ctx.is_staff:
        raise forbidden("Only the author or community staff can delete this post")
    post.deleted_at = utcnow()
    db.commit()
    return post
