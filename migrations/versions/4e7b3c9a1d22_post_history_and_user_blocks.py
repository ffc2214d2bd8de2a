"""post edit history and user blocks

Revision ID: 4e7b3c9a1d22
Revises: 9c1f2a7d4e10
Create Date: 2026-10-19 15:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "4e7b3c9a1d22"
down_revision: Union[str, Sequence[str], None] = "9c1f2a7d4e10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _fk(name: str, target: str, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(name, ID, sa.ForeignKey(target, ondelete=ondelete), nullable=False)


def upgrade() -> None:
    op.add_column("post", sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True))

    op.create_table(
        "post_history",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("post_id", "post.id"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("content_warning", sa.Text(), nullable=True),
        _fk("edited_by_profile_id", "profile.id"),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_post_history_post_id", "post_history", ["post_id"])
    op.create_table(
        "post_history_image",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("post_history_id", "post_history.id"),
        _fk("image_id", "image.id"),
        sa.UniqueConstraint(
            "post_history_id", "image_id", name="uq_post_history_image_history_image"
        ),
    )
    op.create_index(
        "ix_post_history_image_post_history_id", "post_history_image", ["post_history_id"]
    )

    op.create_table(
        "user_block",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("blocker_id", "user.id"),
        _fk("blocked_id", "user.id"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_user_block_blocker_blocked"),
    )
    op.create_index("ix_user_block_blocker_id", "user_block", ["blocker_id"])


def downgrade() -> None:
    op.drop_table("user_block")
    op.drop_table("post_history_image")
    op.drop_table("post_history")
    with op.batch_alter_table("post") as batch_op:
        batch_op.drop_column("edited_at")
