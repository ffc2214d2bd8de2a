"""initial schema

Revision ID: 9c1f2a7d4e10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "9c1f2a7d4e10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _ts(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def _fk(name: str, target: str, ondelete: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, ID, sa.ForeignKey(target, ondelete=ondelete), nullable=nullable)


def upgrade() -> None:
    """Create the full schema."""
    op.create_table(
        "user",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("login_name", sa.String(50), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("created_at", nullable=False),
        _ts("deleted_at"),
        sa.UniqueConstraint("login_name", name="uq_user_login_name"),
    )
    op.create_table(
        "community",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.String(63), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _ts("starts_at", nullable=False),
        _ts("ends_at", nullable=False),
        sa.Column("is_recruiting", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("recruiting_starts_at"),
        _ts("recruiting_ends_at"),
        sa.Column("minimum_birth_year", sa.Integer(), nullable=True),
        sa.Column("custom_domain", sa.Text(), nullable=True),
        _ts("domain_verified_at"),
        sa.Column("mute_new_members", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
        _ts("deleted_at"),
        sa.UniqueConstraint("slug", name="uq_community_slug"),
        sa.UniqueConstraint("custom_domain", name="uq_community_custom_domain"),
        sa.CheckConstraint("ends_at > starts_at", name="ck_community_period"),
    )
    op.create_table(
        "community_link",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("community_id", "community.id", "CASCADE"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        _ts("created_at", nullable=False),
    )
    op.create_index("ix_community_link_community_id", "community_link", ["community_id"])

    op.create_table(
        "auth_session",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("user_id", "user.id", "CASCADE"),
        _fk("community_id", "community.id", "CASCADE", nullable=True),
        _ts("expires_at", nullable=False),
        _ts("created_at", nullable=False),
    )
    op.create_index("ix_auth_session_user_id", "auth_session", ["user_id"])

    op.create_table(
        "image",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("key", sa.Text(), nullable=False, unique=True),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("content_type", sa.Text(), nullable=False),
        sa.Column("width", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("height", sa.Integer(), nullable=False, server_default="0"),
        _fk("uploaded_by_id", "user.id", "SET NULL", nullable=True),
        _ts("created_at", nullable=False),
        _ts("deleted_at"),
    )

    op.create_table(
        "community_application",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("user_id", "user.id", "CASCADE"),
        _fk("community_id", "community.id", "CASCADE"),
        sa.Column("profile_name", sa.Text(), nullable=False),
        sa.Column("profile_username", sa.String(50), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _ts("reviewed_at"),
        _fk("reviewed_by_id", "user.id", "SET NULL", nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        _ts("created_at", nullable=False),
    )
    op.create_index(
        "ix_community_application_user_id", "community_application", ["user_id"]
    )
    op.create_index(
        "ix_community_application_community_id", "community_application", ["community_id"]
    )
    op.create_index(
        "uq_application_pending_user_community",
        "community_application",
        ["user_id", "community_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )
    op.create_table(
        "application_attachment",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("application_id", "community_application.id", "CASCADE"),
        _fk("image_id", "image.id", "CASCADE"),
    )
    op.create_index(
        "ix_application_attachment_application_id", "application_attachment", ["application_id"]
    )

    op.create_table(
        "membership",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("user_id", "user.id", "CASCADE"),
        _fk("community_id", "community.id", "CASCADE"),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        _fk("application_id", "community_application.id", "SET NULL", nullable=True),
        _ts("activated_at"),
        _ts("deactivated_at"),
        _ts("created_at", nullable=False),
        sa.UniqueConstraint("user_id", "community_id", name="uq_membership_user_community"),
        sa.UniqueConstraint("application_id", name="uq_membership_application"),
    )
    op.create_index("ix_membership_user_id", "membership", ["user_id"])
    op.create_index("ix_membership_community_id", "membership", ["community_id"])
    op.create_index(
        "uq_membership_active_owner",
        "membership",
        ["community_id"],
        unique=True,
        postgresql_where=sa.text("role = 'owner' AND activated_at IS NOT NULL"),
        sqlite_where=sa.text("role = 'owner' AND activated_at IS NOT NULL"),
    )

    op.create_table(
        "profile",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("community_id", "community.id", "CASCADE"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("muted_at"),
        _fk("muted_by_id", "profile.id", "SET NULL", nullable=True),
        _ts("last_active_at"),
        _ts("activated_at"),
        _ts("deactivated_at"),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
        _ts("deleted_at"),
    )
    op.create_index("ix_profile_community_id", "profile", ["community_id"])
    op.create_index(
        "uq_profile_community_username",
        "profile",
        ["community_id", "username"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )
    op.create_table(
        "profile_ownership",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("profile_id", "profile.id", "CASCADE"),
        _fk("user_id", "user.id", "CASCADE"),
        sa.Column("role", sa.String(20), nullable=False, server_default="owner"),
        _fk("created_by_id", "user.id", "SET NULL", nullable=True),
        _ts("created_at", nullable=False),
        sa.UniqueConstraint("profile_id", "user_id", name="uq_profile_ownership_profile_user"),
    )
    op.create_index("ix_profile_ownership_profile_id", "profile_ownership", ["profile_id"])
    op.create_index("ix_profile_ownership_user_id", "profile_ownership", ["user_id"])

    op.create_table(
        "post",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("community_id", "community.id", "CASCADE"),
        _fk("author_id", "profile.id", "CASCADE"),
        _fk("created_by_user_id", "user.id", "SET NULL", nullable=True),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("announcement", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("content_warning", sa.Text(), nullable=True),
        _fk("in_reply_to_id", "post.id", "SET NULL", nullable=True),
        sa.Column("depth", sa.Integer(), nullable=False, server_default="0"),
        _fk("root_post_id", "post.id", "SET NULL", nullable=True),
        _ts("scheduled_at"),
        _ts("published_at"),
        _ts("pinned_at"),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
        _ts("deleted_at"),
    )
    op.create_index("ix_post_community_id", "post", ["community_id"])
    op.create_index("ix_post_author_id", "post", ["author_id"])
    op.create_index("ix_post_in_reply_to_id", "post", ["in_reply_to_id"])
    op.create_index("ix_post_root_post_id", "post", ["root_post_id"])
    op.create_table(
        "post_image",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("post_id", "post.id", "CASCADE"),
        _fk("image_id", "image.id", "CASCADE"),
    )
    op.create_index("ix_post_image_post_id", "post_image", ["post_id"])
    op.create_table(
        "post_bookmark",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("profile_id", "profile.id", "CASCADE"),
        _fk("post_id", "post.id", "CASCADE"),
        _ts("created_at", nullable=False),
        sa.UniqueConstraint("profile_id", "post_id", name="uq_post_bookmark_profile_post"),
    )
    op.create_index("ix_post_bookmark_profile_id", "post_bookmark", ["profile_id"])
    op.create_table(
        "post_reaction",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("profile_id", "profile.id", "CASCADE"),
        _fk("post_id", "post.id", "CASCADE"),
        sa.Column("emoji", sa.String(32), nullable=False),
        _ts("created_at", nullable=False),
        sa.UniqueConstraint(
            "profile_id", "post_id", "emoji", name="uq_post_reaction_profile_post_emoji"
        ),
    )
    op.create_index("ix_post_reaction_post_id", "post_reaction", ["post_id"])

    op.create_table(
        "direct_message",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("community_id", "community.id", "CASCADE"),
        _fk("sender_id", "profile.id", "CASCADE"),
        _fk("receiver_id", "profile.id", "CASCADE"),
        _fk("created_by_user_id", "user.id", "SET NULL", nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        _ts("read_at"),
        _ts("created_at", nullable=False),
        _ts("deleted_at"),
        sa.CheckConstraint("sender_id <> receiver_id", name="ck_direct_message_not_self"),
    )
    op.create_index("ix_direct_message_community_id", "direct_message", ["community_id"])
    op.create_index("ix_direct_message_sender_id", "direct_message", ["sender_id"])
    op.create_index("ix_direct_message_receiver_id", "direct_message", ["receiver_id"])
    op.create_table(
        "group_chat",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("community_id", "community.id", "CASCADE"),
        sa.Column("name", sa.Text(), nullable=False),
        _fk("created_by_id", "profile.id", "CASCADE"),
        _ts("created_at", nullable=False),
        _ts("deleted_at"),
    )
    op.create_index("ix_group_chat_community_id", "group_chat", ["community_id"])
    op.create_table(
        "group_chat_membership",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("group_chat_id", "group_chat.id", "CASCADE"),
        _fk("profile_id", "profile.id", "CASCADE"),
        _ts("created_at", nullable=False),
        sa.UniqueConstraint("group_chat_id", "profile_id", name="uq_group_chat_membership"),
    )
    op.create_index(
        "ix_group_chat_membership_group_chat_id", "group_chat_membership", ["group_chat_id"]
    )
    op.create_index(
        "ix_group_chat_membership_profile_id", "group_chat_membership", ["profile_id"]
    )
    op.create_table(
        "group_chat_message",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("group_chat_id", "group_chat.id", "CASCADE"),
        _fk("sender_id", "profile.id", "CASCADE"),
        _fk("created_by_user_id", "user.id", "SET NULL", nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        _ts("created_at", nullable=False),
        _ts("deleted_at"),
    )
    op.create_index(
        "ix_group_chat_message_group_chat_id", "group_chat_message", ["group_chat_id"]
    )

    op.create_table(
        "notification",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("community_id", "community.id", "CASCADE"),
        _fk("recipient_id", "profile.id", "CASCADE"),
        _fk("profile_id", "profile.id", "SET NULL", nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        _fk("post_id", "post.id", "CASCADE", nullable=True),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        _ts("read_at"),
        _ts("created_at", nullable=False),
    )
    op.create_index("ix_notification_community_id", "notification", ["community_id"])
    op.create_index("ix_notification_recipient_id", "notification", ["recipient_id"])

    op.create_table(
        "moderation_log",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("community_id", "community.id", "CASCADE"),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        _fk("moderator_id", "profile.id", "CASCADE"),
        _fk("target_profile_id", "profile.id", "SET NULL", nullable=True),
        _fk("target_post_id", "post.id", "SET NULL", nullable=True),
        _ts("created_at", nullable=False),
    )
    op.create_index("ix_moderation_log_community_id", "moderation_log", ["community_id"])

    op.create_table(
        "community_export",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("community_id", "community.id", "CASCADE"),
        _fk("user_id", "user.id", "CASCADE"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("file_key", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        _ts("created_at", nullable=False),
        _ts("completed_at"),
        _ts("expires_at"),
    )
    op.create_index("ix_community_export_community_id", "community_export", ["community_id"])
    op.create_index("ix_community_export_user_id", "community_export", ["user_id"])

    op.create_table(
        "board",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("community_id", "community.id", "CASCADE"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.String(63), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _ts("created_at", nullable=False),
        _ts("deleted_at"),
        sa.UniqueConstraint("community_id", "slug", name="uq_board_community_slug"),
    )
    op.create_index("ix_board_community_id", "board", ["community_id"])
    op.create_table(
        "board_post",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        _fk("board_id", "board.id", "CASCADE"),
        _fk("author_id", "profile.id", "CASCADE"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _ts("created_at", nullable=False),
        _ts("deleted_at"),
    )
    op.create_index("ix_board_post_board_id", "board_post", ["board_id"])


def downgrade() -> None:
    """Drop the full schema."""
    for table in (
        "board_post",
        "board",
        "community_export",
        "moderation_log",
        "notification",
        "group_chat_message",
        "group_chat_membership",
        "group_chat",
        "direct_message",
        "post_reaction",
        "post_bookmark",
        "post_image",
        "post",
        "profile_ownership",
        "profile",
        "membership",
        "application_attachment",
        "community_application",
        "image",
        "auth_session",
        "community_link",
        "community",
        "user",
    ):
        op.drop_table(table)
