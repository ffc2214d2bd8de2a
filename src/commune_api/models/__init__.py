# src/commune_api/models/__init__.py
"""SQLAlchemy models for the Commune application."""

from .user import AuthSession, User, UserBlock
from .community import Community, CommunityLink
from .image import Image
from .application import ApplicationAttachment, ApplicationStatus, CommunityApplication
from .membership import Membership, MembershipRole
from .profile import Profile, ProfileOwnership, ProfileRole
from .post import (
    Post,
    PostBookmark,
    PostHistory,
    PostHistoryImage,
    PostImage,
    PostReaction,
)
from .message import DirectMessage, GroupChat, GroupChatMembership, GroupChatMessage
from .notification import Notification, NotificationType
from .moderation import ModerationAction, ModerationLog
from .export import CommunityExport, ExportStatus
from .board import Board, BoardPost

__all__ = [
    "AuthSession", "User", "UserBlock",
    "Community", "CommunityLink",
    "Image",
    "ApplicationAttachment", "ApplicationStatus", "CommunityApplication",
    "Membership", "MembershipRole",
    "Profile", "ProfileOwnership", "ProfileRole",
    "Post", "PostBookmark", "PostHistory", "PostHistoryImage", "PostImage", "PostReaction",
    "DirectMessage", "GroupChat", "GroupChatMembership", "GroupChatMessage",
    "Notification", "NotificationType",
    "ModerationAction", "ModerationLog",
    "CommunityExport", "ExportStatus",
    "Board", "BoardPost",
]
