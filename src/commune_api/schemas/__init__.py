# src/commune_api/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .application import ApplicationCreate, ApplicationReject, ApplicationResponse
from .auth import LoginRequest, SessionResponse, SignupRequest, UserResponse
from .block import BlockedUserView
from .board import BoardCreate, BoardPostCreate, BoardPostResponse, BoardResponse
from .common import MessageResponse, Page
from .community import CommunityCreate, CommunityResponse, CommunityUpdate
from .export import ExportResponse
from .image import ImageResponse
from .membership import MemberResponse, RoleUpdate
from .message import DirectMessageCreate, DirectMessageResponse, GroupChatCreate
from .moderation import ModerationLogResponse, MuteRequest
from .notification import NotificationResponse
from .post import PostCreate, PostHistoryView, PostThreadResponse, PostUpdate, PostView
from .profile import ProfileCreate, ProfileResponse, ProfileUpdate

__all__ = [
    "ApplicationCreate", "ApplicationReject", "ApplicationResponse",
    "LoginRequest", "SessionResponse", "SignupRequest", "UserResponse",
    "BlockedUserView",
    "BoardCreate", "BoardPostCreate", "BoardPostResponse", "BoardResponse",
    "MessageResponse", "Page",
    "CommunityCreate", "CommunityResponse", "CommunityUpdate",
    "ExportResponse",
    "ImageResponse",
    "MemberResponse", "RoleUpdate",
    "DirectMessageCreate", "DirectMessageResponse", "GroupChatCreate",
    "ModerationLogResponse", "MuteRequest",
    "NotificationResponse",
    "PostCreate", "PostHistoryView", "PostThreadResponse", "PostUpdate", "PostView",
    "ProfileCreate", "ProfileResponse", "ProfileUpdate",
]
