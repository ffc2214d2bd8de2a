"""Membership schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from commune_api.models import MembershipRole

from .profile import ProfileSummary


class MemberUser(BaseModel):
    id: int
    login_name: str

    model_config = ConfigDict(from_attributes=True)


class MemberResponse(BaseModel):
    membership_id: int
    role: MembershipRole
    activated_at: datetime | None
    user: MemberUser
    profiles: list[ProfileSummary]


class RoleUpdate(BaseModel):
    role: MembershipRole


class RoleUpdateResponse(BaseModel):
    membership_id: int
    role: MembershipRole
    transferred: bool


class OwnershipTransfer(BaseModel):
    new_owner_user_id: int
