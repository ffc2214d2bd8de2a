"""Request authorization context and role checks."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from commune_api.core.errors import ErrorCode, forbidden
from commune_api.models import AuthSession, Community, Membership, MembershipRole, User
from commune_api.models.membership import role_allowed


@dataclass(frozen=True)
class AuthContext:
    """Who is acting, in which community, with which standing.

    Built once per request by the dependency chain and handed to services
    instead of being looked up again from request state.
    """

    user: User
    community: Community
    membership: Membership
    session: AuthSession | None = None

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def community_id(self) -> int:
        return self.community.id

    @property
    def role(self) -> MembershipRole:
        return self.membership.role

    @property
    def is_staff(self) -> bool:
        return self.role in (MembershipRole.OWNER, MembershipRole.MODERATOR)

    @property
    def is_owner(self) -> bool:
        return self.role is MembershipRole.OWNER


def require_role(
    membership: Membership | None,
    allowed: Iterable[MembershipRole],
) -> Membership:
    """Return ``membership`` when it is active and its role is allowed.

    Raises:
        AppError: 403 NOT_A_MEMBER when there is no active membership,
            403 ACCESS_DENIED when the role is not in ``allowed``.
    """
    if membership is None or not membership.is_active:
        raise forbidden("You are not a member of this community", ErrorCode.NOT_A_MEMBER)
    if not role_allowed(membership.role, allowed):
        raise forbidden("You do not have permission to perform this action")
    return membership
