"""Membership application workflow: apply, withdraw, approve, reject, revoke."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from commune_api.core.errors import ErrorCode, bad_request, conflict, not_found
from commune_api.core.security import strip_html
from commune_api.db.time import utcnow
from commune_api.models import (
    ApplicationAttachment,
    ApplicationStatus,
    Community,
    CommunityApplication,
    Image,
    Membership,
    MembershipRole,
    Profile,
    ProfileRole,
)
from commune_api.models.lifecycle import activate, deactivate
from commune_api.services import membership as membership_service
from commune_api.services import profile_ownership

logger = logging.getLogger(__name__)


@dataclass
class ApprovalResult:
    application: CommunityApplication
    membership: Membership
    profile: Profile


def _get_application(db: Session, application_id: int) -> CommunityApplication:
    application = db.get(CommunityApplication, application_id)
    if application is None:
        raise not_found("Application not found")
    return application


def get_application(db: Session, application_id: int, community_id: int) -> CommunityApplication:
    """Fetch an application, treating one from another community as missing."""
    application = db.get(CommunityApplication, application_id)
    if application is None or application.community_id != community_id:
        raise not_found("Application not found")
    return application


def create_application(
    db: Session,
    user_id: int,
    community: Community,
    profile_name: str,
    profile_username: str,
    message: str | None = None,
    attachment_image_ids: Sequence[int] = (),
) -> CommunityApplication:
    if membership_service.get_user_membership(db, user_id, community.id) is not None:
        raise bad_request("You are already a member of this community")

    pending = db.scalar(
        select(CommunityApplication).where(
            CommunityApplication.user_id == user_id,
            CommunityApplication.community_id == community.id,
            CommunityApplication.status == ApplicationStatus.PENDING,
        )
    )
    if pending is not None:
        raise bad_request("You already have a pending application for this community")

    if not community.is_accepting_applications(utcnow()):
        raise bad_request("This community is not accepting applications")

    image_ids = list(dict.fromkeys(attachment_image_ids))
    if image_ids:
        found = db.scalar(
            select(func.count(Image.id)).where(
                Image.id.in_(image_ids), Image.deleted_at.is_(None)
            )
        )
        if found != len(image_ids):
            raise bad_request("Some attachments are not valid images")

    application = CommunityApplication(
        user_id=user_id,
        community_id=community.id,
        profile_name=profile_name,
        profile_username=profile_username,
        message=strip_html(message),
        status=ApplicationStatus.PENDING,
    )
    application.attachments = [ApplicationAttachment(image_id=image_id) for image_id in image_ids]
    db.add(application)
    db.commit()
    db.refresh(application)
    return application


def withdraw_application(db: Session, user_id: int, application_id: int) -> None:
    application = db.get(CommunityApplication, application_id)
    if application is None or application.user_id != user_id:
        raise not_found("Application not found")
    if application.status is not ApplicationStatus.PENDING:
        raise bad_request("Only pending applications can be withdrawn")
    db.delete(application)
    db.commit()


def approve_membership_application(
    db: Session, application_id: int, reviewer_id: int
) -> ApprovalResult:
    """Approve an application and materialise its membership and profile.

    Everything below happens in one transaction. An existing profile with the
    requested username is reused only when the applicant owns it and the
    applicant's membership was produced by this very application (a
    re-approval after a revoke). Any other holder of the username is a
    conflict.
    """
    application = _get_application(db, application_id)
    if application.status is not ApplicationStatus.PENDING:
        raise bad_request("Application has already been reviewed")

    now = utcnow()
    user_id = application.user_id
    community_id = application.community_id

    existing_membership = membership_service.get_any_membership(db, user_id, community_id)
    produced_by_this_application = (
        existing_membership is not None and existing_membership.application_id == application.id
    )

    existing_profile = db.scalar(
        select(Profile).where(
            Profile.community_id == community_id,
            Profile.username == application.profile_username,
            Profile.deleted_at.is_(None),
        )
    )
    if existing_profile is not None:
        ownership = profile_ownership.get_profile_ownership(db, user_id, existing_profile.id)
        applicant_owns = ownership is not None and ownership.role is ProfileRole.OWNER
        if not (applicant_owns and produced_by_this_application):
            raise conflict("Username is already taken in this community", ErrorCode.USERNAME_TAKEN)

    application.status = ApplicationStatus.APPROVED
    application.reviewed_at = now
    application.reviewed_by_id = reviewer_id
    application.rejection_reason = None

    if existing_membership is not None:
        membership = membership_service.activate_membership(
            db, existing_membership, MembershipRole.MEMBER, application.id
        )
        for owned in profile_ownership.get_owned_profiles(db, user_id, community_id):
            activate(owned, now)
    else:
        membership = membership_service.create_membership(
            db, user_id, community_id, MembershipRole.MEMBER, application.id
        )

    if existing_profile is not None:
        profile = existing_profile
        profile.name = application.profile_name
        activate(profile, now)
    else:
        profile = Profile(
            community_id=community_id,
            name=application.profile_name,
            username=application.profile_username,
            is_primary=False,
        )
        activate(profile, now)
        db.add(profile)
        db.flush()
        profile_ownership.create_profile_ownership(db, profile.id, user_id, reviewer_id)

    for other in profile_ownership.get_owned_profiles(db, user_id, community_id):
        if other.id != profile.id and other.is_primary:
            other.is_primary = False
    db.flush()
    profile.is_primary = True

    db.commit()
    logger.info(
        "Approved application %s: user %s joined community %s as @%s",
        application.id,
        user_id,
        community_id,
        profile.username,
    )
    return ApprovalResult(application=application, membership=membership, profile=profile)


def reject_membership_application(
    db: Session, application_id: int, reviewer_id: int, reason: str | None = None
) -> CommunityApplication:
    application = _get_application(db, application_id)
    if application.status is not ApplicationStatus.PENDING:
        raise bad_request("Application has already been reviewed")
    application.status = ApplicationStatus.REJECTED
    application.reviewed_at = utcnow()
    application.reviewed_by_id = reviewer_id
    application.rejection_reason = reason
    db.commit()
    return application


def revoke_application_review(db: Session, application_id: int) -> CommunityApplication:
    """Send a reviewed application back to pending, undoing an approval."""
    application = _get_application(db, application_id)
    if application.status is ApplicationStatus.PENDING:
        raise bad_request("Application has not been reviewed")

    if application.status is ApplicationStatus.APPROVED:
        membership = db.scalar(
            select(Membership).where(Membership.application_id == application.id)
        )
        if membership is not None:
            deactivate(membership)
        profile = db.scalar(
            select(Profile).where(
                Profile.community_id == application.community_id,
                Profile.username == application.profile_username,
                Profile.deleted_at.is_(None),
            )
        )
        if profile is not None and profile_ownership.get_profile_ownership(
            db, application.user_id, profile.id
        ):
            deactivate(profile)

    application.status = ApplicationStatus.PENDING
    application.reviewed_at = None
    application.reviewed_by_id = None
    application.rejection_reason = None
    db.commit()
    logger.info("Revoked review of application %s", application.id)
    return application


def get_user_applications_for_community(
    db: Session, user_id: int, community_id: int
) -> Sequence[CommunityApplication]:
    return db.scalars(
        select(CommunityApplication)
        .where(
            CommunityApplication.user_id == user_id,
            CommunityApplication.community_id == community_id,
        )
        .order_by(CommunityApplication.id.desc())
    ).all()


def get_all_user_applications(db: Session, user_id: int) -> Sequence[CommunityApplication]:
    return db.scalars(
        select(CommunityApplication)
        .where(CommunityApplication.user_id == user_id)
        .order_by(CommunityApplication.id.desc())
    ).all()


def get_user_latest_application(
    db: Session, user_id: int, community_id: int
) -> CommunityApplication | None:
    return db.scalar(
        select(CommunityApplication)
        .where(
            CommunityApplication.user_id == user_id,
            CommunityApplication.community_id == community_id,
        )
        .order_by(CommunityApplication.id.desc())
        .limit(1)
    )


def get_community_applications(
    db: Session, community_id: int, status: ApplicationStatus | None = None
) -> Sequence[CommunityApplication]:
    stmt = select(CommunityApplication).where(CommunityApplication.community_id == community_id)
    if status is not None:
        stmt = stmt.where(CommunityApplication.status == status)
    return db.scalars(stmt.order_by(CommunityApplication.id.desc())).all()


def get_application_statistics(db: Session, community_id: int) -> dict[str, int]:
    rows = db.execute(
        select(CommunityApplication.status, func.count(CommunityApplication.id))
        .where(CommunityApplication.community_id == community_id)
        .group_by(CommunityApplication.status)
    ).all()
    counts = {status.value: 0 for status in ApplicationStatus}
    for status, total in rows:
        counts[ApplicationStatus(status).value] = int(total)
    counts["total"] = sum(counts[status.value] for status in ApplicationStatus)
    return counts
