"""Console membership applications: applying and reviewing."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from commune_api.api.dependencies import ConsoleStaffDep, ConsoleUserDep, SessionDep
from commune_api.models import ApplicationStatus
from commune_api.schemas.application import (
    ApplicationCreate,
    ApplicationReject,
    ApplicationResponse,
    ApplicationStatistics,
    ApprovalResponse,
)
from commune_api.services import applications as application_service
from commune_api.services import communities as community_service

router = APIRouter(tags=["console-applications"])


@router.get("/applications", response_model=list[ApplicationResponse])
async def list_my_applications(user: ConsoleUserDep, db: SessionDep) -> list[ApplicationResponse]:
    return [
        ApplicationResponse.model_validate(application)
        for application in application_service.get_all_user_applications(db, user.id)
    ]


@router.delete("/applications/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def withdraw_application(application_id: int, user: ConsoleUserDep, db: SessionDep) -> None:
    application_service.withdraw_application(db, user.id, application_id)


@router.post(
    "/communities/{community_id}/applications",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply(
    community_id: int, payload: ApplicationCreate, user: ConsoleUserDep, db: SessionDep
) -> ApplicationResponse:
    """Apply to join a community; the applicant is not a member yet."""
    community = community_service.get_community(db, community_id)
    application = application_service.create_application(
        db,
        user.id,
        community,
        payload.profile_name,
        payload.profile_username,
        payload.message,
        payload.attachment_image_ids,
    )
    return ApplicationResponse.model_validate(application)


@router.get(
    "/communities/{community_id}/applications/mine", response_model=list[ApplicationResponse]
)
async def list_my_community_applications(
    community_id: int, user: ConsoleUserDep, db: SessionDep
) -> list[ApplicationResponse]:
    community_service.get_community(db, community_id)
    return [
        ApplicationResponse.model_validate(application)
        for application in application_service.get_user_applications_for_community(
            db, user.id, community_id
        )
    ]


@router.get("/communities/{community_id}/applications", response_model=list[ApplicationResponse])
async def list_applications(
    ctx: ConsoleStaffDep,
    db: SessionDep,
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
) -> list[ApplicationResponse]:
    return [
        ApplicationResponse.model_validate(application)
        for application in application_service.get_community_applications(
            db, ctx.community_id, status_filter
        )
    ]


@router.get(
    "/communities/{community_id}/applications/stats", response_model=ApplicationStatistics
)
async def application_statistics(ctx: ConsoleStaffDep, db: SessionDep) -> ApplicationStatistics:
    return ApplicationStatistics(
        **application_service.get_application_statistics(db, ctx.community_id)
    )


@router.post(
    "/communities/{community_id}/applications/{application_id}/approve",
    response_model=ApprovalResponse,
)
async def approve_application(
    application_id: int, ctx: ConsoleStaffDep, db: SessionDep
) -> ApprovalResponse:
    application_service.get_application(db, application_id, ctx.community_id)
    result = application_service.approve_membership_application(db, application_id, ctx.user_id)
    return ApprovalResponse(
        application=ApplicationResponse.model_validate(result.application),
        membership_id=result.membership.id,
        profile_id=result.profile.id,
    )


@router.post(
    "/communities/{community_id}/applications/{application_id}/reject",
    response_model=ApplicationResponse,
)
async def reject_application(
    application_id: int,
    ctx: ConsoleStaffDep,
    db: SessionDep,
    payload: ApplicationReject | None = None,
) -> ApplicationResponse:
    application_service.get_application(db, application_id, ctx.community_id)
    application = application_service.reject_membership_application(
        db, application_id, ctx.user_id, payload.reason if payload else None
    )
    return ApplicationResponse.model_validate(application)


@router.post(
    "/communities/{community_id}/applications/{application_id}/revoke",
    response_model=ApplicationResponse,
)
async def revoke_review(
    application_id: int, ctx: ConsoleStaffDep, db: SessionDep
) -> ApplicationResponse:
    """Return a reviewed application to pending, undoing an approval."""
    application_service.get_application(db, application_id, ctx.community_id)
    application = application_service.revoke_application_review(db, application_id)
    return ApplicationResponse.model_validate(application)
