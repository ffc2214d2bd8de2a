"""Console data exports."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import FileResponse

from commune_api.api.dependencies import ConsoleContextDep, ConsoleUserDep, SessionDep
from commune_api.core.errors import not_found
from commune_api.schemas.export import ExportResponse
from commune_api.services import exports as export_service

router = APIRouter(tags=["console-exports"])


@router.post(
    "/communities/{community_id}/exports",
    response_model=ExportResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def request_export(ctx: ConsoleContextDep, db: SessionDep) -> ExportResponse:
    """Queue an export; the scheduler picks it up on its next tick."""
    job = export_service.create_export_job(db, ctx.community_id, ctx.user_id)
    return ExportResponse.model_validate(job)


@router.get("/communities/{community_id}/exports", response_model=list[ExportResponse])
async def list_exports(ctx: ConsoleContextDep, db: SessionDep) -> list[ExportResponse]:
    return [
        ExportResponse.model_validate(job)
        for job in export_service.get_user_exports(db, ctx.community_id, ctx.user_id)
    ]


@router.get("/exports/{job_id}", response_model=ExportResponse)
async def get_export(job_id: int, user: ConsoleUserDep, db: SessionDep) -> ExportResponse:
    return ExportResponse.model_validate(export_service.get_export_job_status(db, job_id, user.id))


@router.get("/exports/{job_id}/download")
async def download_export(job_id: int, user: ConsoleUserDep, db: SessionDep) -> FileResponse:
    job = export_service.get_export_job_status(db, job_id, user.id)
    path = export_service.export_file_path(job)
    if path is None or not path.is_file():
        raise not_found("Export file not available")
    return FileResponse(path, media_type="application/json", filename=path.name)
