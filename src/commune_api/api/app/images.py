"""Image upload endpoint for app clients."""

from __future__ import annotations

from fastapi import APIRouter, File, UploadFile, status

from commune_api.api.dependencies import AppContextDep, SessionDep
from commune_api.schemas.image import ImageResponse
from commune_api.services import uploads

router = APIRouter(prefix="/images", tags=["app-images"])


@router.post("", response_model=ImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_image(
    ctx: AppContextDep, db: SessionDep, file: UploadFile = File(...)
) -> ImageResponse:
    content = await file.read()
    image = uploads.save_image(db, file.filename, content, file.content_type, ctx.user_id)
    return ImageResponse.model_validate(image)
