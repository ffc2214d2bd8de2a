"""Image uploads for console users (application attachments)."""

from __future__ import annotations

from fastapi import APIRouter, File, UploadFile, status

from commune_api.api.dependencies import ConsoleUserDep, SessionDep
from commune_api.schemas.image import ImageResponse
from commune_api.services import uploads

router = APIRouter(prefix="/images", tags=["console-images"])


@router.post("", response_model=ImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_image(
    user: ConsoleUserDep, db: SessionDep, file: UploadFile = File(...)
) -> ImageResponse:
    content = await file.read()
    image = uploads.save_image(db, file.filename, content, file.content_type, user.id)
    return ImageResponse.model_validate(image)
