"""Image uploads stored in the local upload directory."""

from __future__ import annotations

import io
import logging
import uuid
from pathlib import Path

from PIL import Image as PILImage
from PIL import UnidentifiedImageError
from sqlalchemy.orm import Session

from commune_api.core.errors import bad_request
from commune_api.core.settings import settings
from commune_api.models import Image

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def upload_root() -> Path:
    root = Path(settings.upload_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root


def read_dimensions(content: bytes) -> tuple[int, int]:
    """Return (width, height); 400 when Pillow cannot parse the bytes."""
    try:
        with PILImage.open(io.BytesIO(content)) as img:
            img.verify()
        with PILImage.open(io.BytesIO(content)) as img:
            return img.size
    except (UnidentifiedImageError, OSError, SyntaxError) as err:
        raise bad_request("Uploaded file is not a readable image") from err


def save_image(
    db: Session,
    filename: str | None,
    content: bytes,
    content_type: str | None,
    uploaded_by_id: int | None = None,
) -> Image:
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise bad_request(
            f"Unsupported content type {content_type!r}; "
            f"allowed: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}"
        )
    if not content:
        raise bad_request("Uploaded file is empty")
    if len(content) > settings.max_upload_bytes:
        raise bad_request(
            f"File too large: {len(content)} bytes (max {settings.max_upload_bytes} bytes)"
        )
    width, height = read_dimensions(content)

    key = f"{uuid.uuid4().hex}{ALLOWED_CONTENT_TYPES[content_type]}"
    (upload_root() / key).write_bytes(content)

    image = Image(
        key=key,
        filename=Path(filename or key).name,
        content_type=content_type,
        width=width,
        height=height,
        uploaded_by_id=uploaded_by_id,
    )
    db.add(image)
    db.commit()
    logger.info("Stored image %s (%sx%s) for user %s", key, width, height, uploaded_by_id)
    return image
