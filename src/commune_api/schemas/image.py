"""Uploaded image schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, computed_field


class ImageResponse(BaseModel):
    id: int
    key: str
    filename: str
    content_type: str
    width: int
    height: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        return f"/uploads/{self.key}"
