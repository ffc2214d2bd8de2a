"""Community export schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from commune_api.models import ExportStatus


class ExportResponse(BaseModel):
    id: int
    community_id: int
    status: ExportStatus
    error_message: str | None
    created_at: datetime
    completed_at: datetime | None
    expires_at: datetime | None

    model_config = ConfigDict(from_attributes=True)
