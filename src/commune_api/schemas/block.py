"""User block schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class BlockedUserView(BaseModel):
    id: int
    login_name: str
    blocked_at: datetime
