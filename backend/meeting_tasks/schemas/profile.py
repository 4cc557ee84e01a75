from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    uid: str
    email: Optional[str] = None
    role: Optional[str] = None
    goal: Optional[str] = None
    webhook_url: Optional[str] = None
    updated_at: datetime
