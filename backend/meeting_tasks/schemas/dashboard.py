from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from meeting_tasks.schemas.auth import IdentityRead


class FormRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email: str
    role: str
    goal: str
    webhook_url: str
    transcript: str


class FormUpdate(BaseModel):
    """Editable form fields; email is display-only."""

    model_config = ConfigDict(extra="forbid")

    role: Optional[str] = None
    goal: Optional[str] = None
    webhook_url: Optional[str] = None
    transcript: Optional[str] = None


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    variant: Literal["default", "destructive"]
    created_at: datetime


class DashboardView(BaseModel):
    identity: IdentityRead
    state: Literal["idle", "loading", "ready", "submitting"]
    saving: bool
    form: FormRead
    tasks: list[str]
    notifications: list[NotificationRead]


class SignOutResult(BaseModel):
    signed_out: bool
    notifications: list[NotificationRead] = []
