from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def iso_timestamp(moment: datetime | None = None) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class TranscriptSubmission(BaseModel):
    """Webhook body; built at submit time and sent once."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    email: str
    role: str
    goal: str
    transcript: str
    timestamp: str = Field(default_factory=iso_timestamp)
    user_id: str = Field(alias="userId")

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)
