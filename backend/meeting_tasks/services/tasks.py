from __future__ import annotations

from typing import Protocol

from meeting_tasks.core.settings import Settings
from meeting_tasks.schemas.submission import TranscriptSubmission
from meeting_tasks.services.webhook import DeliveryReceipt

PLACEHOLDER_TASKS: tuple[str, ...] = (
    "Schedule follow-up meeting with key stakeholders",
    "Create action item summary document",
    "Send meeting notes to all participants",
    "Research discussed solutions and prepare recommendations",
    "Set up project timeline based on meeting decisions",
)


class TaskGenerator(Protocol):
    async def generate(
        self, submission: TranscriptSubmission, receipt: DeliveryReceipt
    ) -> list[str]: ...


class PlaceholderTaskGenerator:
    """Fixed list; the transcript is not read."""

    async def generate(
        self, submission: TranscriptSubmission, receipt: DeliveryReceipt
    ) -> list[str]:
        return list(PLACEHOLDER_TASKS)


class WebhookResponseTaskGenerator:
    """Reads ``{"tasks": [...]}`` from a confirmed delivery's response body."""

    def __init__(self, fallback: TaskGenerator | None = None):
        self.fallback = fallback or PlaceholderTaskGenerator()

    async def generate(
        self, submission: TranscriptSubmission, receipt: DeliveryReceipt
    ) -> list[str]:
        body = receipt.body if receipt.confirmed else None
        tasks = body.get("tasks") if isinstance(body, dict) else None
        if isinstance(tasks, list) and all(isinstance(t, str) for t in tasks):
            cleaned = [t.strip() for t in tasks if t.strip()]
            if cleaned:
                return cleaned
        return await self.fallback.generate(submission, receipt)


def choose_task_generator(settings: Settings) -> TaskGenerator:
    if settings.TASK_GENERATOR == "webhook_response":
        return WebhookResponseTaskGenerator()
    return PlaceholderTaskGenerator()
