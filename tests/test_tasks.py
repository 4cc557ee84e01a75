from __future__ import annotations

import asyncio

from meeting_tasks.core.settings import Settings
from meeting_tasks.schemas.submission import TranscriptSubmission
from meeting_tasks.services.tasks import (
    PLACEHOLDER_TASKS,
    PlaceholderTaskGenerator,
    WebhookResponseTaskGenerator,
    choose_task_generator,
)
from meeting_tasks.services.webhook import DeliveryMode, DeliveryReceipt


def _submission(transcript: str = "We agreed to ship on Friday.") -> TranscriptSubmission:
    return TranscriptSubmission(email="a@b.c", role="PM", goal="Ship", transcript=transcript, user_id="u1")


def test_placeholder_ignores_transcript():
    gen = PlaceholderTaskGenerator()
    receipt = DeliveryReceipt(mode=DeliveryMode.fire_and_forget)

    first = asyncio.run(gen.generate(_submission("one"), receipt))
    second = asyncio.run(gen.generate(_submission("something else entirely"), receipt))

    assert first == second == list(PLACEHOLDER_TASKS)
    assert len(first) == 5
    assert first[0] == "Schedule follow-up meeting with key stakeholders"


def test_webhook_response_generator_reads_tasks():
    gen = WebhookResponseTaskGenerator()
    receipt = DeliveryReceipt(
        mode=DeliveryMode.confirmed,
        status_code=200,
        body={"tasks": ["Email Bob the draft", "  ", "Book room for Tuesday "]},
    )

    assert asyncio.run(gen.generate(_submission(), receipt)) == [
        "Email Bob the draft",
        "Book room for Tuesday",
    ]


def test_webhook_response_generator_falls_back():
    gen = WebhookResponseTaskGenerator()
    for receipt in (
        DeliveryReceipt(mode=DeliveryMode.fire_and_forget),
        DeliveryReceipt(mode=DeliveryMode.confirmed, status_code=200, body="ok"),
        DeliveryReceipt(mode=DeliveryMode.confirmed, status_code=200, body={"tasks": [1, 2]}),
    ):
        assert asyncio.run(gen.generate(_submission(), receipt)) == list(PLACEHOLDER_TASKS)


def test_choose_task_generator():
    assert isinstance(choose_task_generator(Settings(TASK_GENERATOR="placeholder")), PlaceholderTaskGenerator)
    assert isinstance(
        choose_task_generator(Settings(TASK_GENERATOR="webhook_response")),
        WebhookResponseTaskGenerator,
    )
