from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Any, Callable, Optional

from meeting_tasks.core.errors import (
    ActionInProgress,
    StoreReadFailure,
    StoreWriteFailure,
    TransportFailure,
    ValidationFailure,
)
from meeting_tasks.logging_utils import get_logger
from meeting_tasks.obs.metrics import PROFILE_SAVES, SUBMISSIONS
from meeting_tasks.schemas.submission import TranscriptSubmission
from meeting_tasks.services.profile_store import ProfileStore
from meeting_tasks.services.session import SessionContext
from meeting_tasks.services.tasks import TaskGenerator
from meeting_tasks.services.webhook import WebhookSender

log = get_logger(__name__)

Notify = Callable[..., None]
TasksCallback = Callable[[list[str]], None]

EDITABLE_FIELDS = ("role", "goal", "webhook_url", "transcript")


class WorkflowState(str, enum.Enum):
    idle = "idle"
    loading = "loading"
    ready = "ready"
    submitting = "submitting"


@dataclass
class FormState:
    email: str = ""
    role: str = ""
    goal: str = ""
    webhook_url: str = ""
    transcript: str = ""


class SubmissionWorkflow:
    """
    Profile form + transcript submission.

    idle -> loading -> ready -> submitting -> ready, with ``saving`` as an
    orthogonal flag. Failures are turned into notifications here and never
    propagate to the caller, except ``ActionInProgress`` when an action is
    re-triggered while its own call is still in flight.
    """

    def __init__(
        self,
        context: SessionContext,
        store: ProfileStore,
        sender: WebhookSender,
        generator: TaskGenerator,
        *,
        notify: Notify,
        on_tasks: TasksCallback,
    ):
        self.context = context
        self.store = store
        self.sender = sender
        self.generator = generator
        self._notify = notify
        self._on_tasks = on_tasks

        self.state = WorkflowState.idle
        self.saving = False
        self.form = FormState()
        self._profile_exists = False
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def teardown(self) -> None:
        """In-flight calls finishing after this point no longer touch state."""
        self._active = False

    # ------------------------------------------------------------------
    # mount / load
    # ------------------------------------------------------------------

    async def mount(self) -> None:
        identity = self.context.identity
        if identity is None or not self._active:
            return

        self.form.email = identity.email or ""
        self.state = WorkflowState.loading
        try:
            profile = await asyncio.to_thread(self.store.load_profile, identity.uid)
        except StoreReadFailure:
            # Non-fatal: the form keeps its defaults
            log.warning("profile load failed; using defaults", extra={"uid": identity.uid})
            profile = None

        if not self._active:
            return
        if profile is not None:
            self._profile_exists = True
            self.form.role = profile.role or ""
            self.form.goal = profile.goal or ""
            self.form.webhook_url = profile.webhook_url or ""
        self.state = WorkflowState.ready

    # ------------------------------------------------------------------
    # editing
    # ------------------------------------------------------------------

    def update_form(self, **fields: Optional[str]) -> FormState:
        for name, value in fields.items():
            if name not in EDITABLE_FIELDS:
                raise ValueError(f"{name} is not an editable field")
            if value is not None:
                setattr(self.form, name, value)
        return self.form

    # ------------------------------------------------------------------
    # save
    # ------------------------------------------------------------------

    async def save_profile(self) -> bool:
        identity = self.context.identity
        if identity is None:
            return False
        if self.saving:
            raise ActionInProgress("Your profile is already being saved.")

        partial: dict[str, Any] = {
            "role": self.form.role,
            "goal": self.form.goal,
            "webhook_url": self.form.webhook_url,
        }
        if not self._profile_exists:
            partial["email"] = self.form.email

        self.saving = True
        try:
            await asyncio.to_thread(self.store.save_profile, identity.uid, partial)
        except StoreWriteFailure:
            PROFILE_SAVES.labels(outcome="failure").inc()
            if self._active:
                self._notify("Error", "Failed to save profile information.", variant="destructive")
            return False
        finally:
            if self._active:
                self.saving = False

        PROFILE_SAVES.labels(outcome="success").inc()
        if self._active:
            self._profile_exists = True
            self._notify("Saved", "Your profile information has been saved.")
        return True

    # ------------------------------------------------------------------
    # submit
    # ------------------------------------------------------------------

    def _validate(self) -> None:
        if not self.form.webhook_url:
            raise ValidationFailure("Please enter your Zapier webhook URL.")
        if not self.form.transcript.strip():
            raise ValidationFailure("Please enter a meeting transcript.")

    def build_submission(self) -> TranscriptSubmission:
        identity = self.context.identity
        return TranscriptSubmission(
            email=self.form.email,
            role=self.form.role,
            goal=self.form.goal,
            transcript=self.form.transcript,
            user_id=identity.uid if identity else "",
        )

    async def submit(self) -> list[str] | None:
        """Send the transcript; returns the emitted task list, or None on failure."""
        if self.state is WorkflowState.submitting:
            raise ActionInProgress("Your transcript is already being sent.")
        if self.state is not WorkflowState.ready or self.context.identity is None:
            return None

        try:
            self._validate()
        except ValidationFailure as exc:
            SUBMISSIONS.labels(outcome="invalid").inc()
            self._notify("Error", exc.message, variant="destructive")
            return None

        submission = self.build_submission()
        url = self.form.webhook_url
        self.state = WorkflowState.submitting
        log.info(
            "sending transcript",
            extra={"uid": submission.user_id, "transcript_chars": len(submission.transcript)},
        )
        try:
            receipt = await self.sender.send(url, submission.to_payload())
            tasks = await self.generator.generate(submission, receipt)
        except TransportFailure as exc:
            SUBMISSIONS.labels(outcome="failure").inc()
            if self._active:
                self.state = WorkflowState.ready
                self._notify("Error", exc.message, variant="destructive")
            return None

        SUBMISSIONS.labels(outcome="accepted").inc()
        if not self._active:
            return tasks
        self._on_tasks(tasks)
        self.form.transcript = ""
        self.state = WorkflowState.ready
        self._notify("Success", "Meeting transcript sent to Zapier! Tasks are being generated.")
        return tasks
