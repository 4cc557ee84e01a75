from __future__ import annotations

import secrets
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Literal, Optional

from meeting_tasks.core.errors import AuthFailure
from meeting_tasks.logging_utils import get_logger
from meeting_tasks.services.identity import Identity
from meeting_tasks.services.session import IdentityState, SessionContext
from meeting_tasks.services.workflow import SubmissionWorkflow

log = get_logger(__name__)


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


WorkflowFactory = Callable[["SessionShell"], SubmissionWorkflow]


class SessionShell:
    """
    Authenticated view state: the workflow, the current task list and the
    pending notifications for one session.
    """

    def __init__(self, context: SessionContext, workflow_factory: WorkflowFactory):
        self.context = context
        self.tasks: list[str] = []
        self.notifications: list[Notification] = []
        self.workflow = workflow_factory(self)
        self._unsubscribe = context.subscribe(self._on_identity_change)

    @property
    def identity(self) -> Identity | None:
        return self.context.identity

    # callbacks handed to the workflow
    def notify(
        self,
        title: str,
        description: str,
        variant: Literal["default", "destructive"] = "default",
    ) -> Notification:
        note = Notification(title=title, description=description, variant=variant)
        self.notifications.append(note)
        return note

    def set_tasks(self, tasks: list[str]) -> None:
        self.tasks = list(tasks)

    def dismiss(self, notification_id: str) -> bool:
        before = len(self.notifications)
        self.notifications = [n for n in self.notifications if n.id != notification_id]
        return len(self.notifications) != before

    def _on_identity_change(self, state: IdentityState, identity: Optional[Identity]) -> None:
        if state is IdentityState.absent:
            self.workflow.teardown()
            self.tasks = []

    async def mount(self) -> None:
        await self.workflow.mount()

    async def sign_out(self) -> bool:
        try:
            await self.context.sign_out()
        except AuthFailure as exc:
            log.warning("sign-out failed", extra={"code": exc.code})
            self.notify("Error", "Failed to log out. Please try again.", variant="destructive")
            return False
        self.notify("Logged out", "You have been successfully logged out.")
        return True

    def close(self) -> None:
        self._unsubscribe()
        self.workflow.teardown()
        self.context.close()


class SessionRegistry:
    """
    Bearer token -> SessionShell. Created at start-up, emptied at shutdown.

    Sessions not looked up for ``ttl`` seconds are closed on the next
    ``open``/``get``; ``ttl=None`` or ``0`` keeps them until sign-out.
    """

    def __init__(self, ttl: float | None = None, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._sessions: dict[str, SessionShell] = {}
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, shell: SessionShell) -> str:
        self.evict_idle()
        token = secrets.token_urlsafe(32)
        self._sessions[token] = shell
        self._last_seen[token] = self._clock()
        return token

    def get(self, token: str | None) -> SessionShell | None:
        if not token:
            return None
        self.evict_idle()
        shell = self._sessions.get(token)
        if shell is not None:
            self._last_seen[token] = self._clock()
        return shell

    def evict_idle(self) -> int:
        if not self.ttl:
            return 0
        cutoff = self._clock() - self.ttl
        idle = [token for token, seen in self._last_seen.items() if seen < cutoff]
        for token in idle:
            self.close(token)
        if idle:
            log.info("idle sessions evicted", extra={"evicted": len(idle), "sessions": len(self._sessions)})
        return len(idle)

    def close(self, token: str) -> None:
        self._last_seen.pop(token, None)
        shell = self._sessions.pop(token, None)
        if shell is not None:
            shell.close()

    def close_all(self) -> None:
        for token in list(self._sessions):
            self.close(token)
