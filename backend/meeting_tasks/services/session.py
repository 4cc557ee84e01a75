from __future__ import annotations

import enum
from typing import Awaitable, Callable, Optional

from meeting_tasks.core.errors import AuthFailure
from meeting_tasks.logging_utils import get_logger
from meeting_tasks.obs.metrics import AUTH_EVENTS
from meeting_tasks.services.identity import Identity, IdentityProvider

log = get_logger(__name__)


class IdentityState(str, enum.Enum):
    absent = "absent"
    resolving = "resolving"
    present = "present"


Listener = Callable[[IdentityState, Optional[Identity]], None]


class SessionContext:
    """
    Current-identity holder for one user session.

    Only this object changes the identity; every other component reads it
    (or subscribes to changes). Lifecycle: created before sign-in, closed
    on sign-out.
    """

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self._identity: Identity | None = None
        self._state = IdentityState.absent
        self._listeners: list[Listener] = []
        self.closed = False

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def state(self) -> IdentityState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set(self, state: IdentityState, identity: Identity | None) -> None:
        self._state = state
        self._identity = identity
        for listener in list(self._listeners):
            listener(state, identity)

    async def _resolve(self, action: str, call: Callable[[], Awaitable[Identity]]) -> Identity:
        previous = (self._state, self._identity)
        self._set(IdentityState.resolving, self._identity)
        try:
            identity = await call()
        except AuthFailure:
            AUTH_EVENTS.labels(action=action, outcome="failure").inc()
            self._set(*previous)
            raise
        AUTH_EVENTS.labels(action=action, outcome="success").inc()
        self._set(IdentityState.present, identity)
        log.info("identity resolved", extra={"action": action, "uid": identity.uid})
        return identity

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        return await self._resolve(
            "sign_in", lambda: self.provider.sign_in_with_password(email, password)
        )

    async def sign_up_with_password(self, email: str, password: str) -> Identity:
        return await self._resolve(
            "sign_up", lambda: self.provider.sign_up_with_password(email, password)
        )

    async def sign_in_with_federated_provider(self, provider_token: str | None) -> Identity:
        return await self._resolve(
            "federated", lambda: self.provider.sign_in_with_federated_provider(provider_token)
        )

    async def sign_out(self) -> None:
        """Clear the identity; on AuthFailure the identity is left as it was."""
        if self._identity is None:
            return
        try:
            await self.provider.sign_out(self._identity)
        except AuthFailure:
            AUTH_EVENTS.labels(action="sign_out", outcome="failure").inc()
            raise
        AUTH_EVENTS.labels(action="sign_out", outcome="success").inc()
        self._set(IdentityState.absent, None)

    def close(self) -> None:
        self._listeners.clear()
        self._identity = None
        self._state = IdentityState.absent
        self.closed = True
