from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from meeting_tasks.core.settings import get_settings
from meeting_tasks.logging_utils import bind_user_context
from meeting_tasks.services.identity import FirebaseIdentityProvider, IdentityProvider
from meeting_tasks.services.profile_store import ProfileStore, SqlProfileStore
from meeting_tasks.services.shell import SessionRegistry, SessionShell
from meeting_tasks.services.tasks import TaskGenerator, choose_task_generator
from meeting_tasks.services.webhook import WebhookSender


def get_identity_provider() -> IdentityProvider:
    return FirebaseIdentityProvider.from_settings(get_settings())


def get_profile_store() -> ProfileStore:
    return SqlProfileStore()


def get_webhook_sender() -> WebhookSender:
    return WebhookSender.from_settings(get_settings())


def get_task_generator() -> TaskGenerator:
    return choose_task_generator(get_settings())


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def bearer_token(authorization: Optional[str] = Header(default=None)) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def not_signed_in() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not signed in",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_shell(
    token: str | None = Depends(bearer_token),
    registry: SessionRegistry = Depends(get_registry),
) -> SessionShell:
    """Resolve the caller's session; 401 when signed out or unknown."""
    shell = registry.get(token)
    if shell is None or shell.identity is None:
        raise not_signed_in()
    bind_user_context(shell.identity.uid)
    return shell


__all__ = [
    "bearer_token",
    "get_identity_provider",
    "get_profile_store",
    "get_registry",
    "get_task_generator",
    "get_webhook_sender",
    "not_signed_in",
    "require_shell",
]
