from typing import Awaitable, Callable

from fastapi import APIRouter, Depends

from meeting_tasks.deps import (
    bearer_token,
    get_identity_provider,
    get_profile_store,
    get_registry,
    get_task_generator,
    get_webhook_sender,
    require_shell,
)
from meeting_tasks.logging_utils import get_logger
from meeting_tasks.schemas.auth import (
    FederatedCredentials,
    IdentityRead,
    PasswordCredentials,
    SessionOut,
)
from meeting_tasks.schemas.dashboard import NotificationRead, SignOutResult
from meeting_tasks.services.identity import IdentityProvider
from meeting_tasks.services.profile_store import ProfileStore
from meeting_tasks.services.session import SessionContext
from meeting_tasks.services.shell import SessionRegistry, SessionShell
from meeting_tasks.services.tasks import TaskGenerator
from meeting_tasks.services.webhook import WebhookSender
from meeting_tasks.services.workflow import SubmissionWorkflow

router = APIRouter(prefix="/v1/auth", tags=["auth"])
log = get_logger(__name__)


class SessionOpener:
    """Builds the per-session object graph once the identity is resolved."""

    def __init__(
        self,
        provider: IdentityProvider = Depends(get_identity_provider),
        store: ProfileStore = Depends(get_profile_store),
        sender: WebhookSender = Depends(get_webhook_sender),
        generator: TaskGenerator = Depends(get_task_generator),
        registry: SessionRegistry = Depends(get_registry),
    ):
        self.provider = provider
        self.store = store
        self.sender = sender
        self.generator = generator
        self.registry = registry

    async def open(self, sign_in: Callable[[SessionContext], Awaitable[object]]) -> SessionOut:
        context = SessionContext(self.provider)
        # AuthFailure propagates to the 401 handler; nothing is registered
        await sign_in(context)

        def _workflow(shell: SessionShell) -> SubmissionWorkflow:
            return SubmissionWorkflow(
                context,
                self.store,
                self.sender,
                self.generator,
                notify=shell.notify,
                on_tasks=shell.set_tasks,
            )

        shell = SessionShell(context, _workflow)
        await shell.mount()
        token = self.registry.open(shell)
        log.info("session opened", extra={"uid": shell.identity.uid, "sessions": len(self.registry)})
        return SessionOut(token=token, identity=IdentityRead.model_validate(shell.identity))


@router.post("/sign-in", response_model=SessionOut)
async def sign_in(creds: PasswordCredentials, opener: SessionOpener = Depends()):
    return await opener.open(lambda ctx: ctx.sign_in_with_password(creds.email, creds.password))


@router.post("/sign-up", response_model=SessionOut)
async def sign_up(creds: PasswordCredentials, opener: SessionOpener = Depends()):
    return await opener.open(lambda ctx: ctx.sign_up_with_password(creds.email, creds.password))


@router.post("/federated", response_model=SessionOut)
async def federated_sign_in(creds: FederatedCredentials, opener: SessionOpener = Depends()):
    return await opener.open(lambda ctx: ctx.sign_in_with_federated_provider(creds.provider_token))


@router.post("/sign-out", response_model=SignOutResult)
async def sign_out(
    shell: SessionShell = Depends(require_shell),
    token: str | None = Depends(bearer_token),
    registry: SessionRegistry = Depends(get_registry),
):
    signed_out = await shell.sign_out()
    notifications = [NotificationRead.model_validate(n) for n in shell.notifications]
    if signed_out and token:
        registry.close(token)
    return SignOutResult(signed_out=signed_out, notifications=notifications)


@router.get("/me", response_model=IdentityRead)
async def me(shell: SessionShell = Depends(require_shell)):
    return IdentityRead.model_validate(shell.identity)
