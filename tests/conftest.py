from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

# -----------------------------------------------------------------------------
# Environment defaults for tests (must be set before the app is imported)
# -----------------------------------------------------------------------------

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.abspath('.test.db')}")
os.environ.setdefault("WEBHOOK_DELIVERY_MODE", "fire_and_forget")
os.environ.setdefault("TASK_GENERATOR", "placeholder")

from meeting_tasks.core.db import SessionLocal, engine  # noqa: E402
from meeting_tasks.core.errors import AuthFailure, StoreReadFailure, StoreWriteFailure  # noqa: E402
from meeting_tasks.deps import get_identity_provider, get_webhook_sender  # noqa: E402
from meeting_tasks.main import app  # noqa: E402
from meeting_tasks.models import Base, UserProfileRecord  # noqa: E402
from meeting_tasks.schemas.profile import UserProfile  # noqa: E402
from meeting_tasks.services.identity import Identity  # noqa: E402
from meeting_tasks.services.webhook import WebhookSender  # noqa: E402


# -----------------------------------------------------------------------------
# DB schema setup/teardown
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def _clean_users():
    yield
    with SessionLocal() as db:
        db.query(UserProfileRecord).delete()
        db.commit()


# -----------------------------------------------------------------------------
# Fakes
# -----------------------------------------------------------------------------


class FakeIdentityProvider:
    """In-memory accounts; behaves like the Firebase adapter for error codes."""

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str, Identity]] = {}
        self.fail_sign_out = False
        self.sign_out_calls = 0

    def add_account(self, email: str, password: str, uid: str, display_name: str | None = None) -> Identity:
        identity = Identity(uid=uid, email=email, display_name=display_name, id_token=f"tok-{uid}")
        self.accounts[email] = (password, identity)
        return identity

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        entry = self.accounts.get(email)
        if entry is None or entry[0] != password:
            raise AuthFailure("Invalid email or password.", code="invalid-credentials")
        return entry[1]

    async def sign_up_with_password(self, email: str, password: str) -> Identity:
        if email in self.accounts:
            raise AuthFailure("An account with this email already exists.", code="account-exists")
        return self.add_account(email, password, uid=f"uid-{len(self.accounts) + 1}")

    async def sign_in_with_federated_provider(self, provider_token: str | None) -> Identity:
        if not provider_token:
            raise AuthFailure("Sign-in with the provider was cancelled.", code="provider-cancelled")
        return Identity(uid=f"google-{provider_token}", email="g@example.com", display_name="Grace Hopper")

    async def sign_out(self, identity: Identity) -> None:
        self.sign_out_calls += 1
        if self.fail_sign_out:
            raise AuthFailure("Could not reach the identity provider.", code="network")


class WebhookRecorder:
    """httpx.MockTransport that records every outbound POST."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda req: httpx.Response(200)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    def fail_with(self, exc_type: type[httpx.TransportError] = httpx.ConnectError) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise exc_type("connection refused", request=request)

        self.responder = _raise


class FakeProfileStore:
    """Dict-backed store with the same merge semantics as SqlProfileStore."""

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.writes: list[tuple[str, dict[str, Any]]] = []

    def load_profile(self, uid: str) -> UserProfile | None:
        if self.fail_reads:
            raise StoreReadFailure("Failed to load profile information.")
        row = self.rows.get(uid)
        return UserProfile(**row) if row else None

    def save_profile(self, uid: str, partial) -> UserProfile:
        if self.fail_writes:
            raise StoreWriteFailure("Failed to save profile information.")
        self.writes.append((uid, dict(partial)))
        row = self.rows.setdefault(uid, {"uid": uid})
        row.update(partial)
        row["updated_at"] = datetime.now(timezone.utc)
        return UserProfile(**row)


@pytest.fixture()
def identity_provider() -> FakeIdentityProvider:
    provider = FakeIdentityProvider()
    provider.add_account("ada@example.com", "s3cret!", uid="uid-ada", display_name="Ada Lovelace")
    return provider


@pytest.fixture()
def webhook() -> WebhookRecorder:
    return WebhookRecorder()


@pytest.fixture()
def profile_store() -> FakeProfileStore:
    return FakeProfileStore()


# -----------------------------------------------------------------------------
# Test client + helpers
# -----------------------------------------------------------------------------


@pytest.fixture()
def client(identity_provider, webhook):
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_webhook_sender] = lambda: WebhookSender(transport=webhook.transport)
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(client):
    r = client.post("/v1/auth/sign-in", json={"email": "ada@example.com", "password": "s3cret!"})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}
