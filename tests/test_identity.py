from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from meeting_tasks.core.errors import AuthFailure
from meeting_tasks.services.identity import FirebaseIdentityProvider


def _provider(handler, api_key: str | None = "test-key") -> FirebaseIdentityProvider:
    return FirebaseIdentityProvider(
        api_key,
        base_url="https://identity.test/v1",
        transport=httpx.MockTransport(handler),
    )


def _firebase_error(message: str, status: int = 400) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


def test_password_sign_in_maps_identity():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "localId": "uid-1",
                "email": "ada@example.com",
                "displayName": "Ada Lovelace",
                "idToken": "id-tok",
                "refreshToken": "refresh-tok",
            },
        )

    identity = asyncio.run(_provider(handler).sign_in_with_password("ada@example.com", "pw"))

    assert identity.uid == "uid-1"
    assert identity.display_name == "Ada Lovelace"
    assert identity.id_token == "id-tok"
    assert "id-tok" not in repr(identity)

    (request,) = seen
    assert request.url.path == "/v1/accounts:signInWithPassword"
    assert request.url.params["key"] == "test-key"
    body = json.loads(request.content)
    assert body == {"email": "ada@example.com", "password": "pw", "returnSecureToken": True}


@pytest.mark.parametrize(
    "firebase_code, expected",
    [
        ("INVALID_LOGIN_CREDENTIALS", "invalid-credentials"),
        ("EMAIL_NOT_FOUND", "invalid-credentials"),
        ("TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled", "too-many-requests"),
        ("SOMETHING_NEW", "unknown"),
    ],
)
def test_sign_in_errors_become_auth_failures(firebase_code, expected):
    provider = _provider(lambda req: _firebase_error(firebase_code))
    with pytest.raises(AuthFailure) as excinfo:
        asyncio.run(provider.sign_in_with_password("ada@example.com", "nope"))
    assert excinfo.value.code == expected
    assert excinfo.value.message


def test_sign_up_conflict_and_weak_password():
    provider = _provider(lambda req: _firebase_error("EMAIL_EXISTS"))
    with pytest.raises(AuthFailure) as excinfo:
        asyncio.run(provider.sign_up_with_password("ada@example.com", "s3cret!"))
    assert excinfo.value.code == "account-exists"

    provider = _provider(
        lambda req: _firebase_error("WEAK_PASSWORD : Password should be at least 6 characters")
    )
    with pytest.raises(AuthFailure) as excinfo:
        asyncio.run(provider.sign_up_with_password("new@example.com", "123"))
    assert excinfo.value.code == "weak-password"
    assert excinfo.value.message == "Password should be at least 6 characters."


def test_network_failure_is_reported():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    with pytest.raises(AuthFailure) as excinfo:
        asyncio.run(_provider(handler).sign_in_with_password("ada@example.com", "pw"))
    assert excinfo.value.code == "network"


def test_missing_api_key_fails_without_network():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    with pytest.raises(AuthFailure) as excinfo:
        asyncio.run(_provider(handler, api_key=None).sign_in_with_password("a@b.c", "pw"))
    assert excinfo.value.code == "not-configured"
    assert calls == []


def test_federated_sign_in_posts_provider_token():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"localId": "g-1", "email": "g@example.com", "fullName": "Grace Hopper", "idToken": "t"},
        )

    identity = asyncio.run(_provider(handler).sign_in_with_federated_provider("google-id-token"))

    assert identity.uid == "g-1"
    assert identity.display_name == "Grace Hopper"
    body = json.loads(seen[0].content)
    assert seen[0].url.path == "/v1/accounts:signInWithIdp"
    assert body["postBody"] == "id_token=google-id-token&providerId=google.com"
    assert body["requestUri"] == "http://localhost"


def test_federated_sign_in_without_token_is_cancelled():
    provider = _provider(lambda req: httpx.Response(500))
    with pytest.raises(AuthFailure) as excinfo:
        asyncio.run(provider.sign_in_with_federated_provider(None))
    assert excinfo.value.code == "provider-cancelled"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, json={"error": "SERVICE_UNAVAILABLE"}),
        httpx.Response(503, json=["x"]),
        httpx.Response(502, text="<html>Bad Gateway</html>"),
        httpx.Response(500, json={"error": {"code": 500}}),
    ],
    ids=["string-error", "list-body", "html-body", "no-message"],
)
def test_unexpected_error_bodies_are_unknown_failures(response):
    provider = _provider(lambda req: response)
    with pytest.raises(AuthFailure) as excinfo:
        asyncio.run(provider.sign_in_with_password("ada@example.com", "pw"))
    assert excinfo.value.code == "unknown"
    assert excinfo.value.message == "Something went wrong. Please try again."


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json=["x"]),
        httpx.Response(200, json={"email": "ada@example.com"}),
        httpx.Response(200, text="ok"),
    ],
    ids=["list-body", "missing-local-id", "not-json"],
)
def test_unexpected_success_bodies_are_unknown_failures(response):
    provider = _provider(lambda req: response)
    with pytest.raises(AuthFailure) as excinfo:
        asyncio.run(provider.sign_in_with_password("ada@example.com", "pw"))
    assert excinfo.value.code == "unknown"


def test_federated_post_body_is_url_encoded():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"localId": "g-2"})

    asyncio.run(_provider(handler).sign_in_with_federated_provider("a+b&providerId=evil.com"))

    body = json.loads(seen[0].content)
    assert body["postBody"] == "id_token=a%2Bb%26providerId%3Devil.com&providerId=google.com"
