from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol
from urllib.parse import urlencode

import httpx

from meeting_tasks.core.errors import AuthFailure
from meeting_tasks.core.settings import Settings
from meeting_tasks.logging_utils import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    # Provider tokens stay server-side
    id_token: Optional[str] = field(default=None, repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)


class IdentityProvider(Protocol):
    async def sign_in_with_password(self, email: str, password: str) -> Identity: ...
    async def sign_up_with_password(self, email: str, password: str) -> Identity: ...
    async def sign_in_with_federated_provider(self, provider_token: str | None) -> Identity: ...
    async def sign_out(self, identity: Identity) -> None: ...


# Firebase REST error codes -> (code, user-facing message)
_ERRORS: dict[str, tuple[str, str]] = {
    "EMAIL_NOT_FOUND": ("invalid-credentials", "Invalid email or password."),
    "INVALID_PASSWORD": ("invalid-credentials", "Invalid email or password."),
    "INVALID_LOGIN_CREDENTIALS": ("invalid-credentials", "Invalid email or password."),
    "INVALID_EMAIL": ("invalid-email", "Please enter a valid email address."),
    "EMAIL_EXISTS": ("account-exists", "An account with this email already exists."),
    "WEAK_PASSWORD": ("weak-password", "Password should be at least 6 characters."),
    "USER_DISABLED": ("user-disabled", "This account has been disabled."),
    "TOO_MANY_ATTEMPTS_TRY_LATER": ("too-many-requests", "Too many attempts. Please try again later."),
    "OPERATION_NOT_ALLOWED": ("operation-not-allowed", "This sign-in method is not enabled."),
    "INVALID_IDP_RESPONSE": ("provider-rejected", "The sign-in provider rejected the request."),
}

_UNKNOWN_MESSAGE = "Something went wrong. Please try again."


def auth_failure_from_response(response: httpx.Response) -> AuthFailure:
    """Translate a Firebase ``{"error": {"message": ...}}`` body into an AuthFailure."""
    raw = ""
    try:
        error = response.json().get("error")
        if isinstance(error, dict):
            raw = str(error.get("message", ""))
    except (ValueError, AttributeError):
        # not a Firebase-shaped body (gateway page, bare string, list)
        pass
    # e.g. "WEAK_PASSWORD : Password should be at least 6 characters"
    key = raw.split(":", 1)[0].strip()
    code, message = _ERRORS.get(key, ("unknown", _UNKNOWN_MESSAGE))
    return AuthFailure(message, code=code)


class FirebaseIdentityProvider:
    """Firebase Authentication through its REST API (identitytoolkit v1)."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://identitytoolkit.googleapis.com/v1",
        provider_id: str = "google.com",
        request_uri: str = "http://localhost",
        timeout: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.provider_id = provider_id
        self.request_uri = request_uri
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirebaseIdentityProvider":
        return cls(
            settings.FIREBASE_API_KEY,
            base_url=settings.IDENTITY_BASE_URL,
            provider_id=settings.FEDERATED_PROVIDER_ID,
            request_uri=settings.FEDERATED_REQUEST_URI,
            timeout=settings.IDENTITY_TIMEOUT,
        )

    async def _call(self, method: str, body: dict[str, Any]) -> dict[str, Any]:
        if not self.api_key:
            raise AuthFailure("Sign-in is not configured.", code="not-configured")

        url = f"{self.base_url}/accounts:{method}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(url, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as exc:
            log.warning("identity provider unreachable", extra={"method": method, "error": str(exc)})
            raise AuthFailure("Could not reach the identity provider.", code="network") from exc

        if not r.is_success:
            failure = auth_failure_from_response(r)
            log.info(
                "identity provider rejected request",
                extra={"method": method, "status_code": r.status_code, "code": failure.code},
            )
            raise failure
        try:
            data = r.json()
        except ValueError:
            data = None
        if not isinstance(data, dict) or not data.get("localId"):
            log.warning("identity provider sent an unexpected body", extra={"method": method})
            raise AuthFailure(_UNKNOWN_MESSAGE, code="unknown")
        return data

    @staticmethod
    def _identity(data: dict[str, Any]) -> Identity:
        return Identity(
            uid=data["localId"],
            email=data.get("email"),
            display_name=data.get("displayName") or data.get("fullName"),
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        data = await self._call(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._identity(data)

    async def sign_up_with_password(self, email: str, password: str) -> Identity:
        data = await self._call(
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._identity(data)

    async def sign_in_with_federated_provider(self, provider_token: str | None) -> Identity:
        if not provider_token:
            raise AuthFailure("Sign-in with the provider was cancelled.", code="provider-cancelled")
        data = await self._call(
            "signInWithIdp",
            {
                "postBody": urlencode({"id_token": provider_token, "providerId": self.provider_id}),
                "requestUri": self.request_uri,
                "returnIdpCredential": True,
                "returnSecureToken": True,
            },
        )
        return self._identity(data)

    async def sign_out(self, identity: Identity) -> None:
        # ID tokens are short-lived; there is no REST sign-out call to make.
        log.info("identity signed out", extra={"uid": identity.uid})
