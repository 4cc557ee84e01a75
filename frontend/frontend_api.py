# frontend/frontend_api.py
from __future__ import annotations

import os
from typing import Any

import requests
import streamlit as st

API_BASE = os.getenv("API_BASE_URL", st.secrets.get("API_BASE", "http://127.0.0.1:8000"))
TIMEOUT = 30


class ApiError(Exception):
    """Non-2xx answer from the API, carrying its `message` field."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _full(path: str) -> str:
    """Return an absolute URL for the API, accepting either absolute or relative paths."""
    if path.startswith(("http://", "https://")):
        return path
    return f"{API_BASE.rstrip('/')}/{path.lstrip('/')}"


def _headers(token: str | None) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


def _json(r: requests.Response) -> Any:
    if r.status_code == 204:
        return None
    try:
        data = r.json()
    except ValueError:
        data = {"message": r.text}
    if not r.ok:
        message = data.get("message") if isinstance(data, dict) else None
        raise ApiError(r.status_code, message or f"Request failed ({r.status_code})")
    return data


def request(
    method: str,
    path: str,
    *,
    token: str | None = None,
    timeout: int = TIMEOUT,
    **kwargs: Any,
) -> Any:
    """Call the API and return decoded JSON, raising ApiError for HTTP errors."""
    r = requests.request(method, _full(path), headers=_headers(token), timeout=timeout, **kwargs)
    return _json(r)


# ---------------------------
# Auth
# ---------------------------
def sign_in(email: str, password: str) -> dict[str, Any]:
    return request("POST", "/v1/auth/sign-in", json={"email": email, "password": password})


def sign_up(email: str, password: str) -> dict[str, Any]:
    return request("POST", "/v1/auth/sign-up", json={"email": email, "password": password})


def federated_sign_in(provider_token: str | None) -> dict[str, Any]:
    return request("POST", "/v1/auth/federated", json={"provider_token": provider_token})


def sign_out(token: str) -> dict[str, Any]:
    return request("POST", "/v1/auth/sign-out", token=token)


# ---------------------------
# Dashboard
# ---------------------------
def get_dashboard(token: str) -> dict[str, Any]:
    return request("GET", "/v1/dashboard", token=token)


def update_form(token: str, **fields: str) -> dict[str, Any]:
    return request("PATCH", "/v1/dashboard/form", token=token, json=fields)


def save_profile(token: str) -> dict[str, Any]:
    return request("POST", "/v1/dashboard/profile", token=token)


def submit_transcript(token: str) -> dict[str, Any]:
    # webhook timeout + margin
    return request("POST", "/v1/dashboard/submit", token=token, timeout=max(TIMEOUT, 60))


def dismiss_notification(token: str, notification_id: str) -> None:
    request("DELETE", f"/v1/dashboard/notifications/{notification_id}", token=token)
