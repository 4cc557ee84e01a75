from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from meeting_tasks.core.db import SessionLocal
from meeting_tasks.core.settings import get_settings

router = APIRouter(tags=["health"])


def _check_db() -> dict:
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
        return {"status": "ok"}
    except SQLAlchemyError as exc:
        return {"status": "error", "detail": str(exc)}


def _check_identity() -> dict:
    if not get_settings().FIREBASE_API_KEY:
        return {"status": "skipped", "detail": "FIREBASE_API_KEY not configured"}
    return {"status": "ok"}


def healthz() -> dict:
    """
    Combined liveness/readiness payload.

    - DB: simple SELECT 1
    - Identity: provider key configured (no remote call)
    """
    checks = {
        "db": _check_db(),
        "identity": _check_identity(),
    }
    overall = "ok" if all(c["status"] != "error" for c in checks.values()) else "error"
    return {"status": overall, "checks": checks}


@router.api_route("/healthz", methods=["GET", "HEAD"], include_in_schema=False)
def healthz_route() -> dict:
    return healthz()


@router.api_route("/v1/healthz", methods=["GET", "HEAD"], include_in_schema=False)
def v1_healthz() -> dict:
    """Alias for clients that expect versioned health URLs."""
    return healthz()
