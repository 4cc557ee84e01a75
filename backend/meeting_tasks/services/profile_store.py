from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from meeting_tasks.core.errors import StoreReadFailure, StoreWriteFailure
from meeting_tasks.logging_utils import get_logger
from meeting_tasks.models.user_profile import UserProfileRecord
from meeting_tasks.schemas.profile import UserProfile

log = get_logger(__name__)

WRITABLE_FIELDS = frozenset({"email", "role", "goal", "webhook_url"})


class ProfileStore(Protocol):
    def load_profile(self, uid: str) -> UserProfile | None: ...
    def save_profile(self, uid: str, partial: Mapping[str, Any]) -> UserProfile: ...


class SqlProfileStore:
    """Profile persistence on the ``users`` table."""

    def __init__(self, session_factory: Callable[[], Session] | None = None):
        if session_factory is None:
            from meeting_tasks.core.db import SessionLocal

            session_factory = SessionLocal
        self.session_factory = session_factory

    def load_profile(self, uid: str) -> UserProfile | None:
        try:
            with self.session_factory() as db:
                row = db.get(UserProfileRecord, uid)
                return UserProfile.model_validate(row) if row is not None else None
        except SQLAlchemyError as exc:
            log.warning("profile read failed", extra={"uid": uid, "error": str(exc)})
            raise StoreReadFailure("Failed to load profile information.") from exc

    def save_profile(self, uid: str, partial: Mapping[str, Any]) -> UserProfile:
        """
        Upsert-merge: create the row if missing, otherwise update only the
        keys present in ``partial``. ``updated_at`` is stamped on every write.
        """
        unknown = set(partial) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")

        with self.session_factory() as db:
            try:
                row = db.get(UserProfileRecord, uid)
                created = row is None
                if row is None:
                    row = UserProfileRecord(uid=uid)
                    db.add(row)
                for field, value in partial.items():
                    setattr(row, field, value)
                row.updated_at = datetime.now(timezone.utc)
                db.commit()
                db.refresh(row)
            except SQLAlchemyError as exc:
                db.rollback()
                log.warning("profile write failed", extra={"uid": uid, "error": str(exc)})
                raise StoreWriteFailure("Failed to save profile information.") from exc

            log.info(
                "profile saved",
                extra={"uid": uid, "fields": sorted(partial), "new_profile": created},
            )
            return UserProfile.model_validate(row)
