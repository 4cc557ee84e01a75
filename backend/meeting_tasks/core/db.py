from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from meeting_tasks.core.settings import get_settings


def _build_engine():
    url = get_settings().DATABASE_URL
    common_kwargs = {
        "future": True,
        "pool_pre_ping": True,
        "pool_recycle": 1800,  # keep pool fresh
    }
    if url.startswith("sqlite"):
        # Store calls run in worker threads
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            **common_kwargs,
        )
    return create_engine(url, **common_kwargs)


engine = _build_engine()

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)

__all__ = ["SessionLocal", "engine"]
