# backend/init_db.py
"""
Initialize database schema.

- Uses the app's configured SQLAlchemy engine
- Structured logging (no prints)
"""

from meeting_tasks.core.db import engine
from meeting_tasks.logging_utils import configure_logging, get_logger
from meeting_tasks.models import Base

log = get_logger(__name__)


def main() -> None:
    configure_logging("init_db")
    try:
        Base.metadata.create_all(bind=engine)
        log.info("database tables created", extra={"url": engine.url.render_as_string(hide_password=True)})
    except Exception:
        log.exception("Database initialization failed")
        raise


if __name__ == "__main__":
    main()
