"""Seed a demo profile row so the dashboard has something to load locally."""

import argparse
import sys
from pathlib import Path

# Ensure backend/ importability before project imports
BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from meeting_tasks.core.db import engine  # noqa: E402
from meeting_tasks.logging_utils import configure_logging, get_logger  # noqa: E402
from meeting_tasks.models import Base  # noqa: E402
from meeting_tasks.services.profile_store import SqlProfileStore  # noqa: E402

log = get_logger(__name__)


def seed(uid: str, email: str, webhook_url: str) -> None:
    Base.metadata.create_all(bind=engine)
    store = SqlProfileStore()

    existing = store.load_profile(uid)
    if existing is not None:
        log.info("Profile exists, skipping", extra={"uid": uid})
        return

    store.save_profile(
        uid,
        {
            "email": email,
            "role": "Product Manager",
            "goal": "Ship the Q3 roadmap",
            "webhook_url": webhook_url,
        },
    )
    log.info("Seed complete", extra={"uid": uid, "email": email})


if __name__ == "__main__":
    configure_logging("seed")
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--uid", default="demo-user")
    parser.add_argument("--email", default="demo@example.com")
    parser.add_argument("--webhook-url", default="https://hooks.zapier.com/hooks/catch/0000000/demo/")
    args = parser.parse_args()
    seed(args.uid, args.email, args.webhook_url)
