"""Utility script to reset the local storage database.

Usage:
    python scripts/reset_local_db.py

Environment:
    Ensure DISCORD_PUBLIC_KEY, DISCORD_BOT_TOKEN and DATABASE_URL are
    available in the current shell before running this script. All KV and
    durable-object entries are dropped.
"""

from __future__ import annotations

from interaction_router.db import get_engine
from interaction_router.models import Base


def reset_database() -> None:
    engine = get_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    print("Local storage database reset.")


if __name__ == "__main__":
    reset_database()
