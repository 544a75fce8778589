# src/lmsync/client/store.py
"""Durable client-side store (SQLite).

Holds content the reader has already seen so repeat visits need no round
trip. It uses the same fingerprint scheme as the server cache but is owned
by the client alone: server tiers never write here, and it is the only tier
the user clears explicitly.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from lmsync.cache.fingerprint import compute_fingerprint
from lmsync.core.models import CourseStructure

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS activities (
    fingerprint TEXT PRIMARY KEY,
    locator TEXT NOT NULL,
    html TEXT NOT NULL,
    saved_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS courses (
    id TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    saved_at TEXT NOT NULL
);
"""


class ClientStore:
    """Persistent key/value store for cleaned activities and course snapshots.

    SQLite errors (a locked or corrupt database) are logged and reported as
    a miss or a failed write, so the reader falls back to the server.
    """

    def __init__(self, db_path: Path | str) -> None:
        if str(db_path) == ":memory:":
            self._db_path = None
            self._conn = sqlite3.connect(":memory:")
        else:
            self._db_path = Path(db_path).expanduser()
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path))
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get_activity(self, locator: str) -> str | None:
        try:
            row = self._conn.execute(
                "SELECT html FROM activities WHERE fingerprint = ?",
                (compute_fingerprint(locator),),
            ).fetchone()
        except sqlite3.Error as e:
            logger.warning("Failed to read stored activity %s: %s", locator, e)
            return None
        return None if row is None else row[0]

    async def save_activity(self, locator: str, html: str) -> bool:
        """Store cleaned HTML for a locator. Returns False on database failure."""
        try:
            self._conn.execute(
                """INSERT OR REPLACE INTO activities (fingerprint, locator, html, saved_at)
                   VALUES (?, ?, ?, ?)""",
                (compute_fingerprint(locator), locator, html, _now()),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            logger.warning("Failed to store activity %s: %s", locator, e)
            return False
        return True

    async def has_activity(self, locator: str) -> bool:
        try:
            row = self._conn.execute(
                "SELECT 1 FROM activities WHERE fingerprint = ?",
                (compute_fingerprint(locator),),
            ).fetchone()
        except sqlite3.Error as e:
            logger.warning("Failed to check stored activity %s: %s", locator, e)
            return False
        return row is not None

    async def get_course(self, course_id: int) -> CourseStructure | None:
        try:
            row = self._conn.execute(
                "SELECT data FROM courses WHERE id = ?", (str(course_id),)
            ).fetchone()
        except sqlite3.Error as e:
            logger.warning("Failed to read stored course %s: %s", course_id, e)
            return None
        if row is None:
            return None
        try:
            return CourseStructure.model_validate_json(row[0])
        except ValidationError as e:
            logger.warning("Discarding unreadable course %s: %s", course_id, e)
            return None

    async def save_course(self, course_id: int, snapshot: CourseStructure) -> bool:
        try:
            self._conn.execute(
                "INSERT OR REPLACE INTO courses (id, data, saved_at) VALUES (?, ?, ?)",
                (str(course_id), snapshot.model_dump_json(), _now()),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            logger.warning("Failed to store course %s: %s", course_id, e)
            return False
        return True

    async def clear(self) -> bool:
        """Remove every stored activity and course. Returns False on failure."""
        try:
            self._conn.execute("DELETE FROM activities")
            self._conn.execute("DELETE FROM courses")
            self._conn.commit()
        except sqlite3.Error as e:
            logger.error("Failed to clear client store: %s", e)
            return False
        logger.info("Client store cleared")
        return True

    async def count_activities(self) -> int:
        try:
            return self._conn.execute("SELECT COUNT(*) FROM activities").fetchone()[0]
        except sqlite3.Error as e:
            logger.warning("Failed to count stored activities: %s", e)
            return 0

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
