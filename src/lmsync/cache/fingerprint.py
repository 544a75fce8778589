# src/lmsync/cache/fingerprint.py
"""Content fingerprinting for cache keys.

A fingerprint is the SHA-256 hex digest of a content locator. It is
deterministic across processes and collision-resistant across large
catalogs, so it can name cache entries and files directly.
"""

from __future__ import annotations

import hashlib

ACTIVITY_PREFIX = "activity:"
COURSE_PREFIX = "course:"
CANCEL_FLAG_KEY = "cancel.flag"


def compute_fingerprint(locator: str) -> str:
    """Return the SHA-256 hex digest of a locator."""
    return hashlib.sha256(locator.encode("utf-8")).hexdigest()


def activity_key(locator: str) -> str:
    """Cache key for the cleaned content of one activity."""
    return f"{ACTIVITY_PREFIX}{compute_fingerprint(locator)}"


def course_key(course_id: int | str) -> str:
    """Cache key for a course structure snapshot."""
    return f"{COURSE_PREFIX}{course_id}"
