# src/lmsync/api/models.py
"""Result models returned to the presentation layer."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class ContentResult(BaseModel):
    """Outcome of a single-item read.

    A failed read is shown to the user as "unavailable", so failures carry
    a message instead of raising.
    """

    success: bool
    content: str | None = None
    error: str | None = None
    source: Literal["cache", "origin"] | None = None
