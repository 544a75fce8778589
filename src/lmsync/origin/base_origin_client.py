# src/lmsync/origin/base_origin_client.py
"""Abstract interface of the LMS origin client.

The concrete client (authenticated web-service calls, file downloads) lives
outside this package; the pipeline only depends on this contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from lmsync.core.models import CourseStructure, CourseSummary


class OriginError(Exception):
    """Error reported by the origin LMS.

    Args:
        message: Human-readable description.
        errorcode: LMS error code when the origin supplied one
            (e.g. "invalidtoken", "invalidrecord").
    """

    def __init__(self, message: str, errorcode: str | None = None) -> None:
        super().__init__(message)
        self.errorcode = errorcode


class NotAuthenticated(OriginError):
    """No usable credential was supplied."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message, errorcode="invalidtoken")


class BaseOriginClient(ABC):
    """Contract consumed by the synchronization pipeline."""

    @abstractmethod
    async def fetch_content(self, locator: str, credential: str) -> str:
        """Return the raw HTML behind a content locator.

        Raises:
            OriginError: If the content cannot be retrieved.
        """

    @abstractmethod
    async def list_course_structure(
        self, course_id: int, credential: str
    ) -> CourseStructure:
        """Return the section/activity tree of one course."""

    @abstractmethod
    async def list_enrolled_courses(self, credential: str) -> list[CourseSummary]:
        """Return the courses the credential holder is enrolled in."""
