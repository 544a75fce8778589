# src/lmsync/core/models.py
"""Course domain models: CourseStructure, Section, Activity, CourseSummary.

A CourseStructure is a denormalized, serializable projection of the origin
course tree. It is cached wholesale per course id and replaced wholesale on
refetch.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Activity(BaseModel):
    """One readable activity (module) inside a course section."""

    id: int
    name: str
    url: str
    type: str
    completed: bool | None = None


class Section(BaseModel):
    """A course section grouping activities."""

    id: int
    name: str
    activities: list[Activity] = Field(default_factory=list)


class CourseStructure(BaseModel):
    """Snapshot of a course tree as cached by the server and client tiers."""

    id: int
    title: str
    sections: list[Section] = Field(default_factory=list)

    def activity_urls(self, activity_type: str | None = None) -> list[str]:
        """Return activity locators in section order, optionally by type."""
        return [
            activity.url
            for section in self.sections
            for activity in section.activities
            if activity_type is None or activity.type == activity_type
        ]


class CourseSummary(BaseModel):
    """Entry of the enrolled-courses listing."""

    id: int
    fullname: str
    shortname: str | None = None


class ActionStatus(BaseModel):
    """Outcome of a maintenance action (clear, cancel) for the caller."""

    success: bool
    message: str
