"""
Things Logbook Sync — Data Models.

Rows mirror the shape of the Things SQLite query results: flat and
denormalized, one task row per task×tag pair. ResolvedTask is the merged,
hierarchy-aware entity the renderer consumes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Things TMTask.type discriminator
TYPE_TASK = 0
TYPE_PROJECT = 1
TYPE_HEADING = 2

# Things TMTask.status discriminator
STATUS_CANCELLED = 2


@dataclass
class TaskRow:
    """One logbook task joined with at most one of its tags."""

    uuid: str
    title: str | None = None
    notes: str | None = None
    area: str | None = None           # area title (joined)
    project: str | None = None        # project uuid
    heading: str | None = None        # heading uuid
    start_date: float | None = None   # unix seconds
    stop_date: float | None = None    # unix seconds
    status: int | str | None = None
    tag: str | None = None            # tag title, None when untagged


@dataclass
class ChecklistRow:
    """A checklist item (subtask) of a task."""

    uuid: str
    task_id: str
    title: str = ""
    start_date: float | None = None
    stop_date: float | None = None


@dataclass
class ProjectRow:
    uuid: str
    title: str | None = None
    area: str | None = None           # area title (joined)


@dataclass
class HeadingRow:
    uuid: str
    title: str | None = None
    area: str | None = None           # area title (joined)
    project: str | None = None        # project uuid


@dataclass
class Subtask:
    title: str
    completed: bool = False


@dataclass
class ResolvedTask:
    """A logbook task with its area/project/heading names resolved.

    `tags` keeps one slot per contributing task row, including None for
    untagged rows; `distinct_tags` is the collapsed view used for output.
    """

    uuid: str
    title: str
    notes: str = ""
    area: str | None = None
    project: str | None = None
    heading: str | None = None
    tags: list[str | None] = field(default_factory=list)
    start_date: float | None = None
    stop_date: float | None = None
    cancelled: bool = False
    subtasks: list[Subtask] = field(default_factory=list)

    @property
    def distinct_tags(self) -> list[str]:
        """Non-empty tag names in first-seen order, duplicates collapsed."""
        return list(dict.fromkeys(tag for tag in self.tags if tag))
