"""Hierarchy builder — pure business logic.

Folds the flat task rows (one per task×tag) into one ResolvedTask per uuid,
resolving heading → project → area names through the lookup rows, then
attaches checklist items as subtasks.

A heading or project id missing from the lookup rows resolves to None, not
to the raw uuid, so such a task renders one grouping level higher.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from functools import reduce

from logbook_sync.data.models import (
    STATUS_CANCELLED,
    ChecklistRow,
    HeadingRow,
    ProjectRow,
    ResolvedTask,
    Subtask,
    TaskRow,
)

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Raised when a row lacks the identifier needed to place it."""

    def __init__(self, kind: str, field_name: str, row: object) -> None:
        self.kind = kind
        self.field_name = field_name
        self.row = row
        super().__init__(f"{kind} row is missing {field_name}: {row!r}")


@dataclass
class _Lookups:
    projects: dict[str, ProjectRow]
    headings: dict[str, HeadingRow]


@dataclass
class _Placement:
    area: str | None
    project: str | None
    heading: str | None


def is_cancelled(status: int | str | None) -> bool:
    """True iff the Things status code is the cancelled code."""
    if status is None or status == "":
        return False
    try:
        return int(status) == STATUS_CANCELLED
    except (TypeError, ValueError):
        logger.warning("Unexpected task status %r, treating as not cancelled", status)
        return False


def _resolve(row: TaskRow, lookups: _Lookups) -> _Placement:
    """Walk heading → project → area, letting each ancestor override."""
    area = row.area
    project: str | None = None
    heading: str | None = None
    project_resolved = False

    if row.heading:
        heading_row = lookups.headings.get(row.heading)
        if heading_row is None:
            logger.debug("Task %s references unknown heading %s", row.uuid, row.heading)
        else:
            heading = heading_row.title
            if heading_row.area:
                area = heading_row.area
            if heading_row.project:
                project_row = lookups.projects.get(heading_row.project)
                if project_row is not None:
                    project = project_row.title
                    project_resolved = True
                    if project_row.area:
                        area = project_row.area

    if not project_resolved and row.project:
        project_row = lookups.projects.get(row.project)
        if project_row is None:
            logger.debug("Task %s references unknown project %s", row.uuid, row.project)
        else:
            project = project_row.title
            if project_row.area:
                area = project_row.area

    return _Placement(area=area, project=project, heading=heading)


def _merge_row(
    tasks: dict[str, ResolvedTask], row: TaskRow, lookups: _Lookups,
) -> dict[str, ResolvedTask]:
    if not row.uuid:
        raise ResolutionError("task", "uuid", row)

    existing = tasks.get(row.uuid)
    if existing is not None:
        existing.tags.append(row.tag)
        return tasks

    placement = _resolve(row, lookups)
    tasks[row.uuid] = ResolvedTask(
        uuid=row.uuid,
        title=(row.title or "").rstrip(),
        notes=row.notes or "",
        area=placement.area,
        project=placement.project,
        heading=placement.heading,
        tags=[row.tag],
        start_date=row.start_date,
        stop_date=row.stop_date,
        cancelled=is_cancelled(row.status),
    )
    return tasks


def build(
    task_rows: Iterable[TaskRow],
    checklist_rows: Iterable[ChecklistRow],
    project_rows: Iterable[ProjectRow],
    heading_rows: Iterable[HeadingRow],
) -> list[ResolvedTask]:
    """Merge the four row sets into resolved tasks, in first-seen order.

    Rows sharing a uuid collapse into one task; every row contributes its
    tag (None included) to that task's `tags`. Checklist rows whose task is
    not in `task_rows` are dropped, since the checklist item may have been
    completed in an earlier sync than its task.

    Raises ResolutionError for a task row without uuid or a checklist row
    without task id.
    """
    lookups = _Lookups(
        projects={p.uuid: p for p in project_rows},
        headings={h.uuid: h for h in heading_rows},
    )
    tasks: dict[str, ResolvedTask] = reduce(
        lambda acc, row: _merge_row(acc, row, lookups), task_rows, {},
    )

    dropped = 0
    for item in checklist_rows:
        if not item.task_id:
            raise ResolutionError("checklist", "task_id", item)
        task = tasks.get(item.task_id)
        if task is None:
            dropped += 1
            continue
        task.subtasks.append(
            Subtask(
                title=(item.title or "").rstrip(),
                completed=item.stop_date is not None,
            )
        )

    if dropped:
        logger.debug("Dropped %d checklist item(s) with no task in this batch", dropped)
    logger.info("Built %d task(s) from Things records", len(tasks))
    return list(tasks.values())
