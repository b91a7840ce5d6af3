"""
Things Logbook Sync — Record Fetcher.

Reads completed tasks, checklist items, projects and headings from the
Things SQLite database in bounded pages.

Tasks and checklist items are incremental: each page asks for rows whose
stopDate is strictly greater than the watermark. Rows sharing one stopDate
(a task's tag fan-out, or tasks completed together) are never split across
pages: a full page gives back its trailing run of equal stopDates, and the
next page starts just below it. Projects and headings are lookup tables and
are always read in full, paged by uuid.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from logbook_sync.data.models import (
    TYPE_HEADING,
    TYPE_PROJECT,
    TYPE_TASK,
    ChecklistRow,
    HeadingRow,
    ProjectRow,
    TaskRow,
)

if TYPE_CHECKING:
    from logbook_sync.ports.query_port import QueryPort

logger = logging.getLogger(__name__)

TASK_FETCH_LIMIT = 1000
PROJECT_FETCH_LIMIT = 1000
HEADING_FETCH_LIMIT = 1000

# sqlite treats a negative LIMIT as "no limit"
NO_LIMIT = -1

R = TypeVar("R")
Row = Mapping[str, Any]

_STAGE_MESSAGES = {
    "tasks": "fetch tasks failed",
    "subtasks": "fetch subtasks failed",
    "projects": "fetch projects failed",
    "headings": "fetch headings failed",
}


class ThingsSyncError(Exception):
    """Raised when reading from the Things database fails.

    `stage` names the fetch loop that failed: "tasks", "subtasks",
    "projects" or "headings".
    """

    def __init__(self, stage: str, message: str | None = None) -> None:
        self.stage = stage
        super().__init__(message or _STAGE_MESSAGES.get(stage, f"fetch {stage} failed"))


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

# {op} is ">" for a page after the watermark, "=" for every row at one stopDate
_TASKS_SQL = f"""
    SELECT
        TMTask.uuid AS uuid,
        TMTask.title AS title,
        TMTask.notes AS notes,
        TMTask.startDate AS startDate,
        TMTask.stopDate AS stopDate,
        TMTask.status AS status,
        TMTag.title AS tag,
        TMArea.title AS area,
        TMProject.uuid AS project,
        TMHeading.uuid AS heading
    FROM
        TMTask
    LEFT JOIN TMTaskTag
        ON TMTaskTag.tasks = TMTask.uuid
    LEFT JOIN TMTag
        ON TMTag.uuid = TMTaskTag.tags
    LEFT JOIN TMArea
        ON TMTask.area = TMArea.uuid
    LEFT JOIN TMTask TMProject
        ON TMProject.uuid = TMTask.project
    LEFT JOIN TMTask TMHeading
        ON TMHeading.uuid = TMTask.heading
    WHERE
        TMTask.type = {TYPE_TASK}
        AND TMTask.trashed = 0
        AND TMTask.stopDate IS NOT NULL
        AND TMTask.stopDate {{op}} ?
    ORDER BY
        TMTask.stopDate
    LIMIT ?
"""

_CHECKLIST_SQL = """
    SELECT
        uuid AS uuid,
        task AS taskId,
        title AS title,
        startDate AS startDate,
        stopDate AS stopDate
    FROM
        TMChecklistItem
    WHERE
        title != ''
        AND stopDate {op} ?
    ORDER BY
        stopDate
    LIMIT ?
"""

_PROJECTS_SQL = f"""
    SELECT
        TMTask.uuid AS uuid,
        TMTask.title AS title,
        TMArea.title AS area
    FROM
        TMTask
    LEFT JOIN TMArea
        ON TMTask.area = TMArea.uuid
    WHERE
        TMTask.type = {TYPE_PROJECT}
        AND TMTask.uuid > ?
    ORDER BY
        TMTask.uuid
    LIMIT ?
"""

_HEADINGS_SQL = f"""
    SELECT
        TMTask.uuid AS uuid,
        TMTask.title AS title,
        TMArea.title AS area,
        TMProject.uuid AS project
    FROM
        TMTask
    LEFT JOIN TMArea
        ON TMTask.area = TMArea.uuid
    LEFT JOIN TMTask TMProject
        ON TMProject.uuid = TMTask.project
    WHERE
        TMTask.type = {TYPE_HEADING}
        AND TMTask.uuid > ?
    ORDER BY
        TMTask.uuid
    LIMIT ?
"""


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------

def _row_to_task(row: Row) -> TaskRow:
    return TaskRow(
        uuid=row.get("uuid"),
        title=row.get("title"),
        notes=row.get("notes"),
        area=row.get("area"),
        project=row.get("project"),
        heading=row.get("heading"),
        start_date=row.get("startDate"),
        stop_date=row.get("stopDate"),
        status=row.get("status"),
        tag=row.get("tag"),
    )


def _row_to_checklist_item(row: Row) -> ChecklistRow:
    return ChecklistRow(
        uuid=row.get("uuid"),
        task_id=row.get("taskId"),
        title=row.get("title"),
        start_date=row.get("startDate"),
        stop_date=row.get("stopDate"),
    )


def _row_to_project(row: Row) -> ProjectRow:
    return ProjectRow(uuid=row.get("uuid"), title=row.get("title"), area=row.get("area"))


def _row_to_heading(row: Row) -> HeadingRow:
    return HeadingRow(
        uuid=row.get("uuid"),
        title=row.get("title"),
        area=row.get("area"),
        project=row.get("project"),
    )


# ---------------------------------------------------------------------------
# Cursors
# ---------------------------------------------------------------------------

def advance_watermark(batch: Sequence[Row], watermark: float) -> float:
    """Return the largest stopDate in `batch`, never lower than `watermark`.

    Rows without a stopDate are ignored, so a page with no timestamped rows
    leaves the watermark where it was.
    """
    stop_dates = [row.get("stopDate") for row in batch if row.get("stopDate") is not None]
    if not stop_dates:
        return watermark
    return max(watermark, max(stop_dates))


def settle_by_stop_date(
    batch: Sequence[Row], watermark: float,
) -> tuple[list[Row], float, float | None]:
    """Split a full page at its last stopDate.

    Returns (rows to keep, next watermark, stopDate to read in full). Rows at
    the page's last stopDate are dropped and the watermark stops just below
    them, so the next page returns them whole. When every timestamped row
    shares that stopDate there is nothing below it to stop at; the third
    value then names the stopDate whose rows must be read with no limit.
    """
    last = advance_watermark(batch, watermark)
    if last == watermark:
        return list(batch), watermark, None

    kept = [
        row for row in batch
        if row.get("stopDate") is None or row.get("stopDate") < last
    ]
    below = advance_watermark(kept, watermark)
    if below != watermark:
        return kept, below, None
    return kept, last, last


def _settle_by_uuid(batch: Sequence[Row], cursor: str) -> tuple[list[Row], str, None]:
    if not batch:
        return [], cursor, None
    return list(batch), batch[-1]["uuid"], None


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

async def _fetch_pages(
    query: QueryPort,
    *,
    stage: str,
    sql: str,
    cursor: Any,
    settle: Callable[[Sequence[Row], Any], tuple[list[Row], Any, Any]],
    to_record: Callable[[Row], R],
    page_size: int,
    tie_sql: str | None = None,
) -> list[R]:
    """Run `sql` page by page until a page comes back short.

    Each page is bound with (cursor, page_size). A full page goes through
    `settle`, which picks the rows to keep and the next cursor; if it also
    names a tie value, every row at that value is read with `tie_sql`.
    A full page that cannot move the cursor raises instead of re-issuing
    the same query.
    """
    records: list[R] = []
    try:
        while True:
            logger.debug("Fetching %s from Things db after %r...", stage, cursor)
            batch = await query.execute(sql, (cursor, page_size))
            logger.debug("Fetched %d %s from Things db", len(batch), stage)

            if len(batch) < page_size:
                records.extend(to_record(row) for row in batch)
                break

            rows, next_cursor, tie = settle(batch, cursor)
            if tie is not None and tie_sql is not None:
                tied = await query.execute(tie_sql, (tie, NO_LIMIT))
                logger.debug("Read %d %s sharing %r", len(tied), stage, tie)
                rows = [*rows, *tied]

            if next_cursor == cursor:
                raise ThingsSyncError(
                    stage, f"fetch {stage} failed: full page did not move past {cursor!r}",
                )
            records.extend(to_record(row) for row in rows)
            cursor = next_cursor
    except ThingsSyncError:
        logger.error("Fetching %s stalled at %r", stage, cursor)
        raise
    except Exception as exc:
        logger.error("Failed to query the Things db (%s): %s", stage, exc)
        raise ThingsSyncError(stage) from exc

    logger.info("Fetched %d %s in total", len(records), stage)
    return records


async def fetch_tasks(
    query: QueryPort, since: float, page_size: int = TASK_FETCH_LIMIT,
) -> list[TaskRow]:
    """Fetch completed, non-trashed tasks stopped after `since`.

    A task with N tags comes back as N rows (one per tag), always together.
    """
    return await _fetch_pages(
        query,
        stage="tasks",
        sql=_TASKS_SQL.format(op=">"),
        tie_sql=_TASKS_SQL.format(op="="),
        cursor=since,
        settle=settle_by_stop_date,
        to_record=_row_to_task,
        page_size=page_size,
    )


async def fetch_checklist_items(
    query: QueryPort, since: float, page_size: int = TASK_FETCH_LIMIT,
) -> list[ChecklistRow]:
    """Fetch titled checklist items stopped after `since`."""
    return await _fetch_pages(
        query,
        stage="subtasks",
        sql=_CHECKLIST_SQL.format(op=">"),
        tie_sql=_CHECKLIST_SQL.format(op="="),
        cursor=since,
        settle=settle_by_stop_date,
        to_record=_row_to_checklist_item,
        page_size=page_size,
    )


async def fetch_projects(
    query: QueryPort, page_size: int = PROJECT_FETCH_LIMIT,
) -> list[ProjectRow]:
    """Fetch every project with its area title."""
    return await _fetch_pages(
        query,
        stage="projects",
        sql=_PROJECTS_SQL,
        cursor="",
        settle=_settle_by_uuid,
        to_record=_row_to_project,
        page_size=page_size,
    )


async def fetch_headings(
    query: QueryPort, page_size: int = HEADING_FETCH_LIMIT,
) -> list[HeadingRow]:
    """Fetch every heading with its area title and owning project uuid."""
    return await _fetch_pages(
        query,
        stage="headings",
        sql=_HEADINGS_SQL,
        cursor="",
        settle=_settle_by_uuid,
        to_record=_row_to_heading,
        page_size=page_size,
    )
