"""
Things Logbook Sync — Sync Service.

One pass of the pipeline: fetch the four record kinds, build resolved tasks,
render one outline section per completion day and hand each to the document
port.

This module is storage-agnostic: it depends on QueryPort, IndentSettingsPort
and DocumentPort protocols, not on specific implementations. It returns the
new watermark but never stores it; deciding when to sync and where to keep
the watermark is the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from logbook_sync.core.builder import build
from logbook_sync.core.fetcher import (
    TASK_FETCH_LIMIT,
    fetch_checklist_items,
    fetch_headings,
    fetch_projects,
    fetch_tasks,
)
from logbook_sync.core.renderer import RenderOptions, group_by, indent_unit, render

if TYPE_CHECKING:
    from logbook_sync.config import Settings
    from logbook_sync.data.models import ResolvedTask
    from logbook_sync.ports.document_port import DocumentPort
    from logbook_sync.ports.indent_port import IndentSettingsPort
    from logbook_sync.ports.query_port import QueryPort

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one sync pass."""

    watermark: float     # largest task stop date seen, or the input watermark
    task_count: int
    text: str


def start_of_day(timestamp: float) -> float:
    """Unix timestamp of local midnight on the day of `timestamp`."""
    moment = datetime.fromtimestamp(timestamp)
    return moment.replace(hour=0, minute=0, second=0, microsecond=0).timestamp()


def build_render_options(settings: Settings, indent: IndentSettingsPort) -> RenderOptions:
    """Combine the application settings with the document's indentation."""
    return RenderOptions(
        section_heading=settings.SECTION_HEADING,
        indent=indent_unit(indent.use_tab, indent.tab_size),
        tag_prefix=settings.TAG_PREFIX,
        include_notes=settings.SYNC_NOTE_BODY,
        cancelled_mark=settings.CANCELLED_MARK,
        heading_markers=settings.HEADING_MARKERS,
    )


def _latest_stop_date(tasks: list[ResolvedTask], since: float) -> float:
    stop_dates = [t.stop_date for t in tasks if t.stop_date is not None]
    return max([since, *stop_dates])


def _completion_day(task: ResolvedTask) -> date | None:
    return date.fromtimestamp(task.stop_date) if task.stop_date is not None else None


def render_days(tasks: list[ResolvedTask], options: RenderOptions) -> list[str]:
    """Render one section per local completion day, oldest day first.

    Each section heading is the configured heading followed by the ISO date,
    e.g. "## Logbook 2026-03-14". Tasks without a stop date go under the
    bare heading.
    """
    by_day = group_by(tasks, _completion_day)
    days = sorted(by_day, key=lambda d: (d is not None, d or date.min))
    texts = []
    for day in days:
        heading = options.section_heading
        if day is not None:
            heading = f"{heading} {day.isoformat()}"
        day_options = options.model_copy(update={"section_heading": heading})
        texts.append(render(by_day[day], day_options))
    return texts


async def run_sync(
    query: QueryPort,
    options: RenderOptions,
    since: float = 0,
    document: DocumentPort | None = None,
    page_size: int = TASK_FETCH_LIMIT,
    floor_to_day: bool = True,
) -> SyncResult:
    """Fetch everything completed after `since` and render it.

    With `floor_to_day` (the default), tasks and checklist items are fetched
    from local midnight of the watermark's day. Each day's section is written
    whole, so a second sync on the same day rewrites that day's section with
    every task completed so far instead of only the newer ones.

    Any fetch or resolution error propagates before anything is written.
    Nothing is written when `document` is None or no task was completed.
    """
    fetch_since = start_of_day(since) if floor_to_day and since > 0 else since

    task_rows = await fetch_tasks(query, fetch_since, page_size)
    checklist_rows = await fetch_checklist_items(query, fetch_since, page_size)
    project_rows = await fetch_projects(query, page_size)
    heading_rows = await fetch_headings(query, page_size)

    tasks = build(task_rows, checklist_rows, project_rows, heading_rows)
    texts = render_days(tasks, options)
    watermark = _latest_stop_date(tasks, since)

    if document is not None:
        for text in texts:
            await document.write(text)
    if not tasks:
        logger.info("No completed tasks since %s, nothing to write", fetch_since)

    logger.info(
        "Sync finished: %d task(s) over %d day(s), watermark %s",
        len(tasks), len(texts), watermark,
    )
    return SyncResult(watermark=watermark, task_count=len(tasks), text="\n\n".join(texts))
