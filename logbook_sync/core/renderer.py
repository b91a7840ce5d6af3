"""
Things Logbook Sync — Outline Renderer.

Turns resolved tasks into a nested Markdown list:

    ## Logbook

    - Task without area or project [link](things:///show?id=...)
    - [[Project without area]]
        - Task [link](things:///show?id=...) #logbook/tag
    - Area
        - [[Project]]
            - Heading
                - Task [link](things:///show?id=...)
                    - [x] Subtask

Output depends only on the input order of tasks, never on dict or set
iteration order, so the same tasks always render to the same bytes.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

from pydantic import BaseModel, field_validator

from logbook_sync.data.models import ResolvedTask

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

THINGS_LINK = "things:///show?id={uuid}"

# Skipped in the top-level list and in area→project lists without heading.
EXCLUDED_TITLE = "Morning routine"

_WHITESPACE = re.compile(r"\s+")


class RenderOptions(BaseModel):
    """Formatting options for one render pass."""

    section_heading: str = "## Logbook"
    indent: str = "\t"              # one indentation unit: a tab or N spaces
    tag_prefix: str = ""
    include_notes: bool = True
    cancelled_mark: str = "c"
    heading_markers: bool = False   # emit "#"*depth before group names

    @field_validator("indent")
    @classmethod
    def validate_indent(cls, v: str) -> str:
        if v != "\t" and (not v or set(v) != {" "}):
            raise ValueError(f"indent must be a tab or spaces, got {v!r}")
        return v


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def heading_level(line: str) -> int:
    """Number of leading '#' characters in a Markdown heading line."""
    return len(line) - len(line.lstrip("#"))


def indent_unit(use_tab: bool, tab_size: int) -> str:
    return "\t" if use_tab else " " * tab_size


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Group items by key; groups keep first-seen key order."""
    groups: dict[K, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def format_tag(tag: str, prefix: str) -> str:
    """'Deep Work' → '#<prefix>deep-work'."""
    return f"#{prefix}{_WHITESPACE.sub('-', tag).lower()}"


# ---------------------------------------------------------------------------
# Lines
# ---------------------------------------------------------------------------


def render_heading(
    title: str, level: int, indent_level: int, link: bool, options: RenderOptions,
) -> str:
    """Render a group line (area, project or heading) as a list item.

    `level` is the Markdown heading depth the group would have; it only shows
    up in the output when `options.heading_markers` is set.
    """
    marker = "#" * level + " " if options.heading_markers else ""
    text = f"[[{title}]]" if link else title
    return f"{options.indent * indent_level}- {marker}{text}"


def render_task(task: ResolvedTask, indent_level: int, options: RenderOptions) -> str:
    """Render a task line followed by its note lines and subtasks."""
    indent = options.indent * indent_level
    child_indent = indent + options.indent

    tags = " ".join(format_tag(tag, options.tag_prefix) for tag in task.distinct_tags)
    link = THINGS_LINK.format(uuid=task.uuid)
    title = f"{task.title} [link]({link}) {tags}".rstrip()
    checkbox = f"[{options.cancelled_mark}] " if task.cancelled else ""

    lines = [f"{indent}- {checkbox}{title}"]
    if options.include_notes and task.notes:
        lines.extend(
            f"{child_indent}{line.rstrip()}"
            for line in task.notes.rstrip().split("\n")
            if line.strip()
        )
    lines.extend(
        f"{child_indent}- [{'x' if subtask.completed else ' '}] {subtask.title}"
        for subtask in task.subtasks
    )
    return "\n".join(line for line in lines if line)


# ---------------------------------------------------------------------------
# Outline
# ---------------------------------------------------------------------------


def _render_headings(
    output: list[str],
    tasks: list[ResolvedTask],
    level: int,
    indent_level: int,
    link: bool,
    options: RenderOptions,
) -> None:
    """Append heading groups (and their tasks one level deeper) to output."""
    with_heading = [t for t in tasks if t.heading]
    for heading, grouped in group_by(with_heading, lambda t: t.heading).items():
        output.append(render_heading(heading, level, indent_level, link, options))
        output.extend(render_task(t, indent_level + 1, options) for t in grouped)


def render(tasks: list[ResolvedTask], options: RenderOptions) -> str:
    """Render the logbook section for `tasks`.

    Tasks without area or project come first, then projects without area,
    then areas (each with its loose tasks, projects and headings).
    """
    level = heading_level(options.section_heading)
    output = [options.section_heading, ""]

    # Tasks with no area and no project
    for task in tasks:
        if not task.area and not task.project and task.title != EXCLUDED_TITLE:
            output.append(render_task(task, 0, options))

    # Tasks with a project but no area
    no_area = [t for t in tasks if not t.area and t.project]
    for project, grouped in group_by(no_area, lambda t: t.project).items():
        output.append(render_heading(project, level + 1, 0, True, options))
        output.extend(render_task(t, 1, options) for t in grouped if not t.heading)
        _render_headings(output, grouped, level + 2, 1, True, options)

    # Tasks with an area
    with_area = [t for t in tasks if t.area]
    for area, in_area in group_by(with_area, lambda t: t.area).items():
        output.append(render_heading(area, level + 1, 0, False, options))
        output.extend(render_task(t, 1, options) for t in in_area if not t.project)

        with_project = [t for t in in_area if t.project]
        for project, grouped in group_by(with_project, lambda t: t.project).items():
            output.append(render_heading(project, level + 2, 1, True, options))
            output.extend(
                render_task(t, 2, options)
                for t in grouped
                if not t.heading and t.title != EXCLUDED_TITLE
            )
            _render_headings(output, grouped, level + 3, 2, False, options)

    logger.debug("Rendered %d task(s) into %d block(s)", len(tasks), len(output) - 2)
    return "\n".join(output)
