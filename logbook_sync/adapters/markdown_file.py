"""Markdown file adapter — implements DocumentPort for a plain .md file.

Each rendered outline starts with its own section heading (one per day of
completed tasks). If the file already has that section, it is replaced up
to the next heading of the same or a higher level; otherwise the section is
appended. Sections for other days are left untouched.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path

from logbook_sync.core.renderer import heading_level
from logbook_sync.ports.document_port import DocumentError

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^(#{1,6})\s")


def _atomic_write(target_path: Path, content: str) -> None:
    """Write via a temp file in the same directory, then rename over target."""
    fd, temp_name = tempfile.mkstemp(dir=target_path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as temp_file:
            temp_file.write(content)
        os.replace(temp_name, target_path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


def _section_bounds(lines: list[str], section_heading: str) -> tuple[int, int] | None:
    """Return [start, end) line indexes of the section, or None if absent."""
    heading = section_heading.rstrip()
    level = heading_level(heading)
    try:
        start = next(i for i, line in enumerate(lines) if line.rstrip() == heading)
    except StopIteration:
        return None

    for end in range(start + 1, len(lines)):
        match = _HEADING_RE.match(lines[end])
        if match and (level == 0 or len(match.group(1)) <= level):
            return start, end
    return start, len(lines)


def replace_section(document: str, section_heading: str, text: str) -> str:
    """Replace (or append) the section in `document` with `text`."""
    lines = document.split("\n") if document else []
    section = text.rstrip("\n").split("\n")

    bounds = _section_bounds(lines, section_heading)
    if bounds is None:
        while lines and not lines[-1].strip():
            lines.pop()
        if lines:
            lines.append("")
        lines.extend(section)
    else:
        start, end = bounds
        tail = lines[end:]
        if tail:
            section.append("")
        lines[start:end] = section

    return "\n".join(lines).rstrip("\n") + "\n"


class MarkdownFileSink:
    """Writes outline sections into a Markdown file on disk.

    The section to replace is named by the first line of the written text.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    def _write(self, text: str) -> None:
        section_heading = text.split("\n", 1)[0]
        self._path.parent.mkdir(parents=True, exist_ok=True)
        existing = self._path.read_text(encoding="utf-8") if self._path.exists() else ""
        _atomic_write(self._path, replace_section(existing, section_heading, text))

    async def write(self, text: str) -> None:
        try:
            await asyncio.to_thread(self._write, text)
        except OSError as exc:
            logger.error("Failed to write logbook to %s: %s", self._path, exc)
            raise DocumentError(f"Failed to write {self._path}: {exc}") from exc
        logger.info("Logbook section written to %s", self._path)
