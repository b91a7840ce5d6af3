"""Tests for logbook_sync.adapters.markdown_file — section replacement."""

from unittest.mock import patch

import pytest

from logbook_sync.adapters.markdown_file import MarkdownFileSink, replace_section
from logbook_sync.ports.document_port import DocumentError

_SECTION = "## Logbook\n\n- Done [link](things:///show?id=t1)"


class TestReplaceSection:
    def test_empty_document(self):
        assert replace_section("", "## Logbook", _SECTION) == _SECTION + "\n"

    def test_appends_when_section_missing(self):
        doc = "# Daily\n\nSome notes\n\n"
        result = replace_section(doc, "## Logbook", _SECTION)
        assert result == "# Daily\n\nSome notes\n\n" + _SECTION + "\n"

    def test_replaces_existing_section_up_to_next_heading(self):
        doc = "# Daily\n\n## Logbook\n\n- Old task\n\n## Journal\n\nDear diary\n"
        result = replace_section(doc, "## Logbook", _SECTION)
        assert result == (
            "# Daily\n\n" + _SECTION + "\n\n## Journal\n\nDear diary\n"
        )

    def test_deeper_headings_stay_inside_section(self):
        doc = "## Logbook\n\n### Old sub\n- Old\n# Next\n"
        result = replace_section(doc, "## Logbook", _SECTION)
        assert "Old sub" not in result
        assert result.endswith("\n\n# Next\n")

    def test_section_at_end_of_document(self):
        doc = "# Daily\n\n## Logbook\n- Old\n"
        result = replace_section(doc, "## Logbook", _SECTION)
        assert result == "# Daily\n\n" + _SECTION + "\n"


class TestMarkdownFileSink:
    @pytest.mark.asyncio
    async def test_creates_file(self, tmp_path):
        target = tmp_path / "notes" / "today.md"
        await MarkdownFileSink(target).write(_SECTION)
        assert target.read_text(encoding="utf-8") == _SECTION + "\n"

    @pytest.mark.asyncio
    async def test_rewrites_section_in_place(self, tmp_path):
        target = tmp_path / "today.md"
        target.write_text("# Today\n\n## Logbook\n\n- Old\n", encoding="utf-8")
        await MarkdownFileSink(target).write(_SECTION)
        assert target.read_text(encoding="utf-8") == "# Today\n\n" + _SECTION + "\n"

    @pytest.mark.asyncio
    async def test_section_named_by_first_line_of_text(self, tmp_path):
        target = tmp_path / "logbook.md"
        friday = "## Logbook 2026-03-13\n\n- Old [link](things:///show?id=t0)"
        target.write_text(friday + "\n", encoding="utf-8")
        saturday = "## Logbook 2026-03-14\n\n- New [link](things:///show?id=t1)"

        await MarkdownFileSink(target).write(saturday)

        assert target.read_text(encoding="utf-8") == friday + "\n\n" + saturday + "\n"

    @pytest.mark.asyncio
    async def test_rewriting_a_day_keeps_the_following_day(self, tmp_path):
        target = tmp_path / "logbook.md"
        target.write_text(
            "## Logbook 2026-03-13\n\n- Old\n\n## Logbook 2026-03-14\n\n- Kept\n",
            encoding="utf-8",
        )

        await MarkdownFileSink(target).write("## Logbook 2026-03-13\n\n- Old\n- Also done")

        assert target.read_text(encoding="utf-8") == (
            "## Logbook 2026-03-13\n\n- Old\n- Also done\n\n## Logbook 2026-03-14\n\n- Kept\n"
        )

    @pytest.mark.asyncio
    async def test_write_failure_raises_document_error(self, tmp_path):
        sink = MarkdownFileSink(tmp_path / "today.md")
        with patch(
            "logbook_sync.adapters.markdown_file._atomic_write",
            side_effect=PermissionError("read-only"),
        ):
            with pytest.raises(DocumentError):
                await sink.write(_SECTION)
