"""Indent settings port — how the target document indents nested lists."""

from __future__ import annotations

from typing import Protocol


class IndentSettingsPort(Protocol):
    """Read-only view of the document's indentation settings."""

    @property
    def use_tab(self) -> bool: ...

    @property
    def tab_size(self) -> int: ...
