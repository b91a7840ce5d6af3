"""Document port — abstract interface for placing rendered text.

Core modules depend on this protocol, never on a specific note store.
"""

from __future__ import annotations

from typing import Protocol


class DocumentError(Exception):
    """Raised when the rendered outline cannot be written."""


class DocumentPort(Protocol):
    """Receives the final outline text for placement into a document."""

    async def write(self, text: str) -> None: ...
