"""Query port — abstract interface for reading the Things database.

Core modules depend on this protocol, never on a specific driver.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol


class QueryPort(Protocol):
    """Executes a read-only SQL query and returns rows as mappings."""

    async def execute(
        self, sql: str, params: Sequence[Any] = ()
    ) -> list[Mapping[str, Any]]: ...
