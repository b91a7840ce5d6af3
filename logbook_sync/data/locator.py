"""
Things Logbook Sync — Database Locator.

Things keeps its SQLite file inside a group container whose data directory
name carries a per-install suffix (e.g. "ThingsData-ABCDE"). A configured
THINGS_DB_PATH always wins; directory probing is only the fallback.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class StoreLocationError(Exception):
    """Raised when the Things database file cannot be found."""


def locate_database(base_dir: str | Path, data_prefix: str, relative_path: str) -> Path:
    """Find the first data directory under base_dir and join relative_path.

    Candidates are sorted by name so the choice does not depend on the
    filesystem's listing order.
    """
    base = Path(base_dir).expanduser()
    if not base.is_dir():
        raise StoreLocationError(f"Things container not found: {base}")

    candidates = sorted(
        entry for entry in base.iterdir()
        if entry.is_dir() and entry.name.startswith(data_prefix)
    )
    if not candidates:
        raise StoreLocationError(
            f"No directory starting with {data_prefix!r} in {base}"
        )
    if len(candidates) > 1:
        logger.warning(
            "Found %d Things data directories, using %s",
            len(candidates), candidates[0].name,
        )

    db_path = candidates[0] / relative_path
    if not db_path.is_file():
        raise StoreLocationError(f"Things database not found: {db_path}")
    return db_path


def resolve_database_path(
    explicit: str | Path | None,
    base_dir: str | Path,
    data_prefix: str,
    relative_path: str,
) -> Path:
    """Return the configured database path, or search the base directory for one if unset."""
    if explicit:
        db_path = Path(explicit).expanduser()
        if not db_path.is_file():
            raise StoreLocationError(f"Configured THINGS_DB_PATH does not exist: {db_path}")
        logger.debug("Using configured Things database at %s", db_path)
        return db_path

    db_path = locate_database(base_dir, data_prefix, relative_path)
    logger.info("Located Things database at %s", db_path)
    return db_path
