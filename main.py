"""
Things Logbook Sync — Entry Point.

`python main.py --since 1718000000` renders everything completed in Things
from midnight of that timestamp's day into per-day logbook sections of
OUTPUT_PATH and prints the new watermark.
"""

import argparse
import asyncio
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from logbook_sync.adapters.markdown_file import MarkdownFileSink
from logbook_sync.adapters.settings_indent import SettingsIndentProvider
from logbook_sync.adapters.sqlite_query import SQLiteQueryAdapter
from logbook_sync.config import settings
from logbook_sync.core.builder import ResolutionError
from logbook_sync.core.fetcher import ThingsSyncError
from logbook_sync.core.sync import build_render_options, run_sync
from logbook_sync.data.locator import StoreLocationError, resolve_database_path
from logbook_sync.ports.document_port import DocumentError

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync the Things logbook into Markdown.")
    parser.add_argument("--since", type=float, default=0,
                        help="watermark: unix time of the last synced stop date")
    parser.add_argument("--output", default=settings.OUTPUT_PATH,
                        help="Markdown file to write the logbook sections into")
    parser.add_argument("--exact", action="store_true",
                        help="fetch strictly after the watermark, not from midnight of its day")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        db_path = resolve_database_path(
            settings.THINGS_DB_PATH,
            settings.THINGS_BASE_DIR,
            settings.THINGS_DATA_PREFIX,
            settings.THINGS_DB_RELATIVE_PATH,
        )
    except StoreLocationError as exc:
        logger.error("%s", exc)
        return 1

    options = build_render_options(settings, SettingsIndentProvider(settings))
    try:
        result = asyncio.run(
            run_sync(
                SQLiteQueryAdapter(db_path),
                options,
                since=args.since,
                document=MarkdownFileSink(args.output),
                page_size=settings.FETCH_PAGE_SIZE,
                floor_to_day=not args.exact,
            )
        )
    except (ThingsSyncError, ResolutionError, DocumentError) as exc:
        logger.error("Logbook sync failed: %s", exc)
        return 1

    print(result.watermark)
    return 0


if __name__ == "__main__":
    sys.exit(main())
