"""
Things Logbook Sync — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

# Load .env from project root (one level up from logbook_sync/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

_DEFAULT_BASE_DIR = "~/Library/Group Containers/JLMPQHK86H.com.culturedcode.ThingsMac"
_DEFAULT_DB_RELATIVE_PATH = "Things Database.thingsdatabase/main.sqlite"


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Things database: explicit path wins, probing is the fallback
    THINGS_DB_PATH: str = ""
    THINGS_BASE_DIR: str = _DEFAULT_BASE_DIR
    THINGS_DATA_PREFIX: str = "ThingsData"
    THINGS_DB_RELATIVE_PATH: str = _DEFAULT_DB_RELATIVE_PATH

    # Fetching
    FETCH_PAGE_SIZE: int = 1000

    # Rendering
    SECTION_HEADING: str = "## Logbook"
    TAG_PREFIX: str = "logbook/"
    CANCELLED_MARK: str = "c"
    SYNC_NOTE_BODY: bool = True
    HEADING_MARKERS: bool = False

    # Indentation of the target document
    USE_TAB: bool = True
    TAB_SIZE: int = 4

    # Output document
    OUTPUT_PATH: str = "logbook.md"

    @field_validator("FETCH_PAGE_SIZE", "TAB_SIZE", mode="before")
    @classmethod
    def parse_positive_int(cls, v: str | int) -> int:
        value = int(v)
        if value <= 0:
            raise ValueError(f"must be a positive integer, got {value}")
        return value

    @field_validator("SECTION_HEADING")
    @classmethod
    def require_heading(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("section heading cannot be empty")
        return v


def _load_settings() -> Settings:
    """Load settings from environment, exiting on invalid values."""
    try:
        return Settings(
            THINGS_DB_PATH=os.getenv("THINGS_DB_PATH", ""),
            THINGS_BASE_DIR=os.getenv("THINGS_BASE_DIR", _DEFAULT_BASE_DIR),
            THINGS_DATA_PREFIX=os.getenv("THINGS_DATA_PREFIX", "ThingsData"),
            THINGS_DB_RELATIVE_PATH=os.getenv(
                "THINGS_DB_RELATIVE_PATH", _DEFAULT_DB_RELATIVE_PATH
            ),
            FETCH_PAGE_SIZE=os.getenv("FETCH_PAGE_SIZE", "1000"),
            SECTION_HEADING=os.getenv("SECTION_HEADING", "## Logbook"),
            TAG_PREFIX=os.getenv("TAG_PREFIX", "logbook/"),
            CANCELLED_MARK=os.getenv("CANCELLED_MARK", "c"),
            SYNC_NOTE_BODY=os.getenv("SYNC_NOTE_BODY", "true"),
            HEADING_MARKERS=os.getenv("HEADING_MARKERS", "false"),
            USE_TAB=os.getenv("USE_TAB", "true"),
            TAB_SIZE=os.getenv("TAB_SIZE", "4"),
            OUTPUT_PATH=os.getenv("OUTPUT_PATH", "logbook.md"),
        )
    except ValidationError as exc:
        print(f"ERROR: invalid configuration in .env:\n{exc}", file=sys.stderr)
        sys.exit(1)


# Singleton — imported by all other modules as:
#   from logbook_sync.config import settings
settings = _load_settings()
