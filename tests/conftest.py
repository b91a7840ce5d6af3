"""Shared test fixtures and configuration.

Sets up environment variables before any logbook_sync imports, and provides
a temporary SQLite database with the Things tables the fetcher reads.
"""

import os

# Patch env vars BEFORE any logbook_sync imports
os.environ.setdefault("THINGS_DB_PATH", "")
os.environ.setdefault("SECTION_HEADING", "## Logbook")
os.environ.setdefault("TAG_PREFIX", "logbook/")
os.environ.setdefault("USE_TAB", "true")
os.environ.setdefault("TAB_SIZE", "4")

import sqlite3

import pytest

_SCHEMA = """
CREATE TABLE TMArea (uuid TEXT PRIMARY KEY, title TEXT);
CREATE TABLE TMTag (uuid TEXT PRIMARY KEY, title TEXT);
CREATE TABLE TMTask (
    uuid      TEXT PRIMARY KEY,
    title     TEXT,
    notes     TEXT,
    type      INTEGER NOT NULL DEFAULT 0,
    status    INTEGER NOT NULL DEFAULT 3,
    trashed   INTEGER NOT NULL DEFAULT 0,
    startDate REAL,
    stopDate  REAL,
    area      TEXT,
    project   TEXT,
    heading   TEXT
);
CREATE TABLE TMTaskTag (tasks TEXT, tags TEXT);
CREATE TABLE TMChecklistItem (
    uuid      TEXT PRIMARY KEY,
    title     TEXT,
    task      TEXT,
    startDate REAL,
    stopDate  REAL
);
"""


class ThingsDB:
    """Small writer for a Things-shaped SQLite file used in tests."""

    def __init__(self, path):
        self.path = path
        with sqlite3.connect(path) as conn:
            conn.executescript(_SCHEMA)

    def _insert(self, table, **values):
        cols = ", ".join(values)
        marks = ", ".join("?" for _ in values)
        with sqlite3.connect(self.path) as conn:
            conn.execute(f"INSERT INTO {table} ({cols}) VALUES ({marks})", tuple(values.values()))

    def add_area(self, uuid, title):
        self._insert("TMArea", uuid=uuid, title=title)

    def add_project(self, uuid, title, area=None):
        self._insert("TMTask", uuid=uuid, title=title, type=1, area=area)

    def add_heading(self, uuid, title, project=None):
        self._insert("TMTask", uuid=uuid, title=title, type=2, project=project)

    def add_task(self, uuid, title, stop_date, tags=(), **fields):
        self._insert("TMTask", uuid=uuid, title=title, type=0, stopDate=stop_date, **fields)
        for tag in tags:
            tag_uuid = f"tag-{tag}"
            with sqlite3.connect(self.path) as conn:
                conn.execute(
                    "INSERT OR IGNORE INTO TMTag (uuid, title) VALUES (?, ?)", (tag_uuid, tag)
                )
            self._insert("TMTaskTag", tasks=uuid, tags=tag_uuid)

    def add_checklist_item(self, uuid, task, title, stop_date=None, start_date=None):
        self._insert(
            "TMChecklistItem",
            uuid=uuid, task=task, title=title, startDate=start_date, stopDate=stop_date,
        )


@pytest.fixture
def things_db(tmp_path):
    """Return a ThingsDB writer backed by a temp file."""
    return ThingsDB(str(tmp_path / "main.sqlite"))
