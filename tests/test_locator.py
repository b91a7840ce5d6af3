"""Tests for logbook_sync.data.locator — finding the Things database."""

import pytest

from logbook_sync.data.locator import (
    StoreLocationError,
    locate_database,
    resolve_database_path,
)

_RELATIVE = "Things Database.thingsdatabase/main.sqlite"


def _make_db(base, data_dir):
    db = base / data_dir / _RELATIVE
    db.parent.mkdir(parents=True)
    db.write_bytes(b"")
    return db


class TestLocateDatabase:
    def test_finds_prefixed_directory(self, tmp_path):
        expected = _make_db(tmp_path, "ThingsData-ABC12")
        (tmp_path / "Other").mkdir()
        assert locate_database(tmp_path, "ThingsData", _RELATIVE) == expected

    def test_picks_first_by_name(self, tmp_path):
        _make_db(tmp_path, "ThingsData-ZZZ")
        expected = _make_db(tmp_path, "ThingsData-AAA")
        assert locate_database(tmp_path, "ThingsData", _RELATIVE) == expected

    def test_ignores_prefixed_files(self, tmp_path):
        (tmp_path / "ThingsData.txt").write_text("not a dir")
        with pytest.raises(StoreLocationError, match="No directory"):
            locate_database(tmp_path, "ThingsData", _RELATIVE)

    def test_missing_base_dir(self, tmp_path):
        with pytest.raises(StoreLocationError, match="container not found"):
            locate_database(tmp_path / "nope", "ThingsData", _RELATIVE)

    def test_data_dir_without_database_file(self, tmp_path):
        (tmp_path / "ThingsData-ABC").mkdir()
        with pytest.raises(StoreLocationError, match="database not found"):
            locate_database(tmp_path, "ThingsData", _RELATIVE)


class TestResolveDatabasePath:
    def test_explicit_path_wins(self, tmp_path):
        explicit = tmp_path / "custom.sqlite"
        explicit.write_bytes(b"")
        _make_db(tmp_path, "ThingsData-ABC")
        assert resolve_database_path(explicit, tmp_path, "ThingsData", _RELATIVE) == explicit

    def test_explicit_path_missing_raises(self, tmp_path):
        with pytest.raises(StoreLocationError, match="THINGS_DB_PATH"):
            resolve_database_path(tmp_path / "gone.sqlite", tmp_path, "ThingsData", _RELATIVE)

    def test_empty_explicit_falls_back_to_search(self, tmp_path):
        expected = _make_db(tmp_path, "ThingsData-ABC")
        assert resolve_database_path("", tmp_path, "ThingsData", _RELATIVE) == expected
