"""Tests for habitlog/store.py and habitlog/fileio.py."""

import json
from datetime import date
from unittest.mock import patch

import pytest

from habitlog.errors import StorageError
from habitlog.fileio import read_json, read_yaml, write_json_atomic
from habitlog.models import DailyTrackingRecord, Habit
from habitlog.store import FileStore, MemoryStore
from habitlog.workspace import get_user_timezone, workspace_root


def test_workspace_root_from_env(workspace):
    assert workspace_root() == workspace.resolve()


def test_user_timezone(workspace):
    assert str(get_user_timezone(workspace)) == "UTC"
    (workspace / "settings.json").write_text(json.dumps({"timezone": "Asia/Tokyo"}), encoding="utf-8")
    assert str(get_user_timezone(workspace)) == "Asia/Tokyo"
    (workspace / "settings.json").write_text(json.dumps({"timezone": "Not/AZone"}), encoding="utf-8")
    assert str(get_user_timezone(workspace)) == "UTC"


def test_missing_and_blank_files_read_empty(tmp_path):
    assert read_json(tmp_path / "nope.json") == {}
    (tmp_path / "blank.yaml").write_text("  \n", encoding="utf-8")
    assert read_yaml(tmp_path / "blank.yaml") == {}


def test_corrupt_json_raises_storage_error(tmp_path):
    (tmp_path / "bad.json").write_text("{oops", encoding="utf-8")
    with pytest.raises(StorageError):
        read_json(tmp_path / "bad.json")


def test_atomic_write_leaves_no_temp_files(tmp_path):
    target = tmp_path / "sub" / "data.json"
    write_json_atomic(target, {"a": 1})
    assert json.loads(target.read_text(encoding="utf-8")) == {"a": 1}
    assert [p.name for p in target.parent.iterdir()] == ["data.json"]


def test_file_store_habits_round_trip(tmp_path):
    store = FileStore(tmp_path)
    store.save_habits([Habit(id="a", name="A", tracking_values=["Yes"])])
    assert (tmp_path / "habits.yaml").exists()
    assert store.load_habits()[0].tracking_values == ["Yes"]


def test_year_transaction_commits(store):
    with store.year_transaction(2025) as ledger:
        ledger.put_record(DailyTrackingRecord.tracked("2025-02-01", "smoking", "Clean"))
    assert store.load_year("2025").record("2025-02-01", "smoking").value == "Clean"


def test_year_transaction_discards_on_error(store):
    with pytest.raises(RuntimeError):
        with store.year_transaction(2025) as ledger:
            ledger.put_record(DailyTrackingRecord.tracked("2025-02-01", "smoking", "Clean"))
            raise RuntimeError("boom")
    assert not (store.root / "tracking" / "2025.json").exists()


def test_memory_store_keeps_json_strings():
    store = MemoryStore()
    with store.year_transaction("2025") as ledger:
        ledger.set_progress("h", 2)
    assert isinstance(store.data["tracking:2025"], str)
    assert store.load_year("2025").progress_count("h") == 2
    assert store.load_habits() == []
    assert store.load_fines() == {}


def test_memory_store_corrupt_value():
    store = MemoryStore({"habits": "not json"})
    with pytest.raises(StorageError):
        store.load_habits()


def test_memory_store_skips_non_dict_rows():
    store = MemoryStore({"habits": json.dumps({"habits": ["junk", {"id": "a", "name": "A"}, None]})})
    assert [h.id for h in store.load_habits()] == ["a"]


def test_file_store_today_uses_user_timezone(store):
    with patch("habitlog.store.today_local", return_value=date(2025, 7, 1)) as today:
        assert store.today() == date(2025, 7, 1)
    today.assert_called_once_with(store.root)
