from __future__ import annotations

import csv
import json

import pytest

from stride_cli.core.models import SessionRecord
from stride_cli.core.store import SessionStore, StoreError
from stride_cli.exporters.json_export import write_records_csv


def test_missing_file_loads_empty(tmp_path) -> None:
    assert SessionStore(tmp_path / "nope.json").load() == []


def test_save_appends_and_creates_parent(tmp_path, sample_record_payload) -> None:
    path = tmp_path / "nested" / "history.json"
    store = SessionStore(path)
    record = SessionRecord.from_dict(sample_record_payload)

    store.save(record)
    second = dict(sample_record_payload, session_id="def456", started_at="2026-03-01T08:00:00+00:00")
    store.save(SessionRecord.from_dict(second))

    raw = json.loads(path.read_text())
    assert [item["session_id"] for item in raw] == ["abc123", "def456"]
    assert [record.session_id for record in store.load()] == ["def456", "abc123"]


def test_invalid_json_raises(write_temp_text) -> None:
    path = write_temp_text("history.json", "{not json")
    with pytest.raises(StoreError, match="Invalid JSON"):
        SessionStore(path).load()


def test_non_list_raises(write_temp_json) -> None:
    path = write_temp_json("history.json", {"sessions": []})
    with pytest.raises(StoreError, match="JSON array"):
        SessionStore(path).load()


def test_malformed_entry_raises(write_temp_json) -> None:
    path = write_temp_json("history.json", [{"session_id": "x"}])
    with pytest.raises(StoreError, match="Malformed"):
        SessionStore(path).load()


def test_blank_file_is_empty(write_temp_text) -> None:
    path = write_temp_text("history.json", "   ")
    assert SessionStore(path).load() == []


def test_csv_export(tmp_path, sample_record_payload) -> None:
    output = tmp_path / "out" / "history.csv"
    write_records_csv(output, [SessionRecord.from_dict(sample_record_payload)])

    with output.open() as handle:
        rows = list(csv.DictReader(handle))
    assert rows[0]["routine_name"] == "Posture Perfect"
    assert rows[0]["completed"] == "2"
    assert rows[0]["skipped"] == "1"
    assert rows[0]["average_heart_rate"] == "85.0"
