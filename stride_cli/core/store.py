"""JSON-file history of completed sessions."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List

from loguru import logger

from stride_cli.core.models import SessionRecord
from stride_cli.exporters.json_export import write_json


class StoreError(RuntimeError):
    """Raised when the history file cannot be read."""


class SessionStore:
    """Append-only list of :class:`SessionRecord` persisted as one JSON array."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read_raw(self) -> List[Any]:
        if not self.path.exists():
            return []
        text = self.path.read_text()
        if not text.strip():
            return []
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Invalid JSON in history file {self.path}: {exc}") from exc
        if not isinstance(loaded, list):
            raise StoreError(f"History file {self.path} must contain a JSON array")
        return loaded

    def load(self) -> List[SessionRecord]:
        records: List[SessionRecord] = []
        for item in self._read_raw():
            if not isinstance(item, dict):
                continue
            try:
                records.append(SessionRecord.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                raise StoreError(f"Malformed session entry in {self.path}: {exc}") from exc
        records.sort(key=lambda record: record.started_at)
        return records

    def save(self, record: SessionRecord) -> Path:
        entries = self._read_raw()
        entries.append(record.to_dict())
        write_json(self.path, entries)
        logger.info(f"Saved session {record.session_id} to {self.path}")
        return self.path
