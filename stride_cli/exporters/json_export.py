"""JSON and CSV writers for session history."""

from __future__ import annotations

import csv
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Sequence

from stride_cli.core.models import SessionRecord

CSV_FIELDS = [
    "session_id",
    "routine_name",
    "started_at",
    "ended_at",
    "total_exercises",
    "completed",
    "skipped",
    "total_elapsed",
    "paused_seconds",
    "completion_ratio",
    "average_heart_rate",
]


def write_json(path: Path, payload: Any) -> Path:
    """Write payload as pretty JSON through a temp file and return path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    with os.fdopen(fd, "w") as handle:
        handle.write(json.dumps(payload, indent=2) + "\n")
    os.replace(tmp_name, path)
    return path


def record_to_row(record: SessionRecord) -> Dict[str, Any]:
    average = record.average_heart_rate
    return {
        "session_id": record.session_id,
        "routine_name": record.routine_name,
        "started_at": record.started_at.isoformat(),
        "ended_at": record.ended_at.isoformat(),
        "total_exercises": record.total_exercises,
        "completed": len(record.completed_indices),
        "skipped": len(record.skipped_indices),
        "total_elapsed": record.total_elapsed,
        "paused_seconds": record.paused_seconds,
        "completion_ratio": round(record.completion_ratio, 4),
        "average_heart_rate": round(average, 1) if average is not None else "",
    }


def write_records_csv(path: Path, records: Sequence[SessionRecord]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    rows: List[Dict[str, Any]] = [record_to_row(record) for record in records]
    with path.open("w", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(rows)
    return path
