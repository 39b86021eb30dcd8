"""Parsing helpers for routine files."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from stride_cli.core.constants import DEFAULT_REST_SECONDS
from stride_cli.core.library import UnknownExerciseError, get_exercise
from stride_cli.core.models import Exercise, Routine


class RoutineError(ValueError):
    """Raised when a routine definition is invalid."""


def slugify(value: str, max_len: int = 50) -> str:
    """Derive an id from a display name."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return (slug or "untitled")[:max_len]


def parse_duration(value: Any) -> int:
    """Parse whole seconds given as int, '45', '1:30' or '0:01:30'."""
    if isinstance(value, bool):
        raise RoutineError(f"Invalid duration: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise RoutineError(f"Duration must be whole seconds: {value!r}")
        return int(value)

    raw = str(value).strip().lower()
    if raw.endswith("s"):
        raw = raw[:-1]
    parts = raw.split(":")
    try:
        if len(parts) == 2:
            return int(parts[0]) * 60 + int(parts[1])
        if len(parts) == 3:
            return int(parts[0]) * 3600 + int(parts[1]) * 60 + int(parts[2])
        return int(raw)
    except ValueError as exc:
        raise RoutineError(f"Invalid duration: {value!r}") from exc


def parse_exercise(item: Any, position: int) -> Exercise:
    """Build an exercise from a library id string or an inline mapping."""
    if isinstance(item, str):
        try:
            return get_exercise(item.strip())
        except UnknownExerciseError as exc:
            raise RoutineError(f"Unknown exercise '{item}' at position {position}") from exc

    if not isinstance(item, dict):
        raise RoutineError(f"Exercise at position {position} must be a name or mapping")

    name = str(item.get("name") or "").strip()
    if not name:
        raise RoutineError(f"Exercise at position {position} is missing a name")
    if "duration" not in item:
        raise RoutineError(f"Exercise '{name}' is missing a duration")
    duration = parse_duration(item["duration"])
    if duration <= 0:
        raise RoutineError(f"Exercise '{name}' must have a positive duration")

    instructions = item.get("instructions") or []
    if isinstance(instructions, str):
        instructions = [instructions]

    return Exercise(
        id=str(item.get("id") or slugify(name)),
        name=name,
        duration=duration,
        instructions=tuple(str(line) for line in instructions),
        category=str(item.get("category", "balance")),
        difficulty=str(item.get("difficulty", "easy")),
        description=str(item.get("description", "")),
    )


def routine_from_dict(data: Dict[str, Any], default_rest: int = DEFAULT_REST_SECONDS) -> Routine:
    name = str(data.get("name") or "").strip()
    if not name:
        raise RoutineError("Routine is missing a name")

    raw_exercises = data.get("exercises")
    if raw_exercises is None:
        raw_exercises = []
    if not isinstance(raw_exercises, list):
        raise RoutineError("Routine 'exercises' must be a list")

    rest_raw = data.get("rest_between_exercises", data.get("rest"))
    rest = default_rest if rest_raw is None else parse_duration(rest_raw)
    if rest < 0:
        raise RoutineError("Rest between exercises cannot be negative")

    exercises: List[Exercise] = [parse_exercise(item, index) for index, item in enumerate(raw_exercises)]
    return Routine(
        id=str(data.get("id") or slugify(name)),
        name=name,
        exercises=tuple(exercises),
        rest_between_exercises=rest,
        description=str(data.get("description", "")),
        category=str(data.get("category", "balance")),
    )


def load_routine_file(file_path: Path, default_rest: int = DEFAULT_REST_SECONDS) -> Routine:
    """Load a single routine from a JSON or YAML file."""
    text = file_path.read_text()
    try:
        if file_path.suffix.lower() in {".yaml", ".yml"}:
            raw_data = yaml.safe_load(text)
        else:
            raw_data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise RoutineError(f"Could not parse routine file {file_path}: {exc}") from exc

    if not isinstance(raw_data, dict):
        raise RoutineError(f"Routine file {file_path} must contain a single object")
    return routine_from_dict(raw_data, default_rest=default_rest)


def parse_indices(values: Optional[List[int]], limit: int) -> List[int]:
    """Validate 0-based exercise positions against the routine length."""
    indices: List[int] = []
    for value in values or []:
        if value < 0 or value >= limit:
            raise RoutineError(f"Exercise position {value} is out of range (0-{limit - 1})")
        indices.append(value)
    return indices
