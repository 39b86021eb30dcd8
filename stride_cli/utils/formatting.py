"""Formatting helpers used by voice cues and console output."""

from __future__ import annotations

from typing import Optional

from stride_cli.core.constants import CATEGORY_LABELS, DIFFICULTY_LABELS


def format_clock(seconds: Optional[int]) -> str:
    """Format seconds as M:SS, or H:MM:SS past an hour."""
    total = max(int(seconds or 0), 0)
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def format_spoken_duration(seconds: int) -> str:
    """Duration phrase for voice lines: whole minutes from 60s up, else seconds."""
    if seconds >= 60:
        minutes = int(seconds // 60)
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{int(seconds)} seconds"


def format_minutes(seconds: Optional[int]) -> str:
    if not seconds:
        return "0 min"
    return f"{int(seconds) / 60:.1f} min"


def format_ratio(ratio: float) -> str:
    return f"{int(round(ratio * 100))}%"


def format_category(category: str) -> str:
    return CATEGORY_LABELS.get(category, category.replace("_", " ").title())


def format_bpm(bpm: Optional[float]) -> str:
    if bpm is None:
        return "N/A"
    return f"{int(round(bpm))} bpm"


def format_difficulty(difficulty: str) -> str:
    return DIFFICULTY_LABELS.get(difficulty, difficulty.title())
