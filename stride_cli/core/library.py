"""Built-in exercise and routine library."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from stride_cli.core.constants import DEFAULT_REST_SECONDS, FALLBACK_EXERCISE_COUNT
from stride_cli.core.models import Exercise, Routine

SAMPLE_EXERCISES: List[Exercise] = [
    Exercise(
        id="single-leg-stand",
        name="Single Leg Stand",
        duration=30,
        category="balance",
        description="Stand on one leg while holding onto a chair for support.",
        instructions=(
            "Stand behind a sturdy chair, holding the back with both hands",
            "Slowly lift your right foot off the ground",
            "Hold for 10-15 seconds",
            "Lower your foot and repeat with the left leg",
        ),
    ),
    Exercise(
        id="heel-toe-walk",
        name="Heel-Toe Walk",
        duration=60,
        category="fall_prevention",
        difficulty="moderate",
        description="Walk in a straight line placing heel directly in front of toes.",
        instructions=(
            "Stand near a wall for support if needed",
            "Place your right heel directly in front of your left toes",
            "Walk 15-20 steps forward",
            "Turn around carefully and walk back",
        ),
    ),
    Exercise(
        id="chair-stand",
        name="Chair Stand",
        duration=45,
        category="strength",
        description="Sit down and stand up from a chair without using hands.",
        instructions=(
            "Sit in a sturdy chair with feet flat on the floor",
            "Cross your arms over your chest",
            "Lean slightly forward and stand up slowly",
            "Pause briefly, then slowly sit back down",
        ),
    ),
    Exercise(
        id="wall-push-ups",
        name="Wall Push-Ups",
        duration=45,
        category="strength",
        description="A gentle push-up against the wall.",
        instructions=(
            "Stand arm's length from a wall",
            "Place palms flat on the wall at shoulder height",
            "Slowly bend elbows and lean toward the wall",
            "Push back to starting position",
        ),
    ),
    Exercise(
        id="shoulder-rolls",
        name="Shoulder Rolls",
        duration=30,
        category="flexibility",
        description="Gentle circular movements to release shoulder tension.",
        instructions=(
            "Sit or stand comfortably with arms at your sides",
            "Slowly roll shoulders forward in circles",
            "Reverse direction and roll backward",
        ),
    ),
    Exercise(
        id="neck-stretches",
        name="Neck Stretches",
        duration=45,
        category="flexibility",
        description="Gentle side-to-side stretches for neck flexibility.",
        instructions=(
            "Sit or stand with good posture",
            "Slowly tilt your head toward your right shoulder",
            "Return to center and repeat on the left side",
        ),
    ),
    Exercise(
        id="chin-tucks",
        name="Chin Tucks",
        duration=30,
        category="posture",
        description="Strengthen neck muscles and improve forward head posture.",
        instructions=(
            "Sit or stand with good posture",
            "Gently draw your chin back",
            "Hold for 5 seconds, relax and repeat",
        ),
    ),
    Exercise(
        id="deep-breathing",
        name="Deep Breathing",
        duration=60,
        category="breathing",
        description="Calming deep breaths to reduce stress.",
        instructions=(
            "Sit comfortably with hands on your belly",
            "Breathe in slowly through your nose for 4 counts",
            "Exhale slowly through your mouth for 6 counts",
        ),
    ),
]

EXERCISES_BY_ID: Dict[str, Exercise] = {exercise.id: exercise for exercise in SAMPLE_EXERCISES}

SAMPLE_ROUTINES: List[Dict[str, Any]] = [
    {
        "id": "morning-balance-boost",
        "name": "Morning Balance Boost",
        "category": "balance",
        "description": "Gentle balance exercises to wake up your body and improve stability.",
        "exercise_ids": [],
    },
    {
        "id": "fall-prevention-essentials",
        "name": "Fall Prevention Essentials",
        "category": "fall_prevention",
        "description": "Exercises designed to reduce your risk of falls.",
        "exercise_ids": ["single-leg-stand", "heel-toe-walk", "chair-stand", "chin-tucks"],
    },
    {
        "id": "gentle-strength-builder",
        "name": "Gentle Strength Builder",
        "category": "strength",
        "description": "Functional strength for getting up from chairs and carrying groceries.",
        "exercise_ids": ["chair-stand", "wall-push-ups", "single-leg-stand"],
    },
    {
        "id": "posture-perfect",
        "name": "Posture Perfect",
        "category": "posture",
        "description": "Release neck and shoulder tension and stand tall.",
        "exercise_ids": ["shoulder-rolls", "neck-stretches", "chin-tucks"],
    },
    {
        "id": "evening-wind-down",
        "name": "Evening Wind Down",
        "category": "breathing",
        "description": "Slow stretches and breathing before bed.",
        "exercise_ids": ["neck-stretches", "shoulder-rolls", "deep-breathing"],
    },
]


class UnknownExerciseError(KeyError):
    """Raised when a routine references an exercise id the library lacks."""


def get_exercise(exercise_id: str) -> Exercise:
    try:
        return EXERCISES_BY_ID[exercise_id]
    except KeyError:
        raise UnknownExerciseError(exercise_id) from None


def resolve_exercises(exercise_ids: Sequence[str]) -> List[Exercise]:
    """Resolve library ids in order; an empty id list falls back to the first sample exercises."""
    if not exercise_ids:
        return list(SAMPLE_EXERCISES[:FALLBACK_EXERCISE_COUNT])
    return [get_exercise(exercise_id) for exercise_id in exercise_ids]


def _build_routine(entry: Dict[str, Any], rest_seconds: int) -> Routine:
    return Routine(
        id=entry["id"],
        name=entry["name"],
        exercises=tuple(resolve_exercises(entry["exercise_ids"])),
        rest_between_exercises=rest_seconds,
        description=entry.get("description", ""),
        category=entry.get("category", "balance"),
    )


def builtin_routines(rest_seconds: int = DEFAULT_REST_SECONDS) -> List[Routine]:
    return [_build_routine(entry, rest_seconds) for entry in SAMPLE_ROUTINES]


def find_builtin_routine(key: str, rest_seconds: int = DEFAULT_REST_SECONDS) -> Optional[Routine]:
    """Look up a built-in routine by id or case-insensitive name."""
    needle = key.strip().lower()
    for entry in SAMPLE_ROUTINES:
        if entry["id"] == needle or entry["name"].lower() == needle:
            return _build_routine(entry, rest_seconds)
    return None
