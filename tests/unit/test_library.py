from __future__ import annotations

import pytest

from stride_cli.core.library import (
    SAMPLE_EXERCISES,
    UnknownExerciseError,
    builtin_routines,
    find_builtin_routine,
    get_exercise,
    resolve_exercises,
)


def test_routine_without_ids_falls_back_to_first_five() -> None:
    routine = find_builtin_routine("morning-balance-boost")
    assert routine is not None
    assert [exercise.id for exercise in routine.exercises] == [exercise.id for exercise in SAMPLE_EXERCISES[:5]]


def test_find_by_name_is_case_insensitive() -> None:
    routine = find_builtin_routine("  posture PERFECT ", rest_seconds=5)
    assert routine is not None
    assert routine.id == "posture-perfect"
    assert routine.rest_between_exercises == 5


def test_find_unknown_routine() -> None:
    assert find_builtin_routine("marathon") is None


def test_every_builtin_routine_has_exercises() -> None:
    routines = builtin_routines()
    assert len(routines) == 5
    assert all(routine.exercises for routine in routines)
    assert all(routine.rest_between_exercises == 15 for routine in routines)


def test_get_exercise() -> None:
    assert get_exercise("deep-breathing").duration == 60
    with pytest.raises(UnknownExerciseError):
        get_exercise("handstand")
    with pytest.raises(UnknownExerciseError):
        resolve_exercises(["chin-tucks", "handstand"])
