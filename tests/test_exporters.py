# tests/test_exporters.py
from __future__ import annotations

from datetime import date, timezone

import pytest
from workout_log.exporters import (
    NoWorkoutsInRange,
    export_file_name,
    select_workouts,
    workouts_to_csv,
)
from workout_log.models import LoggedExercise, LoggedSet


# -------- helpers --------
def _leg_day(make_workout):
    return make_workout(
        "2024-01-01T10:00:00",
        name="Leg Day",
        minutes=65,
        exercises=(
            LoggedExercise(
                name="Squat",
                sets=(
                    LoggedSet(order=2, weight=102.5, reps=5),
                    LoggedSet(order=1, weight=100.0, reps=5),
                ),
            ),
            LoggedExercise(name="bench press", sets=(LoggedSet(order=1, weight=60.0, reps=8),)),
        ),
    )


# -------- tests --------
def test_compact_layout(make_workout) -> None:
    text = workouts_to_csv([_leg_day(make_workout)], weight_unit="kg", tz=timezone.utc)
    assert text.splitlines() == [
        "Workout Start,Workout Name,Duration,Exercise,Tags,Set,Weight (kg),Reps",
        "2024-01-01 10:00,Leg Day,1:05:00,bench press,,1,60,8",
        ",,,Squat,,1,100,5",
        ",,,,,2,102.5,5",
    ]


def test_cardio_columns_only_when_used(make_workout) -> None:
    run = make_workout(
        "2024-01-02T07:00:00",
        name="Run, easy",
        minutes=30,
        exercises=(
            LoggedExercise(
                name="Treadmill",
                sets=(LoggedSet(order=1, weight=0.0, reps=0, distance=5000.0, seconds=1800.0),),
            ),
        ),
    )
    lines = workouts_to_csv([run, _leg_day(make_workout)], tz=timezone.utc).splitlines()

    assert lines[0].endswith("Weight,Reps,Distance,Seconds")
    # oldest first, and names with commas are quoted
    assert lines[1].startswith("2024-01-01 10:00,Leg Day,")
    assert lines[1].endswith(",,")
    assert lines[-1] == '2024-01-02 07:00,"Run, easy",30:00,Treadmill,,1,0,0,5000,1800'


def test_date_range_is_inclusive(make_workout) -> None:
    workouts = [
        make_workout("2024-01-01T10:00:00", name="first"),
        make_workout("2024-01-02T10:00:00", name="second"),
        make_workout("2024-01-03T10:00:00", name="third"),
    ]
    text = workouts_to_csv(
        workouts, start=date(2024, 1, 2), end=date(2024, 1, 3), tz=timezone.utc
    )
    assert "first" not in text
    assert "second" in text
    assert "third" in text


def test_inverted_range_rejected(make_workout) -> None:
    with pytest.raises(ValueError, match="Invalid date range"):
        workouts_to_csv([make_workout()], start=date(2024, 2, 1), end=date(2024, 1, 1))


def test_empty_range_rejected(make_workout) -> None:
    with pytest.raises(NoWorkoutsInRange):
        workouts_to_csv([make_workout()], start=date(2030, 1, 1), tz=timezone.utc)


def test_export_file_name() -> None:
    assert export_file_name(date(2024, 1, 1), date(2024, 1, 31)) == (
        "workout_export_20240101_20240131.csv"
    )


def test_tags_only_on_first_row_of_exercise(make_workout) -> None:
    text = workouts_to_csv(
        [_leg_day(make_workout)],
        weight_unit="kg",
        exercise_tags={"Squat": "Quads, Glutes"},
        tz=timezone.utc,
    )
    lines = text.splitlines()
    assert lines[2] == ',,,Squat,"Quads, Glutes",1,100,5'
    assert lines[3] == ",,,,,2,102.5,5"
    # exercises without tags get an empty cell
    assert lines[1].startswith("2024-01-01 10:00,Leg Day,1:05:00,bench press,,")


def test_select_workouts_oldest_first_in_range(make_workout) -> None:
    workouts = [
        make_workout("2024-01-03T10:00:00", name="third"),
        make_workout("2024-01-01T10:00:00", name="first"),
        make_workout("2024-01-02T10:00:00", name="second"),
    ]
    selected = select_workouts(workouts, end=date(2024, 1, 2), tz=timezone.utc)
    assert [w.name for w in selected] == ["first", "second"]
