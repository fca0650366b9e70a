# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
from workout_log.models import LoggedExercise, LoggedSet, LoggedWorkout


def _utc(raw: str) -> datetime:
    return datetime.fromisoformat(raw).replace(tzinfo=timezone.utc)


@pytest.fixture
def make_workout():
    """Factory for small but realistic workouts."""

    def _make(
        started: str = "2024-01-01T10:00:00",
        *,
        id: UUID | None = None,
        name: str = "Leg Day",
        minutes: int = 60,
        exercises: tuple[LoggedExercise, ...] | None = None,
    ) -> LoggedWorkout:
        start = _utc(started)
        if exercises is None:
            exercises = (
                LoggedExercise(
                    name="Squat",
                    sets=(
                        LoggedSet(order=1, weight=100.0, reps=5),
                        LoggedSet(order=2, weight=102.5, reps=5, rpe=8.5),
                    ),
                ),
            )
        return LoggedWorkout(
            id=id or uuid4(),
            started_at=start,
            ended_at=start + timedelta(minutes=minutes),
            name=name,
            exercises=exercises,
            created_at=start + timedelta(minutes=minutes),
            updated_at=start + timedelta(minutes=minutes),
        )

    return _make
