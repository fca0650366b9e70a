from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Mapping
from datetime import date, timezone, tzinfo

from workout_log.models import LoggedWorkout


class NoWorkoutsInRange(ValueError):
    pass


# ---------- Helpers ----------


def _local(dt, tz: tzinfo | None):
    """Naive timestamps are UTC; render in `tz` (system local if None)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def _format_hms(seconds: float) -> str:
    seconds = int(round(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:d}:{m:02d}:{s:02d}" if h else f"{m:d}:{s:02d}"


def _compact(value: float | None) -> str:
    """Whole numbers without a decimal point, everything else to one decimal."""
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


# ---------- CSV exporter ----------


def select_workouts(
    workouts: Iterable[LoggedWorkout],
    *,
    start: date | None = None,
    end: date | None = None,
    tz: tzinfo | None = None,
) -> list[LoggedWorkout]:
    """Workouts whose local start date falls in [start, end], oldest first."""
    if start is not None and end is not None and start > end:
        raise ValueError(f"Invalid date range: {start} is after {end}")

    def in_range(w: LoggedWorkout) -> bool:
        day = _local(w.started_at, tz).date()
        if start is not None and day < start:
            return False
        if end is not None and day > end:
            return False
        return True

    selected = sorted((w for w in workouts if in_range(w)), key=lambda w: w.started_at)
    if not selected:
        raise NoWorkoutsInRange("No workouts found in that date range")
    return selected


def workouts_to_csv(
    workouts: Iterable[LoggedWorkout],
    *,
    start: date | None = None,
    end: date | None = None,
    weight_unit: str | None = None,
    exercise_tags: Mapping[str, str] | None = None,
    tz: tzinfo | None = None,
) -> str:
    """
    Build a compact CSV of logged workouts, one row per set.

    Layout:
      - workout start/name/duration only on a workout's first row
      - exercise name and tags only on an exercise's first row
      - Distance / Seconds columns only when some set uses them.

    `start` and `end` are inclusive local dates; either may be omitted.
    `exercise_tags` maps an exercise name to its tag text (e.g. muscle groups).
    """
    selected = select_workouts(workouts, start=start, end=end, tz=tz)
    exercise_tags = exercise_tags or {}

    all_sets = [s for w in selected for e in w.exercises for s in e.sets]
    with_distance = any((s.distance or 0) > 0 for s in all_sets)
    with_seconds = any((s.seconds or 0) > 0 for s in all_sets)

    unit = (weight_unit or "").strip()
    header = [
        "Workout Start",
        "Workout Name",
        "Duration",
        "Exercise",
        "Tags",
        "Set",
        f"Weight ({unit})" if unit else "Weight",
        "Reps",
    ]
    if with_distance:
        header.append("Distance")
    if with_seconds:
        header.append("Seconds")

    buf = io.StringIO()
    out = csv.writer(buf, lineterminator="\n")
    out.writerow(header)

    for w in selected:
        first_of_workout = True
        for exercise in sorted(w.exercises, key=lambda e: e.name.casefold()):
            first_of_exercise = True
            for s in sorted(exercise.sets, key=lambda s: s.order):
                row = [
                    _local(w.started_at, tz).strftime("%Y-%m-%d %H:%M") if first_of_workout else "",
                    w.name if first_of_workout else "",
                    _format_hms(w.duration_s) if first_of_workout else "",
                    exercise.name if first_of_exercise else "",
                    exercise_tags.get(exercise.name, "") if first_of_exercise else "",
                    str(s.order),
                    _compact(s.weight),
                    str(s.reps),
                ]
                if with_distance:
                    row.append(_compact(s.distance) if (s.distance or 0) > 0 else "")
                if with_seconds:
                    row.append(_compact(s.seconds) if (s.seconds or 0) > 0 else "")
                out.writerow(row)
                first_of_workout = False
                first_of_exercise = False

    return buf.getvalue()


def export_file_name(start: date, end: date) -> str:
    return f"workout_export_{start:%Y%m%d}_{end:%Y%m%d}.csv"
