from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

SCHEMA_VERSION = 2


# ---------- Timestamps / ids ----------


def utcnow() -> datetime:
    # whole seconds; the iOS app's ISO-8601 decoder rejects fractions
    return datetime.now(tz=timezone.utc).replace(microsecond=0)


def as_utc(dt: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to already be UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Render a datetime as ISO-8601 in UTC, whole seconds, with a trailing "Z"."""
    return as_utc(dt).isoformat(timespec="seconds").replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    if not isinstance(raw, str):
        raise TypeError(f"timestamp must be a string, got {type(raw).__name__}")
    s = raw.strip()
    # fromisoformat() only learned "Z" in 3.11
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(s))


def format_uuid(value: UUID) -> str:
    # Same casing the iOS app writes
    return str(value).upper()


def as_uuid(value: UUID | str) -> UUID:
    if isinstance(value, UUID):
        return value
    return UUID(str(value).strip())


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)


# ---------- Records ----------


@dataclass(frozen=True)
class LoggedSet:
    order: int
    weight: float
    reps: int
    rpe: float | None = None
    distance: float | None = None  # meters, cardio only
    seconds: float | None = None  # cardio only
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self):
        object.__setattr__(self, "id", as_uuid(self.id))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": format_uuid(self.id),
            "order": self.order,
            "weight": self.weight,
            "reps": self.reps,
        }
        for key in ("rpe", "distance", "seconds"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoggedSet:
        return cls(
            id=as_uuid(data["id"]),
            order=int(data["order"]),
            weight=float(data["weight"]),
            reps=int(data["reps"]),
            rpe=_optional_float(data.get("rpe")),
            distance=_optional_float(data.get("distance")),
            seconds=_optional_float(data.get("seconds")),
        )


@dataclass(frozen=True)
class LoggedExercise:
    name: str
    sets: tuple[LoggedSet, ...] = ()
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self):
        object.__setattr__(self, "id", as_uuid(self.id))
        # accept any iterable of sets but keep the record hashable
        object.__setattr__(self, "sets", tuple(self.sets))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": format_uuid(self.id),
            "name": self.name,
            "sets": [s.to_dict() for s in self.sets],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoggedExercise:
        return cls(
            id=as_uuid(data["id"]),
            name=str(data["name"]),
            sets=tuple(LoggedSet.from_dict(s) for s in data.get("sets") or ()),
        )


@dataclass(frozen=True)
class LoggedWorkout:
    started_at: datetime
    ended_at: datetime
    name: str
    exercises: tuple[LoggedExercise, ...] = ()
    gym_profile_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    schema_version: int = SCHEMA_VERSION

    def __post_init__(self):
        # ids may come in as strings and timestamps naive; store one canonical form
        object.__setattr__(self, "id", as_uuid(self.id))
        if self.gym_profile_id is not None:
            object.__setattr__(self, "gym_profile_id", as_uuid(self.gym_profile_id))
        for name in ("started_at", "ended_at", "created_at", "updated_at"):
            object.__setattr__(self, name, as_utc(getattr(self, name)))
        object.__setattr__(self, "exercises", tuple(self.exercises))

    @property
    def duration_s(self) -> float:
        return max(0.0, (self.ended_at - self.started_at).total_seconds())

    @property
    def total_sets(self) -> int:
        return sum(len(e.sets) for e in self.exercises)

    @property
    def total_volume(self) -> float:
        """Sum of weight x reps over every set."""
        return sum(s.weight * s.reps for e in self.exercises for s in e.sets)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": format_uuid(self.id),
            "startedAt": format_timestamp(self.started_at),
            "endedAt": format_timestamp(self.ended_at),
            "name": self.name,
            "exercises": [e.to_dict() for e in self.exercises],
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "schemaVersion": self.schema_version,
        }
        if self.gym_profile_id is not None:
            out["gymProfileId"] = format_uuid(self.gym_profile_id)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoggedWorkout:
        if not isinstance(data, Mapping):
            raise TypeError(f"workout must be an object, got {type(data).__name__}")
        ended_at = parse_timestamp(data["endedAt"])
        gym = data.get("gymProfileId")
        return cls(
            id=as_uuid(data["id"]),
            started_at=parse_timestamp(data["startedAt"]),
            ended_at=ended_at,
            name=str(data["name"]),
            gym_profile_id=as_uuid(gym) if gym else None,
            exercises=tuple(LoggedExercise.from_dict(e) for e in data.get("exercises") or ()),
            created_at=parse_timestamp(data["createdAt"]) if "createdAt" in data else ended_at,
            updated_at=parse_timestamp(data["updatedAt"]) if "updatedAt" in data else ended_at,
            # files written before versioning carried no field
            schema_version=int(data.get("schemaVersion", 1)),
        )


# ---------- File codec ----------


def sort_recent_first(workouts: Iterable[LoggedWorkout]) -> list[LoggedWorkout]:
    """Most recent start first; ties keep their incoming order."""
    return sorted(workouts, key=lambda w: w.started_at, reverse=True)


def encode_workouts(workouts: Iterable[LoggedWorkout]) -> bytes:
    payload = [w.to_dict() for w in workouts]
    return json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")


def decode_workouts(data: bytes | str) -> list[LoggedWorkout]:
    payload = json.loads(data)
    if not isinstance(payload, list):
        raise TypeError(f"expected a JSON array, got {type(payload).__name__}")
    return [LoggedWorkout.from_dict(item) for item in payload]
