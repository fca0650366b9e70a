from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterator
from datetime import datetime
from pathlib import Path
from uuid import UUID

from workout_log.errors import DecodeFailure, WorkoutStoreError, report
from workout_log.models import LoggedWorkout, as_uuid, decode_workouts, sort_recent_first, utcnow
from workout_log.writer import SnapshotWriter

logger = logging.getLogger(__name__)

Workouts = tuple[LoggedWorkout, ...]


def _call_now(fn: Callable[..., object], *args: object) -> None:
    fn(*args)


class WorkoutLogStore:
    """
    In-memory list of logged workouts, most recent first, mirrored to one JSON file.

    Reads are served from memory. Every mutation updates memory right away and
    hands a full snapshot to a background writer; callers never wait on disk.
    Nothing here raises on I/O trouble: failures are logged and passed to
    `on_error`, and the store falls back to whatever it has in memory.

    Subscribers get the new tuple after each load or mutation. `dispatch`
    decides where that call runs; a GTK front end would pass `GLib.idle_add`
    so callbacks land on the main loop.
    """

    def __init__(
        self,
        path: Path,
        *,
        on_error: Callable[[WorkoutStoreError], None] | None = None,
        dispatch: Callable[..., object] | None = None,
        clock: Callable[[], datetime] | None = None,
        writer: SnapshotWriter | None = None,
    ):
        self.path = Path(path)
        self.on_error = on_error
        self._dispatch = dispatch or _call_now
        self._clock = clock or utcnow
        self._writer = writer or SnapshotWriter(self.path, on_error=on_error)
        self._workouts: Workouts = ()
        self._subscribers: list[Callable[[Workouts], None]] = []

    # --- observation ---

    @property
    def workouts(self) -> Workouts:
        return self._workouts

    def __len__(self) -> int:
        return len(self._workouts)

    def __iter__(self) -> Iterator[LoggedWorkout]:
        return iter(self._workouts)

    def subscribe(self, callback: Callable[[Workouts], None]) -> Callable[[], None]:
        """Register for change notifications. Returns a function that unsubscribes."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _set(self, workouts: list[LoggedWorkout] | Workouts) -> None:
        self._workouts = tuple(workouts)
        snapshot = self._workouts
        for callback in list(self._subscribers):
            self._dispatch(callback, snapshot)

    # --- operations ---

    def load(self) -> None:
        # Don't read the file out from under a write we queued ourselves
        self._writer.flush()

        if not self.path.exists():
            self._set(())
            return

        try:
            decoded = decode_workouts(self.path.read_bytes())
        except (OSError, ValueError, KeyError, TypeError) as e:
            report(DecodeFailure(self.path, e), self.on_error)
            self._set(())
            return

        logger.debug("Loaded %d logged workouts from %s", len(decoded), self.path)
        self._set(sort_recent_first(decoded))

    def workout(self, workout_id: UUID | str) -> LoggedWorkout | None:
        wanted = as_uuid(workout_id)
        return next((w for w in self._workouts if w.id == wanted), None)

    def upsert(self, workout: LoggedWorkout) -> LoggedWorkout:
        copy = dataclasses.replace(workout, updated_at=self._clock())

        workouts = list(self._workouts)
        index = next((i for i, w in enumerate(workouts) if w.id == workout.id), None)
        if index is None:
            workouts.append(copy)
        else:
            workouts[index] = copy

        self._set(sort_recent_first(workouts))
        self._persist()
        return copy

    def delete(self, workout_id: UUID | str) -> None:
        wanted = as_uuid(workout_id)
        self._set([w for w in self._workouts if w.id != wanted])
        self._persist()

    def clear_all(self) -> None:
        self._set(())
        # the file is gone by the time this returns
        self._writer.discard_and_remove()

    def flush(self, timeout: float | None = None) -> bool:
        return self._writer.flush(timeout)

    def close(self) -> None:
        self._writer.shutdown()

    def _persist(self) -> None:
        self._writer.submit(self._workouts)
