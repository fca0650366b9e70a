import asyncio
import contextlib
import logging
import os
import tempfile
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from workout_log.errors import FileDeleteFailure, WorkoutStoreError, WriteFailure, report
from workout_log.models import LoggedWorkout, encode_workouts

logger = logging.getLogger(__name__)


def write_atomic(path: Path, data: bytes) -> None:
    """
    Write bytes next to `path`, fsync, then swap the temp file into place.
    The result is owner read/write only.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, 0o600)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp)
        raise


class SnapshotWriter:
    """
    Single background writer for full-collection snapshots.

    Callers hand over a snapshot and return immediately. Only the newest
    snapshot that has not been written yet is kept, so writes land on disk
    in the order they were scheduled and superseded ones are skipped.
    """

    def __init__(
        self,
        path: Path,
        *,
        on_error: Callable[[WorkoutStoreError], None] | None = None,
    ):
        self.path = Path(path)
        self.on_error = on_error

        self.loop = asyncio.new_event_loop()
        self._thread: threading.Thread | None = None
        self._wake = asyncio.Event()

        # _lock guards the pending slot and lifecycle flags,
        # _io_lock serializes every touch of the file itself
        self._lock = threading.Lock()
        self._io_lock = threading.Lock()
        self._pending: tuple[LoggedWorkout, ...] | None = None
        self._generation = 0
        self._closing = False
        self._idle = threading.Event()
        self._idle.set()

        self.writes = 0  # completed writes, handy for diagnostics

    # --- lifecycle ---

    def start(self) -> None:
        with self._lock:
            if self._thread is not None or self._closing:
                return
            self._thread = threading.Thread(
                target=self._run, name="workout-log-writer", daemon=True
            )
            self._thread.start()

    def shutdown(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            if self._closing:
                return
            self._closing = True
            thread = self._thread

        if thread is not None:
            self.loop.call_soon_threadsafe(self._wake.set)
            thread.join(timeout=timeout)
        else:
            self.loop.close()

        # Anything submitted after the loop's last pass
        self._drain()

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_until_complete(self._workflow())
        finally:
            self.loop.close()

    async def _workflow(self) -> None:
        while True:
            await self._wake.wait()
            self._wake.clear()
            self._drain()
            if self._closing:
                return

    # --- public API ---

    def submit(self, snapshot: Iterable[LoggedWorkout]) -> None:
        """Queue a snapshot for writing, replacing any not yet written."""
        with self._lock:
            self._pending = tuple(snapshot)
            self._idle.clear()
            inline = self._closing

        if inline:
            # Writer already stopped; nobody else will pick this up
            self._drain()
            return

        self.start()
        self.loop.call_soon_threadsafe(self._wake.set)

    def flush(self, timeout: float | None = None) -> bool:
        """Block until every submitted snapshot has been handled."""
        return self._idle.wait(timeout)

    def discard_and_remove(self) -> bool:
        """
        Drop the queued snapshot and delete the backing file.
        A write already in flight finishes first and cannot resurrect the file.
        """
        with self._lock:
            self._pending = None
            self._generation += 1

        with self._io_lock:
            try:
                if self.path.exists():
                    self.path.unlink()
            except OSError as e:
                report(FileDeleteFailure(self.path, e), self.on_error)
                return False

        with self._lock:
            if self._pending is None:
                self._idle.set()
        logger.debug("Removed %s", self.path)
        return True

    # --- internals ---

    def _drain(self) -> None:
        while True:
            with self._lock:
                snapshot = self._pending
                generation = self._generation
                self._pending = None
                if snapshot is None:
                    self._idle.set()
                    return
            self._write(snapshot, generation)

    def _write(self, snapshot: tuple[LoggedWorkout, ...], generation: int) -> None:
        with self._io_lock:
            if generation != self._generation:
                # Store was cleared after this snapshot was taken
                return
            try:
                write_atomic(self.path, encode_workouts(snapshot))
            except Exception as e:
                report(WriteFailure(self.path, e), self.on_error)
                return
            self.writes += 1
        logger.debug("Persisted %d logged workouts to %s", len(snapshot), self.path)
