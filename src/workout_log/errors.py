"""
Failures the workout log can run into while touching its backing file.

None of these are raised to callers of the store; they are logged and handed
to the store's ``on_error`` observer so the UI (or a test) can inspect them.
A missing file is not an error, it just means an empty log.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)


class WorkoutStoreError(Exception):
    action = "access"

    def __init__(self, path: Path, cause: BaseException | None = None):
        self.path = Path(path)
        self.cause = cause
        detail = f": {type(cause).__name__}: {cause}" if cause is not None else ""
        super().__init__(f"Failed to {self.action} {self.path}{detail}")


class DecodeFailure(WorkoutStoreError):
    action = "load logged workouts from"


class WriteFailure(WorkoutStoreError):
    action = "persist logged workouts to"


class FileDeleteFailure(WorkoutStoreError):
    action = "delete logged workouts store"


def report(error: WorkoutStoreError, on_error: Callable[[WorkoutStoreError], None] | None) -> None:
    """Log a failure and hand it to the observer, if one is attached."""
    logger.warning("%s", error)
    if on_error is None:
        return
    try:
        on_error(error)
    except Exception:
        logger.exception("on_error observer raised while handling %s", type(error).__name__)
