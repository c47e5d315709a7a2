"""Exception taxonomy for the tracking engine.

Every failure is recoverable by the caller.  Validation errors are raised
before any state is touched; :class:`PersistenceError` is raised *after* the
in-memory update has been applied, which stays in place.
"""

from __future__ import annotations

from typing import Any


class TrackingError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(TrackingError):
    """Mood value outside [1, 10] or malformed session parameters.

    Not a :class:`ValueError` subclass, so pydantic validators let it
    propagate unwrapped.
    """


class SessionAlreadyActiveError(TrackingError):
    """``start`` was called while a session is active."""


class NoActiveSessionError(TrackingError):
    """``ingest`` / ``finish`` / ``cancel`` was called while idle."""


class PersistenceError(TrackingError):
    """The backing store failed to load or save.

    ``result`` carries the in-memory object (sample or record) whose
    durable write failed, so callers can still use it.
    """

    def __init__(self, message: str, *, result: Any = None) -> None:
        super().__init__(message)
        self.result = result
