"""Persistence gateway contract and the in-memory implementation.

The engine only needs *load list* / *save list* semantics; the encoding is
the gateway's business.  Every implementation raises
:class:`~resonance.errors.PersistenceError` on failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy.engine import make_url

from resonance.errors import PersistenceError
from resonance.models import ActivityRecord, MoodSample, Streak

if TYPE_CHECKING:
    from resonance.config import Settings

MEMORY_URL = "memory://"


class PersistenceGateway(ABC):
    """Contract every storage backend implements."""

    @abstractmethod
    def load_mood_samples(self) -> list[MoodSample]: ...

    @abstractmethod
    def save_mood_samples(self, samples: list[MoodSample]) -> None: ...

    @abstractmethod
    def load_streak(self) -> Streak:
        """Return the stored streak, or a zeroed one if none was saved."""

    @abstractmethod
    def save_streak(self, streak: Streak) -> None: ...

    @abstractmethod
    def load_activity_records(self) -> list[ActivityRecord]: ...

    @abstractmethod
    def save_activity_records(self, records: list[ActivityRecord]) -> None: ...

    def close(self) -> None:
        """Release any resources held by the gateway."""


class InMemoryGateway(PersistenceGateway):
    """Volatile gateway.  ``fail_writes`` / ``fail_reads`` simulate a broken store."""

    def __init__(
        self,
        *,
        samples: list[MoodSample] | None = None,
        streak: Streak | None = None,
        records: list[ActivityRecord] | None = None,
    ) -> None:
        self._samples = list(samples or [])
        self._streak = streak or Streak()
        self._records = list(records or [])
        self.fail_writes = False
        self.fail_reads = False
        self.write_count = 0

    def _check_write(self, what: str) -> None:
        if self.fail_writes:
            raise PersistenceError(f"store unavailable: cannot save {what}")
        self.write_count += 1

    def _check_read(self, what: str) -> None:
        if self.fail_reads:
            raise PersistenceError(f"store unavailable: cannot load {what}")

    def load_mood_samples(self) -> list[MoodSample]:
        self._check_read("mood samples")
        return list(self._samples)

    def save_mood_samples(self, samples: list[MoodSample]) -> None:
        self._check_write("mood samples")
        self._samples = list(samples)

    def load_streak(self) -> Streak:
        self._check_read("streak")
        return self._streak

    def save_streak(self, streak: Streak) -> None:
        self._check_write("streak")
        self._streak = streak

    def load_activity_records(self) -> list[ActivityRecord]:
        self._check_read("activity records")
        return list(self._records)

    def save_activity_records(self, records: list[ActivityRecord]) -> None:
        self._check_write("activity records")
        self._records = list(records)


def create_gateway(settings: Settings) -> PersistenceGateway:
    """Build the gateway selected by ``settings.database_url``.

    * ``memory://`` → :class:`InMemoryGateway`.
    * anything else → :class:`~resonance.storage.repository.SqlGateway`;
      the parent directory of a file-backed SQLite database is created.
    """
    url = settings.database_url
    if url == MEMORY_URL:
        return InMemoryGateway()

    from resonance.storage.repository import SqlGateway

    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return SqlGateway(url)
