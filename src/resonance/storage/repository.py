"""SQL-backed persistence gateway on top of the ``blobs`` table."""

from __future__ import annotations

import structlog
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from resonance.errors import InvalidInputError, PersistenceError
from resonance.models import ActivityRecord, MoodSample, Streak
from resonance.storage.database import BlobRow, build_engine, build_session_factory, init_db
from resonance.storage.gateway import PersistenceGateway

logger = structlog.get_logger(__name__)

MOOD_SAMPLES_KEY = "mood_samples"
STREAK_KEY = "mood_streak"
ACTIVITY_RECORDS_KEY = "activity_records"

_samples_adapter = TypeAdapter(list[MoodSample])
_records_adapter = TypeAdapter(list[ActivityRecord])

_DECODE_ERRORS = (ValidationError, InvalidInputError)


class BlobRepository:
    """Get/put of opaque text payloads keyed by name."""

    def __init__(self, url: str) -> None:
        self._engine = build_engine(url)
        self._session_factory = build_session_factory(self._engine)
        init_db(self._engine)

    def get(self, key: str) -> str | None:
        with self._session_factory() as session:
            row = session.get(BlobRow, key)
            return None if row is None else row.payload

    def put(self, key: str, payload: str) -> None:
        with self._session_factory.begin() as session:
            row = session.get(BlobRow, key)
            if row is None:
                session.add(BlobRow(key=key, payload=payload))
            else:
                row.payload = payload

    def dispose(self) -> None:
        self._engine.dispose()


class SqlGateway(PersistenceGateway):
    """Persist record lists as JSON blobs in any SQLAlchemy-supported database."""

    def __init__(self, url: str) -> None:
        try:
            self._blobs = BlobRepository(url)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"cannot open store at {url}: {exc}") from exc

    # ── Internals ─────────────────────────────────────────────

    def _read(self, key: str) -> str | None:
        try:
            return self._blobs.get(key)
        except SQLAlchemyError as exc:
            logger.error("sql_gateway.read_failed", key=key, error=str(exc))
            raise PersistenceError(f"failed to load {key}: {exc}") from exc

    def _write(self, key: str, payload: str) -> None:
        try:
            self._blobs.put(key, payload)
        except SQLAlchemyError as exc:
            logger.error("sql_gateway.write_failed", key=key, error=str(exc))
            raise PersistenceError(f"failed to save {key}: {exc}") from exc

    @staticmethod
    def _corrupt(key: str, exc: Exception) -> PersistenceError:
        logger.error("sql_gateway.decode_failed", key=key, error=str(exc))
        return PersistenceError(f"stored {key} could not be decoded: {exc}")

    # ── Mood ──────────────────────────────────────────────────

    def load_mood_samples(self) -> list[MoodSample]:
        payload = self._read(MOOD_SAMPLES_KEY)
        if payload is None:
            return []
        try:
            return _samples_adapter.validate_json(payload)
        except _DECODE_ERRORS as exc:
            raise self._corrupt(MOOD_SAMPLES_KEY, exc) from exc

    def save_mood_samples(self, samples: list[MoodSample]) -> None:
        self._write(MOOD_SAMPLES_KEY, _samples_adapter.dump_json(samples).decode())

    def load_streak(self) -> Streak:
        payload = self._read(STREAK_KEY)
        if payload is None:
            return Streak()
        try:
            return Streak.model_validate_json(payload)
        except _DECODE_ERRORS as exc:
            raise self._corrupt(STREAK_KEY, exc) from exc

    def save_streak(self, streak: Streak) -> None:
        self._write(STREAK_KEY, streak.model_dump_json())

    # ── Activity ──────────────────────────────────────────────

    def load_activity_records(self) -> list[ActivityRecord]:
        payload = self._read(ACTIVITY_RECORDS_KEY)
        if payload is None:
            return []
        try:
            return _records_adapter.validate_json(payload)
        except _DECODE_ERRORS as exc:
            raise self._corrupt(ACTIVITY_RECORDS_KEY, exc) from exc

    def save_activity_records(self, records: list[ActivityRecord]) -> None:
        self._write(ACTIVITY_RECORDS_KEY, _records_adapter.dump_json(records).decode())

    def close(self) -> None:
        self._blobs.dispose()
