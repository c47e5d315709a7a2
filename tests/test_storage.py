"""Tests for the persistence gateways."""

from __future__ import annotations

import pytest

from resonance.config import Settings
from resonance.errors import PersistenceError
from resonance.models import ActivityKind, ActivityRecord, MoodSample, MoodTag, Streak
from resonance.mood.ledger import MoodLedger
from resonance.storage.gateway import InMemoryGateway, create_gateway
from resonance.storage.repository import MOOD_SAMPLES_KEY, STREAK_KEY, SqlGateway

from conftest import NOW, at

MEMORY_SQLITE = "sqlite:///:memory:"


@pytest.fixture
def sql_gateway():
    gw = SqlGateway(MEMORY_SQLITE)
    yield gw
    gw.close()


class TestSqlGateway:
    def test_empty_store_defaults(self, sql_gateway):
        assert sql_gateway.load_mood_samples() == []
        assert sql_gateway.load_streak() == Streak()
        assert sql_gateway.load_activity_records() == []

    def test_mood_state_survives_encoding(self, sql_gateway):
        samples = [
            MoodSample(timestamp=at(1), value=6.5, tag=MoodTag.FAMILY, note="dinner"),
            MoodSample(timestamp=at(0), value=3),
        ]
        streak = Streak(current_streak=2, longest_streak=4, last_check_in_date=NOW.date())

        sql_gateway.save_mood_samples(samples)
        sql_gateway.save_streak(streak)

        assert sql_gateway.load_mood_samples() == samples
        assert sql_gateway.load_streak() == streak

    def test_save_replaces_previous_list(self, sql_gateway):
        first = ActivityRecord(timestamp=NOW, kind=ActivityKind.WALK, duration=60)
        second = ActivityRecord(
            timestamp=NOW,
            kind=ActivityKind.CUSTOM,
            custom_label="Climbing",
            duration=1200,
            heart_rate_avg=131.5,
            calories=104.0,
            steps=300,
            mood_before=5,
            mood_after=8,
        )
        sql_gateway.save_activity_records([first])
        sql_gateway.save_activity_records([first, second])
        assert sql_gateway.load_activity_records() == [first, second]

    def test_corrupt_payload_raises_persistence_error(self, sql_gateway):
        sql_gateway._blobs.put(MOOD_SAMPLES_KEY, "{not json")
        with pytest.raises(PersistenceError):
            sql_gateway.load_mood_samples()

    def test_out_of_range_stored_value_raises_persistence_error(self, sql_gateway):
        sql_gateway._blobs.put(
            MOOD_SAMPLES_KEY,
            '[{"id": "a", "timestamp": "2026-03-15T10:00:00Z", "value": 42}]',
        )
        with pytest.raises(PersistenceError):
            sql_gateway.load_mood_samples()

    def test_inconsistent_streak_raises_persistence_error(self, sql_gateway):
        sql_gateway._blobs.put(STREAK_KEY, '{"current_streak": 5, "longest_streak": 1}')
        with pytest.raises(PersistenceError):
            sql_gateway.load_streak()

    def test_ledger_survives_restart(self, tmp_path, aggregator):
        url = f"sqlite:///{tmp_path / 'resonance.db'}"
        gw = SqlGateway(url)
        ledger = MoodLedger(gw, aggregator)
        ledger.record(7, tag="work", timestamp=at(1))
        ledger.record(8, timestamp=at(0))
        gw.close()

        reopened = SqlGateway(url)
        try:
            restored = MoodLedger(reopened, aggregator)
            assert [s.value for s in restored.samples] == [7, 8]
            assert restored.streak.current_streak == 2
        finally:
            reopened.close()


class TestGatewayFactory:
    def test_memory_url(self):
        settings = Settings(_env_file=None, database_url="memory://")
        assert isinstance(create_gateway(settings), InMemoryGateway)

    def test_sqlite_parent_directory_created(self, tmp_path):
        db = tmp_path / "nested" / "dir" / "resonance.db"
        gw = create_gateway(Settings(_env_file=None, database_url=f"sqlite:///{db}"))
        try:
            assert isinstance(gw, SqlGateway)
            assert db.parent.is_dir()
        finally:
            gw.close()


class TestInMemoryGateway:
    def test_load_returns_copies(self):
        gw = InMemoryGateway()
        gw.save_mood_samples([MoodSample(value=5)])
        loaded = gw.load_mood_samples()
        loaded.clear()
        assert len(gw.load_mood_samples()) == 1

    def test_read_failure_surfaces_on_construction(self, aggregator):
        gw = InMemoryGateway()
        gw.fail_reads = True
        with pytest.raises(PersistenceError):
            MoodLedger(gw, aggregator)
