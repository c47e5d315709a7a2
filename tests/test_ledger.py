"""Tests for the mood ledger."""

from __future__ import annotations

from datetime import timedelta

import pytest

from resonance.errors import InvalidInputError, PersistenceError
from resonance.events import SampleAdded
from resonance.models import MoodSample, MoodTag, Streak
from resonance.mood.ledger import MoodLedger
from resonance.temporal import NO_DATA

from conftest import NOW, at


class TestAddSample:
    @pytest.mark.parametrize("value", [1, 2, 3, 4, 5, 6, 7, 8, 9, 10])
    def test_average_of_single_sample_is_its_value(self, ledger, value):
        ledger.add_sample(MoodSample(timestamp=at(0, hour=9), value=value))
        assert ledger.average_mood(1) == value

    @pytest.mark.parametrize("value", [0, 0.99, 10.01, -3, float("nan"), "high", None])
    def test_out_of_range_value_rejected_at_construction(self, value):
        with pytest.raises(InvalidInputError):
            MoodSample(value=value)

    def test_unvalidated_sample_rejected_without_mutation(self, ledger, gateway):
        bogus = MoodSample.model_construct(value=11.0, timestamp=NOW, tag=None, note=None, id="x")
        with pytest.raises(InvalidInputError):
            ledger.add_sample(bogus)
        assert ledger.samples == []
        assert ledger.streak == Streak()
        assert gateway.write_count == 0

    def test_mapping_is_accepted(self, ledger):
        sample = ledger.add_sample({"value": 7, "timestamp": NOW, "tag": "work"})
        assert sample.tag is MoodTag.WORK
        assert len(ledger) == 1

    def test_mapping_with_invalid_value(self, ledger):
        with pytest.raises(InvalidInputError):
            ledger.add_sample({"value": 42})
        assert len(ledger) == 0

    @pytest.mark.parametrize(
        "payload",
        [
            {"value": 5, "tag": "bogus"},
            {"tag": "work"},
            {"value": 5, "timestamp": "not a date"},
        ],
        ids=["unknown-tag", "missing-value", "bad-timestamp"],
    )
    def test_malformed_mapping_rejected(self, ledger, gateway, payload):
        with pytest.raises(InvalidInputError):
            ledger.add_sample(payload)
        assert len(ledger) == 0
        assert gateway.write_count == 0

    def test_record_builds_sample(self, ledger):
        sample = ledger.record(6.5, tag="Sleep", note="restless night", timestamp=at(1))
        assert sample.tag is MoodTag.SLEEP
        assert sample.note == "restless night"
        assert ledger.samples == [sample]

    def test_record_rejects_unknown_tag(self, ledger):
        with pytest.raises(InvalidInputError):
            ledger.record(5, tag="weather")
        assert len(ledger) == 0

    def test_persists_samples_and_streak(self, ledger, gateway):
        sample = ledger.record(7, timestamp=at(0))
        assert gateway.load_mood_samples() == [sample]
        assert gateway.load_streak().current_streak == 1

    def test_publishes_sample_added(self, ledger, received):
        sample = ledger.record(8, timestamp=at(0))
        assert len(received) == 1
        event = received[0]
        assert isinstance(event, SampleAdded)
        assert event.sample == sample
        assert event.streak.current_streak == 1

    def test_persistence_failure_keeps_in_memory_update(self, ledger, gateway):
        gateway.fail_writes = True
        with pytest.raises(PersistenceError) as excinfo:
            ledger.record(4, timestamp=at(0))
        kept = excinfo.value.result
        assert isinstance(kept, MoodSample)
        assert ledger.samples == [kept]
        assert ledger.streak.current_streak == 1

    def test_state_reloaded_from_gateway(self, ledger, gateway, aggregator):
        ledger.record(5, timestamp=at(1))
        ledger.record(6, timestamp=at(0))
        reopened = MoodLedger(gateway, aggregator)
        assert len(reopened) == 2
        assert reopened.streak.current_streak == 2


class TestStreakThroughLedger:
    def test_consecutive_same_day_and_gap(self, ledger):
        for days_ago in (5, 4, 3):
            ledger.record(6, timestamp=at(days_ago))
        assert (ledger.streak.current_streak, ledger.streak.longest_streak) == (3, 3)

        ledger.record(7, timestamp=at(3, hour=18))
        ledger.record(7, timestamp=at(3, hour=20))
        assert (ledger.streak.current_streak, ledger.streak.longest_streak) == (3, 3)

        ledger.record(8, timestamp=at(0))
        assert ledger.streak.current_streak == 1
        assert ledger.streak.longest_streak == 3

    def test_out_of_order_sample_leaves_streak(self, ledger):
        ledger.record(6, timestamp=at(1))
        ledger.record(6, timestamp=at(0))
        before = ledger.streak
        ledger.record(3, timestamp=at(4))
        assert ledger.streak == before
        assert len(ledger) == 3


class TestQueries:
    def test_recent_samples_newest_first(self, ledger):
        ledger.record(5, timestamp=at(2))
        ledger.record(6, timestamp=at(0, hour=8))
        ledger.record(7, timestamp=at(9))
        assert [s.value for s in ledger.recent_samples(7)] == [6, 5]

    def test_average_defaults_to_neutral(self, ledger):
        ledger.record(9, timestamp=NOW - timedelta(days=10))
        assert ledger.average_mood(7) == 5.0

    def test_average_over_window(self, ledger):
        for value, days_ago in ((4, 1), (6, 2), (8, 3)):
            ledger.record(value, timestamp=at(days_ago))
        assert ledger.average_mood(7) == pytest.approx(6.0)

    def test_trend_has_one_entry_per_day(self, ledger):
        ledger.record(4, timestamp=at(6))
        ledger.record(8, timestamp=at(0, hour=9))
        ledger.record(6, timestamp=at(0, hour=11))
        trend = ledger.mood_trend(7)
        assert len(trend) == 7
        assert trend[0] == 4.0
        assert trend[-1] == 7.0
        assert trend[1:-1] == [NO_DATA] * 5

    def test_tag_counts(self, ledger):
        ledger.record(5, tag=MoodTag.WORK, timestamp=at(1))
        ledger.record(5, tag=MoodTag.WORK, timestamp=at(2))
        ledger.record(5, tag=MoodTag.FAMILY, timestamp=at(2))
        ledger.record(5, timestamp=at(3))
        assert ledger.tag_counts() == {MoodTag.WORK: 2, MoodTag.FAMILY: 1}
