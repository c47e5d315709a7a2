"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from resonance.activity.machine import ActivitySessionMachine
from resonance.config import Settings
from resonance.events import DomainEvent, EventBus
from resonance.logger import setup_logging
from resonance.mood.ledger import MoodLedger
from resonance.service import TrackingService
from resonance.storage.gateway import InMemoryGateway
from resonance.temporal import TemporalAggregator

# Sunday 15 March 2026, 14:00 UTC
NOW = datetime(2026, 3, 15, 14, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


def at(days_ago: int, hour: int = 14, minute: int = 0) -> datetime:
    """A UTC timestamp *days_ago* days before :data:`NOW` at *hour*:*minute*."""
    day = NOW - timedelta(days=days_ago)
    return day.replace(hour=hour, minute=minute)


@pytest.fixture(scope="session", autouse=True)
def _logging() -> None:
    setup_logging("DEBUG")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def received(bus: EventBus) -> list[DomainEvent]:
    events: list[DomainEvent] = []
    bus.subscribe(events.append)
    return events


@pytest.fixture
def aggregator(clock: FakeClock) -> TemporalAggregator:
    return TemporalAggregator(timezone.utc, clock)


@pytest.fixture
def ledger(gateway: InMemoryGateway, aggregator: TemporalAggregator, bus: EventBus) -> MoodLedger:
    return MoodLedger(gateway, aggregator, bus)


@pytest.fixture
def machine(
    gateway: InMemoryGateway,
    aggregator: TemporalAggregator,
    bus: EventBus,
) -> ActivitySessionMachine:
    return ActivitySessionMachine(gateway, bus, aggregator=aggregator)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, database_url="memory://", timezone="UTC")


@pytest.fixture
def service(settings: Settings, gateway: InMemoryGateway, clock: FakeClock) -> TrackingService:
    return TrackingService(gateway, settings=settings, clock=clock)
