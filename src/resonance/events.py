"""Domain events and the in-process event bus.

Architecture
~~~~~~~~~~~~
* **DomainEvent** — base model; one subclass per state transition.
* **EventBus** — synchronous fan-out to subscribers with error isolation.
* **PublishResult** — per-publish outcome, mirroring which handlers ran.

State transitions in the ledger and the session machine are applied first
and published afterwards, so a failing observer (UI refresh, haptics) can
never corrupt engine state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from resonance.models import ActivityKind, ActivityRecord, MoodSample, Streak

logger = structlog.get_logger(__name__)


# ── Events ────────────────────────────────────────────────────


class DomainEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> str:
        return type(self).__name__


class SampleAdded(DomainEvent):
    sample: MoodSample
    streak: Streak


class SessionStarted(DomainEvent):
    kind: ActivityKind
    custom_label: str | None = None
    started_at: datetime


class SessionFinished(DomainEvent):
    record: ActivityRecord


class SessionCancelled(DomainEvent):
    kind: ActivityKind
    started_at: datetime
    ingested: int = 0  # number of readings discarded


Handler = Callable[[DomainEvent], None]


# ── Publish result ────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Outcome summary for a single ``publish()`` call."""

    event_id: str
    delivered: int = 0
    failed: list[str] = field(default_factory=list)

    @property
    def all_ok(self) -> bool:
        return len(self.failed) == 0


# ── Bus ───────────────────────────────────────────────────────


class EventBus:
    """Fan-out domain events to subscribers.

    Each handler is invoked independently — an exception in one is logged
    and recorded, and the remaining handlers still run.
    """

    def __init__(self) -> None:
        self._subscriptions: list[tuple[type[DomainEvent], Handler]] = []

    def subscribe(
        self,
        handler: Handler,
        event_type: type[DomainEvent] = DomainEvent,
    ) -> None:
        """Register *handler* for *event_type* (and its subclasses)."""
        self._subscriptions.append((event_type, handler))

    def unsubscribe(self, handler: Handler) -> bool:
        """Remove every subscription of *handler*. Return ``True`` if found."""
        before = len(self._subscriptions)
        self._subscriptions = [(t, h) for t, h in self._subscriptions if h != handler]
        return len(self._subscriptions) < before

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, event: DomainEvent) -> PublishResult:
        delivered = 0
        failed: list[str] = []
        for event_type, handler in list(self._subscriptions):
            if not isinstance(event, event_type):
                continue
            try:
                handler(event)
                delivered += 1
            except Exception:
                name = getattr(handler, "__qualname__", repr(handler))
                logger.exception("event_bus.handler_error", handler=name, event_name=event.name)
                failed.append(name)

        result = PublishResult(event_id=event.id, delivered=delivered, failed=failed)
        if result.failed:
            logger.warning("event_bus.partial_failure", event_name=event.name, failed=result.failed)
        return result
