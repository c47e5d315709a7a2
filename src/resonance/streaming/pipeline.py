"""Async ingestion pipeline connecting providers → session machine.

Readings are queued and handed to consumers one at a time, which
serialises ``ingest`` calls for the active session.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

from resonance.activity.machine import ActivitySessionMachine
from resonance.errors import NoActiveSessionError
from resonance.models import HealthReading
from resonance.providers.base import HealthDataProvider

logger = structlog.get_logger(__name__)

Consumer = Callable[[HealthReading], Awaitable[None]]


def session_consumer(machine: ActivitySessionMachine) -> Consumer:
    """Adapt *machine* as a pipeline consumer.

    Readings that arrive while no session is active are dropped.
    """

    async def consume(reading: HealthReading) -> None:
        try:
            machine.ingest_reading(reading)
        except NoActiveSessionError:
            logger.debug("ingest_pipeline.reading_dropped", reason="no_active_session")

    consume.__qualname__ = "session_consumer"
    return consume


class IngestPipeline:
    """In-process async queue that forwards readings to registered consumers."""

    def __init__(self, maxsize: int = 1_000) -> None:
        self._queue: asyncio.Queue[HealthReading] = asyncio.Queue(maxsize=maxsize)
        self._consumers: list[Consumer] = []
        self._running = False
        self.processed_total = 0
        self.failed_total = 0

    # ── Configuration ─────────────────────────────────────────

    def add_consumer(self, fn: Consumer) -> None:
        """Register an async callback that receives every reading."""
        self._consumers.append(fn)

    # ── Producer side ─────────────────────────────────────────

    async def publish(self, reading: HealthReading) -> None:
        await self._queue.put(reading)

    async def pump(self, provider: HealthDataProvider) -> int:
        """Forward every reading of *provider* into the queue; return the count."""
        count = 0
        try:
            async for reading in provider.stream():
                await self._queue.put(reading)
                count += 1
        finally:
            await provider.close()
        logger.info("ingest_pipeline.provider_drained", provider=provider.name, readings=count)
        return count

    # ── Consumer loop ─────────────────────────────────────────

    async def _dispatch(self, reading: HealthReading) -> None:
        for consumer in self._consumers:
            try:
                await consumer(reading)
            except Exception as exc:
                self.failed_total += 1
                logger.error(
                    "ingest_pipeline.consumer_error",
                    consumer=consumer.__qualname__,
                    error=str(exc),
                )
        self.processed_total += 1

    async def start(self) -> None:
        """Run the consumer loop until :meth:`stop` (run as a background task)."""
        self._running = True
        logger.info("ingest_pipeline.started", consumers=len(self._consumers))
        while self._running:
            try:
                reading = await asyncio.wait_for(self._queue.get(), timeout=0.1)
            except asyncio.TimeoutError:
                continue
            try:
                await self._dispatch(reading)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Process everything currently queued without a background loop."""
        while not self._queue.empty():
            reading = self._queue.get_nowait()
            try:
                await self._dispatch(reading)
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued reading has been processed."""
        await self._queue.join()

    async def stop(self) -> None:
        self._running = False
        logger.info("ingest_pipeline.stopped", processed_total=self.processed_total)

    @property
    def pending(self) -> int:
        return self._queue.qsize()
