"""Abstract base class for health-data providers.

Polling, authorisation and background delivery belong to the concrete
device integration; the engine only consumes the readings it yields.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import AsyncIterator, Iterable

from resonance.activity.estimator import DEFAULT_STRIDE_LENGTH_M, distance_from_steps
from resonance.models import HealthReading


class HealthDataProvider(ABC):
    """Contract every device integration implements."""

    name: str = "base"

    @abstractmethod
    def stream(self) -> AsyncIterator[HealthReading]:
        """Yield readings as the device delivers them."""

    async def close(self) -> None:
        """Release any resources held by the provider."""


class ReplayProvider(HealthDataProvider):
    """Replay a fixed sequence of readings, optionally spaced by *interval* seconds."""

    name = "replay"

    def __init__(self, readings: Iterable[HealthReading], *, interval: float = 0.0) -> None:
        self._readings = list(readings)
        self._interval = interval

    async def stream(self) -> AsyncIterator[HealthReading]:
        for reading in self._readings:
            if self._interval:
                await asyncio.sleep(self._interval)
            yield reading


class PedometerProvider(HealthDataProvider):
    """Wrap a step-only provider and derive distance from stride length.

    Devices without GPS report cumulative steps; distance is estimated as
    ``steps * stride_length_m`` so the session machine can compute pace.
    """

    name = "pedometer"

    def __init__(
        self,
        source: HealthDataProvider,
        *,
        stride_length_m: float = DEFAULT_STRIDE_LENGTH_M,
    ) -> None:
        self._source = source
        self._stride = stride_length_m

    async def stream(self) -> AsyncIterator[HealthReading]:
        async for reading in self._source.stream():
            if reading.steps is not None and reading.distance is None:
                reading = reading.model_copy(
                    update={"distance": distance_from_steps(reading.steps, self._stride)}
                )
            yield reading

    async def close(self) -> None:
        await self._source.close()
