"""Health-data providers — sources of live readings during a session."""

from resonance.providers.base import HealthDataProvider, PedometerProvider, ReplayProvider

__all__ = ["HealthDataProvider", "PedometerProvider", "ReplayProvider"]
