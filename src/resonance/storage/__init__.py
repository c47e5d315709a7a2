"""Persistence gateway — load/save of ledger and activity records."""

from resonance.storage.gateway import InMemoryGateway, PersistenceGateway, create_gateway

__all__ = ["InMemoryGateway", "PersistenceGateway", "create_gateway"]
