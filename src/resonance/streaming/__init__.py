"""Async ingestion of provider readings into the session machine."""

from resonance.streaming.pipeline import IngestPipeline, session_consumer

__all__ = ["IngestPipeline", "session_consumer"]
