"""Tests for the structlog configuration."""

from __future__ import annotations

import json

import structlog

from resonance.logger import setup_logging


def test_json_lines_filtered_by_level(capsys):
    setup_logging("warning", json=True)
    try:
        log = structlog.get_logger("resonance.test")
        log.info("mood_ledger.sample_added", value=6)
        log.warning("event_bus.partial_failure", event_name="SampleAdded")
    finally:
        setup_logging("DEBUG")

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert payload["event"] == "event_bus.partial_failure"
    assert payload["event_name"] == "SampleAdded"
    assert payload["level"] == "warning"
