"""Mood ledger — samples, streak, trend and insight generation."""

from resonance.mood.insights import Insight, InsightKind, generate_insight
from resonance.mood.ledger import MoodLedger
from resonance.mood.streak import update_streak

__all__ = ["Insight", "InsightKind", "MoodLedger", "generate_insight", "update_streak"]
