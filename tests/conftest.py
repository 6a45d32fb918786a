"""
Shared fixtures and deterministic fakes for router tests.
"""

import asyncio
from dataclasses import dataclass

import pytest

from app.retrieval.knowledge_base import (
    InMemoryKnowledgeBase,
    KnowledgeBaseUnavailable,
    KnowledgeEntry,
    exact_matches,
)


@dataclass
class FakeResult:
    text: str
    confidence: float = 0.9


class FakeGenerator:
    """Generative fallback returning a fixed text and recording calls."""

    def __init__(self, text="Generated answer.", delay=0.0, error=None):
        self.text = text
        self.delay = delay
        self.error = error
        self.calls = []

    async def generate(self, message, language, caller_id=None):
        self.calls.append((message, language, caller_id))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return FakeResult(self.text)


class BrokenKnowledgeBase:
    """Reader whose backend is always unreachable."""

    def list_active_entries(self):
        raise KnowledgeBaseUnavailable("database down")

    def find_exact_matches(self, normalized_text):
        raise KnowledgeBaseUnavailable("database down")


class ChangingKnowledgeBase:
    """Reader whose data changes between reads; counts every read."""

    def __init__(self, *snapshots):
        self.snapshots = [list(snapshot) for snapshot in snapshots]
        self.reads = 0

    def _next(self):
        snapshot = self.snapshots[min(self.reads, len(self.snapshots) - 1)]
        self.reads += 1
        return snapshot

    def list_active_entries(self):
        return [entry for entry in self._next() if entry.is_active]

    def find_exact_matches(self, normalized_text):
        return exact_matches(self._next(), normalized_text)


def make_entry(entry_id, question, answer=None, tags=(), priority=0, is_active=True, language="en"):
    return KnowledgeEntry(
        id=entry_id,
        question=question,
        answer=answer or f"Answer for {entry_id}",
        tags=tuple(tags),
        priority=priority,
        is_active=is_active,
        language=language,
    )


def fixed_scorer(scores):
    """Scorer returning contrived scores keyed by question text (0 if absent)."""

    def scorer(message, question, answer, tags=()):
        return scores.get(question, 0.0)

    return scorer


@pytest.fixture
def real_estate_kb():
    return InMemoryKnowledgeBase([
        make_entry(
            "appointment",
            "How do I schedule an appointment?",
            "To schedule an appointment, go to the Appointments section in your dashboard and click 'New Appointment'.",
            tags=["appointment", "scheduling", "calendar"],
            priority=10,
        ),
        make_entry(
            "client-add",
            "How do I add a new client?",
            "You can add a new client by going to the Clients section and clicking 'Add Client'.",
            tags=["client", "add", "contact"],
            priority=8,
        ),
        make_entry(
            "property-types",
            "What property types do you handle?",
            "We handle residential homes, apartments, commercial buildings, land plots and investment properties.",
            tags=["property", "types", "real estate"],
            priority=9,
        ),
        make_entry(
            "appointment-ar",
            "كيف أجدول موعد؟",
            "لجدولة موعد، اذهب إلى قسم المواعيد في لوحة التحكم.",
            tags=["موعد", "جدولة"],
            priority=10,
            language="ar",
        ),
    ])
