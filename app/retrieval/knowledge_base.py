"""Knowledge-base entries and read-only reader adapters.

Architectural role:
    Defines `KnowledgeEntry` (one curated question/answer pair) and the reader
    interface consumed by `app.retrieval.retriever`. The router never talks to a
    storage backend directly; a reader is injected at construction time.

Reader contract (`KnowledgeBaseReader`):
    - `list_active_entries()` returns a snapshot of active entries only.
    - `find_exact_matches(normalized_text)` returns active entries whose
      normalized question equals `normalized_text`, highest priority first.

    A routing pass takes one `list_active_entries()` snapshot and runs the
    exact lookup over it with `exact_matches`, so both steps see the same data.

Concurrency:
    Readers hand out immutable tuples. `InMemoryKnowledgeBase.replace` swaps the
    whole tuple in one assignment, so a reader call never observes a half-updated
    knowledge base.

Failure handling:
    Backends that cannot be reached or parsed raise `KnowledgeBaseUnavailable`.
    Malformed records are skipped with a warning when loading from JSON.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol


logger = logging.getLogger(__name__)

LANGUAGE_TAGS = ("ar", "en", "both")


class KnowledgeBaseUnavailable(RuntimeError):
    """Raised when a knowledge-base backend cannot be read."""


def normalize_question(text: str) -> str:
    """Collapse internal whitespace, trim and lower-case text for exact matching."""
    if not text:
        return ""
    return " ".join(str(text).split()).lower()


@dataclass(frozen=True)
class KnowledgeEntry:
    """One canned question/answer pair.

    Attributes:
        id: Unique identifier.
        question: Canonical question text.
        answer: Answer returned verbatim on a confident match.
        category: Free-form category label (`appointment`, `client`, ...).
        language: One of `LANGUAGE_TAGS`.
        tags: Ordered free-text tags used for the contextual tag boost.
        priority: Higher sorts first on similarity ties.
        is_active: Inactive entries are never considered for matching.
    """

    id: str
    question: str
    answer: str
    category: str = "general"
    language: str = "en"
    tags: tuple[str, ...] = field(default_factory=tuple)
    priority: int = 0
    is_active: bool = True


def _coerce_tags(raw: Any) -> tuple[str, ...]:
    if not raw:
        return ()
    if isinstance(raw, str):
        return (raw,)
    return tuple(str(tag) for tag in raw)


def entry_from_dict(data: dict[str, Any], fallback_id: str | None = None) -> KnowledgeEntry:
    """Build a `KnowledgeEntry` from a JSON-style record.

    Accepts both `is_active` and the camel-cased `isActive` key.

    Raises:
        ValueError: when question or answer is missing/blank, or the language
            tag is unknown.
    """
    question = str(data.get("question") or "").strip()
    answer = str(data.get("answer") or "").strip()
    if not question or not answer:
        raise ValueError("Question and answer are required")

    language = str(data.get("language") or "en").strip().lower()
    if language not in LANGUAGE_TAGS:
        raise ValueError(f"Unsupported language tag: {language!r}")

    entry_id = data.get("id") or fallback_id
    if not entry_id:
        raise ValueError("Entry id is required")

    is_active = data.get("is_active", data.get("isActive", True))

    return KnowledgeEntry(
        id=str(entry_id),
        question=question,
        answer=answer,
        category=str(data.get("category") or "general"),
        language=language,
        tags=_coerce_tags(data.get("tags")),
        priority=int(data.get("priority") or 0),
        is_active=bool(is_active),
    )


class KnowledgeBaseReader(Protocol):
    """Read-only view of the knowledge base used during one routing pass."""

    def list_active_entries(self) -> tuple[KnowledgeEntry, ...]:
        """Return all active entries."""
        ...

    def find_exact_matches(self, normalized_text: str) -> tuple[KnowledgeEntry, ...]:
        """Return active entries whose normalized question equals the text."""
        ...


def exact_matches(entries: Iterable[KnowledgeEntry], normalized_text: str) -> tuple[KnowledgeEntry, ...]:
    """Return active `entries` whose normalized question equals `normalized_text`, highest priority first."""
    if not normalized_text:
        return ()
    matches = [
        entry for entry in entries
        if entry.is_active and normalize_question(entry.question) == normalized_text
    ]
    matches.sort(key=lambda entry: entry.priority, reverse=True)
    return tuple(matches)


class InMemoryKnowledgeBase:
    """Reader over an in-process tuple of entries.

    Entries are ordered by priority (descending) so that the reader mirrors the
    ordering a database query would apply.
    """

    def __init__(self, entries: Iterable[KnowledgeEntry] = ()):
        self._entries: tuple[KnowledgeEntry, ...] = ()
        self.replace(entries)

    def replace(self, entries: Iterable[KnowledgeEntry]) -> None:
        """Atomically swap the full entry set."""
        ordered = sorted(entries, key=lambda entry: entry.priority, reverse=True)
        self._entries = tuple(ordered)

    def list_active_entries(self) -> tuple[KnowledgeEntry, ...]:
        return tuple(entry for entry in self._entries if entry.is_active)

    def find_exact_matches(self, normalized_text: str) -> tuple[KnowledgeEntry, ...]:
        return exact_matches(self._entries, normalized_text)

    def __len__(self) -> int:
        return len(self._entries)


class JsonKnowledgeBase:
    """Reader backed by a JSON file holding a list of entry records.

    The file is re-read whenever its modification time changes, so an external
    management process can edit it while the bot is running. Each call works on
    the snapshot loaded at that moment.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        self._mtime: float | None = None
        self._cache = InMemoryKnowledgeBase()

    def _load(self) -> InMemoryKnowledgeBase:
        try:
            mtime = os.path.getmtime(self.path)
        except OSError as err:
            raise KnowledgeBaseUnavailable(f"Knowledge base file not readable: {self.path}") from err

        with self._lock:
            if self._mtime == mtime:
                return self._cache

            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    records = json.load(f)
            except (OSError, json.JSONDecodeError) as err:
                raise KnowledgeBaseUnavailable(f"Knowledge base file not parseable: {self.path}") from err

            if not isinstance(records, list):
                raise KnowledgeBaseUnavailable("Knowledge base file must contain a JSON list")

            entries = []
            for index, record in enumerate(records):
                try:
                    entries.append(entry_from_dict(record, fallback_id=f"qa-{index + 1}"))
                except (ValueError, TypeError, AttributeError) as err:
                    logger.warning("Skipping malformed knowledge entry #%d: %s", index, err)

            self._cache.replace(entries)
            self._mtime = mtime
            logger.info("Loaded %d knowledge entries from %s", len(entries), self.path)
            return self._cache

    def list_active_entries(self) -> tuple[KnowledgeEntry, ...]:
        return self._load().list_active_entries()

    def find_exact_matches(self, normalized_text: str) -> tuple[KnowledgeEntry, ...]:
        return self._load().find_exact_matches(normalized_text)
