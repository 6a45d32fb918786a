"""Knowledge-base candidate retrieval for the response router.

Retrieval model:
    The reader is read once per pass (`list_active_entries`); both steps below
    work on that snapshot, so a concurrent knowledge-base refresh cannot split
    one pass across two versions.

    1. Exact lookup: normalized question equality over the snapshot.
       Every exact match gets similarity 100 and ordering is by priority only.
    2. Otherwise every active entry is scored with
       `app.nlp.similarity.score_with_context`. Entries at or below the score
       floor are dropped, the rest are sorted by (similarity, priority)
       descending and capped at `limit`.

Scoring formula:
    Delegated to `app.nlp.similarity`. This module only filters and ranks.

Failure handling:
    - Reader failures (backend unreachable, unexpected errors) are logged and
      produce an empty outcome so routing continues with zero candidates.
    - A single entry that cannot be scored is skipped; the rest are kept.

Determinism:
    Deterministic for a fixed reader snapshot and scorer.
"""

import logging
from typing import Callable, Iterable

from app.core.routing_types import RetrievalOutcome, ScoredCandidate
from app.nlp.similarity import MAX_SCORE, score_with_context
from app.retrieval.knowledge_base import (
    KnowledgeBaseReader,
    KnowledgeEntry,
    exact_matches,
    normalize_question,
)


logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
DEFAULT_SCORE_FLOOR = 20.0

Scorer = Callable[[str, str, str, Iterable[str]], float]


def rank_candidates(candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    """Sort candidates by similarity, then priority, both descending."""
    return sorted(
        candidates,
        key=lambda candidate: (candidate.similarity, candidate.priority),
        reverse=True,
    )


def find_exact_candidates(message: str, entries: Iterable[KnowledgeEntry]) -> list[ScoredCandidate]:
    """Return exact question matches as 100-similarity candidates, by priority."""
    matches = exact_matches(entries, normalize_question(message))
    return [ScoredCandidate(entry=entry, similarity=MAX_SCORE) for entry in matches]


def score_entries(
    message: str,
    entries: Iterable[KnowledgeEntry],
    scorer: Scorer = score_with_context,
    score_floor: float = DEFAULT_SCORE_FLOOR,
) -> list[ScoredCandidate]:
    """Score every active entry and keep those strictly above `score_floor`.

    Edge cases:
        - Inactive entries are ignored even if the reader returns them.
        - Entries raising during scoring or yielding a non-finite/out-of-range
          score are skipped with a warning.
    """
    scored = []

    for entry in entries:
        if not entry.is_active:
            continue

        try:
            similarity = float(scorer(message, entry.question, entry.answer, entry.tags))
        except Exception:
            logger.warning("Skipping knowledge entry %r: scoring failed", entry.id, exc_info=True)
            continue

        if not 0.0 <= similarity <= MAX_SCORE:
            logger.warning("Skipping knowledge entry %r: score %r out of range", entry.id, similarity)
            continue

        if similarity > score_floor:
            scored.append(ScoredCandidate(entry=entry, similarity=similarity))

    return scored


def find_relevant_entries(
    message: str,
    reader: KnowledgeBaseReader,
    limit: int = DEFAULT_LIMIT,
    scorer: Scorer = score_with_context,
    score_floor: float = DEFAULT_SCORE_FLOOR,
) -> RetrievalOutcome:
    """Build the ranked candidate list for one inbound message.

    Args:
        message: Raw inbound message.
        reader: Knowledge-base reader providing the snapshot for this pass.
        limit: Maximum number of candidates returned.
        scorer: Contextual similarity function (injectable for tests).
        score_floor: Candidates must score strictly above this value.

    Returns:
        `RetrievalOutcome` with `exact_match=True` when the exact lookup hit.
    """
    if not message or not message.strip():
        return RetrievalOutcome()

    try:
        entries = tuple(reader.list_active_entries())
    except Exception:
        logger.exception("Knowledge base unavailable; routing without candidates")
        return RetrievalOutcome()

    if not entries:
        logger.warning("No active knowledge entries available")
        return RetrievalOutcome()

    exact = find_exact_candidates(message, entries)
    if exact:
        logger.info("Exact knowledge match found: %r", exact[0].question)
        return RetrievalOutcome(candidates=tuple(exact[:limit]), exact_match=True)

    ranked = rank_candidates(score_entries(message, entries, scorer, score_floor))[:limit]

    if ranked:
        logger.info(
            "Found %d relevant knowledge entries. Best match: %.1f%%",
            len(ranked),
            ranked[0].similarity,
        )
    else:
        logger.info("No knowledge entries above the %.0f%% floor", score_floor)

    return RetrievalOutcome(candidates=tuple(ranked))
