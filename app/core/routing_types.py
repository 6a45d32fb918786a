"""Routing data contracts for `app.core.engine`.

Architectural role:
    Defines the ephemeral candidate type produced by `app.retrieval.retriever`,
    the per-message routing context handed to fallback strategies, the uniform
    attempt result returned by each strategy, and the final `RoutingDecision`.

Control-flow interaction:
    `ResponseRouter.route` evaluates strategies in a fixed order. Each strategy
    returns either `Resolved(decision)` or `AttemptFailed(reason)`; the first
    `Resolved` ends the pass.

Determinism:
    The data classes are purely structural and state-free.
"""

from dataclasses import dataclass, field
from enum import Enum

from app.retrieval.knowledge_base import KnowledgeEntry


class ResponseSource(str, Enum):
    """Provenance tag describing which decision path produced a response."""

    EXACT_KNOWLEDGE_MATCH = "exact-knowledge-match"
    HIGH_SIMILARITY_KNOWLEDGE_MATCH = "high-similarity-knowledge-match"
    GENERATIVE_FALLBACK = "generative-fallback"
    GENERATIVE_FALLBACK_WITH_HINT = "generative-fallback-with-hint"
    KNOWLEDGE_FALLBACK_AFTER_GENERATIVE_FAILURE = "knowledge-fallback-after-generative-failure"
    STATIC_DEFAULT = "static-default"


@dataclass(frozen=True)
class ScoredCandidate:
    """A knowledge entry paired with its similarity to one inbound message."""

    entry: KnowledgeEntry
    similarity: float

    @property
    def question(self) -> str:
        return self.entry.question

    @property
    def answer(self) -> str:
        return self.entry.answer

    @property
    def priority(self) -> int:
        return self.entry.priority


@dataclass(frozen=True)
class RetrievalOutcome:
    """Ranked candidates for one message.

    Attributes:
        candidates: Sorted by similarity, then priority, both descending.
        exact_match: `True` when candidates come from the exact-match lookup.
    """

    candidates: tuple[ScoredCandidate, ...] = ()
    exact_match: bool = False

    @property
    def best(self) -> ScoredCandidate | None:
        return self.candidates[0] if self.candidates else None


@dataclass(frozen=True)
class RoutingContext:
    """Per-message inputs shared by every fallback strategy."""

    message: str
    language: str
    retrieval: RetrievalOutcome = field(default_factory=RetrievalOutcome)
    caller_id: str | None = None

    @property
    def best(self) -> ScoredCandidate | None:
        return self.retrieval.best


@dataclass(frozen=True)
class RoutingDecision:
    """Final output of one routing pass.

    Attributes:
        response: Non-empty text to send back to the user.
        source: Provenance tag for observability.
        language: Detected message language.
        best_score: Similarity of the top candidate, if any.
        matched_question: Question text of the top candidate, if any.
        confidence: Generative confidence when the generative path answered.
    """

    response: str
    source: ResponseSource
    language: str = "en"
    best_score: float | None = None
    matched_question: str | None = None
    confidence: float | None = None


@dataclass(frozen=True)
class Resolved:
    """Strategy succeeded and produced a decision."""

    decision: RoutingDecision


@dataclass(frozen=True)
class AttemptFailed:
    """Strategy did not apply or could not produce a response."""

    reason: str


AttemptResult = Resolved | AttemptFailed
