"""Response routing for inbound WhatsApp text messages.

Architectural role:
    Provides `ResponseRouter.route`, the single entry point used by adapters
    (CLI, HTTP, message-handling layer) to turn one inbound message into one
    `RoutingDecision`.

Control-flow model:
    1. Detect language.
    2. Retrieve candidates (`app.retrieval.retriever.find_relevant_entries`):
       exact lookup first, otherwise contextual fuzzy scoring against every
       active entry, floor filter (> 20), sort, top-N.
    3. Evaluate the strategy chain from `app.core.fallbacks` in order:

       | Condition                                   | Source                                       |
       |---------------------------------------------|----------------------------------------------|
       | exact match exists                          | exact-knowledge-match                        |
       | best score >= 90                            | high-similarity-knowledge-match              |
       | 50 <= best < 90, generative succeeds        | generative-fallback-with-hint                |
       | best < 50 or none, generative succeeds      | generative-fallback                          |
       | generative fails, candidate exists          | knowledge-fallback-after-generative-failure  |
       | generative fails, no candidate              | static-default                               |

Interaction surface:
    - Knowledge base: any `KnowledgeBaseReader`, injected.
    - Generative fallback: any object with `async generate(message, language,
      caller_id)`, injected.
    - Language detection and scoring functions, injectable for tests.

Error handling strategy:
    Knowledge-base and generative failures degrade to the next step of the
    chain. The router always returns a non-empty response.

Concurrency:
    No state is shared between `route` calls. Each pass reads the knowledge
    base snapshot at its start and keeps it for the rest of the pass.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable

from app.core.fallbacks import GenerativeFallback, StaticDefaultStrategy, default_strategies
from app.core.routing_types import (
    AttemptFailed,
    Resolved,
    RetrievalOutcome,
    RoutingContext,
    RoutingDecision,
)
from app.nlp.language_detector import ENGLISH, detect
from app.nlp.similarity import score_with_context
from app.retrieval.knowledge_base import KnowledgeBaseReader
from app.retrieval.retriever import DEFAULT_LIMIT, DEFAULT_SCORE_FLOOR, Scorer, find_relevant_entries


logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_THRESHOLD = 90.0
HINT_THRESHOLD = 50.0
DEFAULT_GENERATION_TIMEOUT = 8.0


@dataclass(frozen=True)
class RouterConfig:
    """Threshold policy and limits for one router instance."""

    high_confidence_threshold: float = HIGH_CONFIDENCE_THRESHOLD
    hint_threshold: float = HINT_THRESHOLD
    score_floor: float = DEFAULT_SCORE_FLOOR
    top_n: int = DEFAULT_LIMIT
    generation_timeout: float = DEFAULT_GENERATION_TIMEOUT

    @classmethod
    def from_env(cls) -> "RouterConfig":
        """Build a config from `ROUTER_*` environment variables."""
        return cls(
            high_confidence_threshold=float(os.getenv("ROUTER_HIGH_CONFIDENCE", HIGH_CONFIDENCE_THRESHOLD)),
            hint_threshold=float(os.getenv("ROUTER_HINT_THRESHOLD", HINT_THRESHOLD)),
            score_floor=float(os.getenv("ROUTER_SCORE_FLOOR", DEFAULT_SCORE_FLOOR)),
            top_n=int(os.getenv("ROUTER_TOP_N", DEFAULT_LIMIT)),
            generation_timeout=float(os.getenv("ROUTER_GENERATION_TIMEOUT", DEFAULT_GENERATION_TIMEOUT)),
        )


class ResponseRouter:
    """Choose between knowledge-base answers and generative fallbacks.

    Args:
        knowledge_base: Reader providing active entries and exact matches.
        generator: Generative fallback; `None` disables the generative step.
        config: Threshold policy; defaults to `RouterConfig()`.
        detect_language: `text -> language tag` function.
        scorer: Contextual similarity function used for fuzzy candidates.
        strategies: Override of the strategy chain (defaults to policy order).
    """

    def __init__(
        self,
        knowledge_base: KnowledgeBaseReader,
        generator: GenerativeFallback | None = None,
        config: RouterConfig | None = None,
        detect_language: Callable[[str], str] = detect,
        scorer: Scorer = score_with_context,
        strategies: list | None = None,
    ):
        self.knowledge_base = knowledge_base
        self.generator = generator
        self.config = config or RouterConfig()
        self.detect_language = detect_language
        self.scorer = scorer
        self.strategies = strategies if strategies is not None else default_strategies(
            generator,
            high_threshold=self.config.high_confidence_threshold,
            hint_threshold=self.config.hint_threshold,
            timeout=self.config.generation_timeout,
        )

    def _detect(self, message: str) -> str:
        try:
            return self.detect_language(message) or ENGLISH
        except Exception:
            logger.exception("Language detection failed; defaulting to English")
            return ENGLISH

    def retrieve(self, message: str) -> RetrievalOutcome:
        """Run exact lookup and fuzzy scoring for one message."""
        try:
            return find_relevant_entries(
                message,
                self.knowledge_base,
                limit=self.config.top_n,
                scorer=self.scorer,
                score_floor=self.config.score_floor,
            )
        except Exception:
            logger.exception("Candidate retrieval failed; routing without candidates")
            return RetrievalOutcome()

    async def route(self, user_message: str, caller_id: str | None = None) -> RoutingDecision:
        """Return the routing decision for one inbound message.

        Never raises for knowledge-base or generative failures and never
        returns empty response text.
        """
        message = user_message or ""
        language = self._detect(message)
        retrieval = self.retrieve(message)

        context = RoutingContext(
            message=message,
            language=language,
            retrieval=retrieval,
            caller_id=caller_id,
        )

        for strategy in self.strategies:
            result = await strategy.attempt(context)

            if isinstance(result, Resolved):
                decision = result.decision
                logger.info(
                    "Response generated from %s (best=%s, caller=%s)",
                    decision.source.value,
                    f"{decision.best_score:.1f}%" if decision.best_score is not None else "none",
                    caller_id,
                )
                return decision

            if isinstance(result, AttemptFailed):
                logger.debug("Strategy %s skipped: %s", getattr(strategy, "name", strategy), result.reason)

        logger.warning("Strategy chain exhausted; using static default")
        final = await StaticDefaultStrategy().attempt(context)
        return final.decision
