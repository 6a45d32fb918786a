"""Ordered routing strategies evaluated by `ResponseRouter`.

Each strategy exposes `async attempt(context) -> AttemptResult` and never
raises for content or collaborator failures: it returns `Resolved(decision)`
when it can answer and `AttemptFailed(reason)` otherwise. The router walks the
list in order and stops at the first `Resolved`.

Default order (see `default_strategies`):
    1. `ExactMatchStrategy`         -> exact-knowledge-match
    2. `HighConfidenceStrategy`     -> high-similarity-knowledge-match (>= 90)
    3. `GenerativeStrategy`         -> generative-fallback[-with-hint]
    4. `KnowledgeFallbackStrategy`  -> knowledge-fallback-after-generative-failure
    5. `StaticDefaultStrategy`      -> static-default (always resolves)

Cancellation:
    Cancellation of the generative sub-call alone is a failure of that step.
    Cancellation of the task running the router is re-raised so the caller can
    abandon the pass.
"""

import asyncio
import logging
from typing import Protocol

from app.core.routing_types import (
    AttemptFailed,
    AttemptResult,
    Resolved,
    ResponseSource,
    RoutingContext,
    RoutingDecision,
)
from app.prompting.canned_responses import build_default_response
from app.prompting.prompt_builder import build_related_topic_hint


logger = logging.getLogger(__name__)


class GenerativeFallback(Protocol):
    """Minimal async interface of the generative collaborator.

    `generate` returns an object with `text` and `confidence` attributes, or
    raises on failure.
    """

    async def generate(self, message: str, language: str, caller_id: str | None = None):
        ...


class RoutingStrategy(Protocol):
    name: str

    async def attempt(self, context: RoutingContext) -> AttemptResult:
        ...


def _decision(context: RoutingContext, response: str, source: ResponseSource, confidence: float | None = None) -> RoutingDecision:
    best = context.best
    return RoutingDecision(
        response=response,
        source=source,
        language=context.language,
        best_score=best.similarity if best else None,
        matched_question=best.question if best else None,
        confidence=confidence,
    )


class ExactMatchStrategy:
    name = "exact_match"

    async def attempt(self, context: RoutingContext) -> AttemptResult:
        best = context.best
        if not context.retrieval.exact_match or best is None:
            return AttemptFailed("no exact match")
        if not best.answer.strip():
            return AttemptFailed("exact match has empty answer")
        return Resolved(_decision(context, best.answer, ResponseSource.EXACT_KNOWLEDGE_MATCH))


class HighConfidenceStrategy:
    name = "high_confidence"

    def __init__(self, threshold: float):
        self.threshold = threshold

    async def attempt(self, context: RoutingContext) -> AttemptResult:
        best = context.best
        if best is None:
            return AttemptFailed("no candidates")
        if best.similarity < self.threshold:
            return AttemptFailed(f"best score {best.similarity:.2f} below {self.threshold:g}")
        if not best.answer.strip():
            return AttemptFailed("best candidate has empty answer")
        return Resolved(_decision(context, best.answer, ResponseSource.HIGH_SIMILARITY_KNOWLEDGE_MATCH))


class GenerativeStrategy:
    """Call the generative fallback under a timeout, appending a hint in band.

    The hint is appended when the best candidate scores in
    `[hint_threshold, high_threshold)`.
    """

    name = "generative"

    def __init__(
        self,
        generator: GenerativeFallback,
        timeout: float,
        hint_threshold: float,
        high_threshold: float,
    ):
        self.generator = generator
        self.timeout = timeout
        self.hint_threshold = hint_threshold
        self.high_threshold = high_threshold

    async def attempt(self, context: RoutingContext) -> AttemptResult:
        if self.generator is None:
            return AttemptFailed("no generative fallback configured")

        try:
            result = await asyncio.wait_for(
                self.generator.generate(context.message, context.language, context.caller_id),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Generative fallback timed out after %.1fs", self.timeout)
            return AttemptFailed("generation timed out")
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            logger.warning("Generative fallback was cancelled")
            return AttemptFailed("generation cancelled")
        except Exception as err:
            logger.warning("Generative fallback failed: %s", err)
            return AttemptFailed(f"generation failed: {err}")

        text = getattr(result, "text", None)
        if not isinstance(text, str) or not text.strip():
            return AttemptFailed("generation returned empty text")

        confidence = getattr(result, "confidence", None)
        best = context.best

        if best is not None and self.hint_threshold <= best.similarity < self.high_threshold:
            response = text + build_related_topic_hint(best.question)
            return Resolved(_decision(context, response, ResponseSource.GENERATIVE_FALLBACK_WITH_HINT, confidence))

        return Resolved(_decision(context, text, ResponseSource.GENERATIVE_FALLBACK, confidence))


class KnowledgeFallbackStrategy:
    name = "knowledge_fallback"

    async def attempt(self, context: RoutingContext) -> AttemptResult:
        best = context.best
        if best is None:
            return AttemptFailed("no candidates")
        if not best.answer.strip():
            return AttemptFailed("best candidate has empty answer")
        return Resolved(_decision(
            context,
            best.answer,
            ResponseSource.KNOWLEDGE_FALLBACK_AFTER_GENERATIVE_FAILURE,
        ))


class StaticDefaultStrategy:
    name = "static_default"

    async def attempt(self, context: RoutingContext) -> AttemptResult:
        return Resolved(_decision(context, build_default_response(context.language), ResponseSource.STATIC_DEFAULT))


def default_strategies(
    generator: GenerativeFallback | None,
    high_threshold: float,
    hint_threshold: float,
    timeout: float,
) -> list:
    """Return the strategy chain in policy order."""
    return [
        ExactMatchStrategy(),
        HighConfidenceStrategy(high_threshold),
        GenerativeStrategy(generator, timeout, hint_threshold, high_threshold),
        KnowledgeFallbackStrategy(),
        StaticDefaultStrategy(),
    ]
