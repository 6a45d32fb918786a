"""Generative fallback used by the response router.

Architectural role:
    Provides `GenerativeResponder`, the collaborator the router calls when no
    confident knowledge-base match exists. It bridges prompt construction
    (`app.prompting`) to transport (`app.llm.client`).

Generation chain:
    1. LLM provider, when configured (confidence 0.9).
    2. Rule-based price/appointment replies (confidence 0.85).
    3. Otherwise `GenerationError` is raised and the router decides what to do.

Model call flow:
    message + language -> `build_chat_messages` -> payload -> `send_request`,
    executed in a worker thread via `asyncio.to_thread` so the event loop stays
    free while the blocking HTTP call runs.

Failure scenarios:
    Transport/provider failures surface as `GenerationError` from the client;
    they are logged here and the chain moves on to the rule-based step.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from app.llm.client import GenerationError, send_request
from app.llm.provider_config import (
    MAX_TOKENS,
    MODEL_NAME,
    PROVIDER,
    REQUEST_TIMEOUT,
    TEMPERATURE,
    load_key,
    resolve_provider,
)
from app.prompting.canned_responses import build_rule_based_response
from app.prompting.prompt_builder import build_chat_messages


logger = logging.getLogger(__name__)

LLM_CONFIDENCE = 0.9
RULE_BASED_CONFIDENCE = 0.85


@dataclass(frozen=True)
class GenerationResult:
    """Successful generative reply.

    Attributes:
        text: Non-empty reply text.
        confidence: Producer confidence in [0, 1].
        origin: `"llm"` or `"rule_based"`.
    """

    text: str
    confidence: float
    origin: str = "llm"


def build_payload(message: str, language: str) -> dict:
    """Build the OpenAI-style chat payload with shared generation defaults."""
    return {
        "model": MODEL_NAME,
        "messages": build_chat_messages(message, language),
        "max_tokens": MAX_TOKENS,
        "temperature": TEMPERATURE,
    }


def generate_answer(
    message: str,
    language: str,
    provider: str | None = None,
    timeout: float | None = None,
) -> str:
    """Invoke the configured model for one message. Blocking.

    `timeout` bounds the HTTP request; defaults to `REQUEST_TIMEOUT`.

    Raises:
        GenerationError: propagated from `client.send_request`.
    """
    return send_request(build_payload(message, language), provider=provider, timeout=timeout)


def provider_is_configured(provider: str | None = None) -> bool:
    """Return whether the provider is known and has its key available."""
    config = resolve_provider(provider)
    if config is None:
        return False
    if config["key_file"] is None:
        return True
    return bool(load_key(config["key_file"]))


class GenerativeResponder:
    """LLM-first responder with a rule-based second step.

    Args:
        provider: Provider name; defaults to `PROVIDER`.
        answer_fn: Blocking `(message, language) -> str` model call. Injectable
            so tests and alternative backends can replace the HTTP client.
        use_llm: Disable the model step entirely (rule-based only).
        request_timeout: HTTP timeout for the model call. Keep it at or below
            the router generation timeout so the worker thread ends with it.
    """

    def __init__(
        self,
        provider: str | None = None,
        answer_fn: Callable[[str, str], str] | None = None,
        use_llm: bool = True,
        request_timeout: float | None = None,
    ):
        self.provider = provider or PROVIDER
        self.answer_fn = answer_fn
        self.use_llm = use_llm
        self.request_timeout = request_timeout or REQUEST_TIMEOUT

    def is_configured(self) -> bool:
        if not self.use_llm:
            return False
        if self.answer_fn is not None:
            return True
        return provider_is_configured(self.provider)

    def _call_model(self, message: str, language: str) -> str:
        if self.answer_fn is not None:
            return self.answer_fn(message, language)
        return generate_answer(message, language, provider=self.provider, timeout=self.request_timeout)

    async def generate(self, message: str, language: str, caller_id: str | None = None) -> GenerationResult:
        """Produce a reply for `message` or raise `GenerationError`.

        `caller_id` is accepted for parity with the router contract and used
        for log correlation only.
        """
        if self.is_configured():
            try:
                text = await asyncio.to_thread(self._call_model, message, language)
                if text and text.strip():
                    logger.info("LLM response generated (caller=%s)", caller_id)
                    return GenerationResult(text.strip(), LLM_CONFIDENCE, "llm")
                logger.warning("LLM returned empty text; trying rule-based replies")
            except GenerationError as err:
                logger.warning("LLM generation failed: %s. Falling back to rule-based replies.", err)
        else:
            logger.info("LLM provider %r not configured; using rule-based replies", self.provider)

        rule_based = build_rule_based_response(message, language)
        if rule_based:
            return GenerationResult(rule_based, RULE_BASED_CONFIDENCE, "rule_based")

        raise GenerationError("No generative or rule-based reply available")
