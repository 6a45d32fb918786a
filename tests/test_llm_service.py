"""
Tests for the generative fallback: transport error mapping, rule-based replies
and the LLM -> rule-based chain.
"""

import asyncio

import pytest
import requests

from app.llm import client
from app.llm.client import GenerationError, send_request
from app.llm.provider_config import REQUEST_TIMEOUT
from app.llm.service import (
    LLM_CONFIDENCE,
    RULE_BASED_CONFIDENCE,
    GenerativeResponder,
    build_payload,
    provider_is_configured,
)
from app.prompting.canned_responses import (
    APPOINTMENT_RESPONSE_AR,
    APPOINTMENT_RESPONSE_EN,
    PRICE_RESPONSE_EN,
    build_rule_based_response,
)
from app.prompting.prompt_builder import SYSTEM_PROMPT_AR, SYSTEM_PROMPT_EN


class FakeResponse:
    def __init__(self, data=None, status_code=200):
        self._data = data
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if self._data is None:
            raise ValueError("no JSON body")
        return self._data


@pytest.fixture
def openai_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")


@pytest.fixture
def captured_post(monkeypatch):
    """Patch requests.post; tests set `captured["response"]` or `captured["error"]`."""
    captured = {"calls": []}

    def fake_post(url, headers=None, json=None, timeout=None):
        captured["calls"].append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if "error" in captured:
            raise captured["error"]
        return captured["response"]

    monkeypatch.setattr(client.requests, "post", fake_post)
    return captured


class TestSendRequest:
    """HTTP transport and error mapping"""

    def test_success_returns_stripped_text(self, openai_key, captured_post):
        """OpenAI-style body yields stripped reply text"""
        captured_post["response"] = FakeResponse({"choices": [{"message": {"content": "  Hello there  "}}]})
        text = send_request({"model": "gpt-3.5-turbo", "messages": []}, provider="openai")

        assert text == "Hello there"
        call = captured_post["calls"][0]
        assert call["headers"]["Authorization"] == "Bearer sk-test"

    def test_http_error_sanitized(self, openai_key, captured_post):
        """HTTP status errors carry only the provider and status"""
        captured_post["response"] = FakeResponse({"error": "secret details"}, status_code=500)
        with pytest.raises(GenerationError, match=r"OPENAI HTTP ERROR \(500\)"):
            send_request({"messages": []}, provider="openai")

    def test_timeout(self, openai_key, captured_post):
        """Transport timeouts map to a timeout error"""
        captured_post["error"] = requests.exceptions.Timeout("slow")
        with pytest.raises(GenerationError, match="REQUEST TIMED OUT"):
            send_request({"messages": []}, provider="openai")

    def test_malformed_body(self, openai_key, captured_post):
        """Unexpected JSON shape is reported as malformed"""
        captured_post["response"] = FakeResponse({"unexpected": True})
        with pytest.raises(GenerationError, match="MALFORMED RESPONSE"):
            send_request({"messages": []}, provider="openai")

    def test_non_json_body(self, openai_key, captured_post):
        """Non-JSON body is reported as malformed"""
        captured_post["response"] = FakeResponse(None)
        with pytest.raises(GenerationError, match="MALFORMED RESPONSE"):
            send_request({"messages": []}, provider="openai")

    def test_empty_content(self, openai_key, captured_post):
        """Blank content is an error, never an empty success"""
        captured_post["response"] = FakeResponse({"choices": [{"message": {"content": "   "}}]})
        with pytest.raises(GenerationError, match="EMPTY RESPONSE"):
            send_request({"messages": []}, provider="openai")

    def test_missing_key(self, monkeypatch, tmp_path, captured_post):
        """No env key and no key file -> not configured"""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.chdir(tmp_path)
        with pytest.raises(GenerationError, match="API KEY NOT CONFIGURED"):
            send_request({"messages": []}, provider="openai")
        assert captured_post["calls"] == []

    def test_unknown_provider(self):
        """Unknown provider names are rejected"""
        with pytest.raises(GenerationError, match="INVALID PROVIDER"):
            send_request({"messages": []}, provider="nope")

    def test_anthropic_payload_remap(self, monkeypatch, captured_post):
        """System prompt moves to the top-level field for Anthropic"""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "ak-test")
        captured_post["response"] = FakeResponse({"content": [{"text": "Hi"}]})
        payload = {
            "model": "claude",
            "messages": [
                {"role": "system", "content": "Be helpful."},
                {"role": "user", "content": "Hello"},
            ],
            "max_tokens": 100,
            "temperature": 0.5,
        }
        assert send_request(payload, provider="anthropic") == "Hi"

        call = captured_post["calls"][0]
        assert call["headers"]["x-api-key"] == "ak-test"
        assert call["json"]["system"] == "Be helpful."
        assert call["json"]["messages"] == [{"role": "user", "content": "Hello"}]


class TestPayload:
    """Prompt construction"""

    def test_english_payload(self):
        """English messages get the English persona"""
        payload = build_payload("  Hello  ", "en")
        assert payload["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT_EN}
        assert payload["messages"][1] == {"role": "user", "content": "Hello"}
        assert "max_tokens" in payload and "temperature" in payload

    def test_arabic_payload(self):
        """Arabic messages get the Arabic persona"""
        assert build_payload("مرحبا", "ar")["messages"][0]["content"] == SYSTEM_PROMPT_AR

    def test_provider_configuration(self, monkeypatch, tmp_path):
        """Keyless providers are configured; unknown ones are not"""
        monkeypatch.delenv("GROQ_API_KEY", raising=False)
        monkeypatch.chdir(tmp_path)
        assert provider_is_configured("local") is True
        assert provider_is_configured("nope") is False
        assert provider_is_configured("groq") is False


class TestRuleBased:
    """Keyword-triggered replies"""

    def test_price(self):
        """Price keywords trigger the price reply"""
        assert build_rule_based_response("What is the price of a villa?", "en") == PRICE_RESPONSE_EN

    def test_price_checked_before_appointment(self):
        """Price wins when both triggers appear"""
        assert build_rule_based_response("cost of an appointment", "en") == PRICE_RESPONSE_EN

    def test_appointment_arabic(self):
        """Arabic triggers use the Arabic reply"""
        assert build_rule_based_response("أريد موعد", "ar") == APPOINTMENT_RESPONSE_AR

    def test_no_trigger(self):
        """Unrelated messages have no rule-based reply"""
        assert build_rule_based_response("hello", "en") is None
        assert build_rule_based_response("", "en") is None


class TestGenerativeResponder:
    """LLM first, rule-based second"""

    def test_llm_answer(self):
        """Model text is returned with LLM confidence"""
        responder = GenerativeResponder(answer_fn=lambda message, language: "  Model reply ")
        result = asyncio.run(responder.generate("hello", "en"))
        assert result.text == "Model reply"
        assert result.confidence == LLM_CONFIDENCE
        assert result.origin == "llm"

    def test_llm_failure_falls_to_rules(self):
        """A model failure on a price question uses the rule-based reply"""
        def failing(message, language):
            raise GenerationError("OPENAI HTTP ERROR (503)")

        responder = GenerativeResponder(answer_fn=failing)
        result = asyncio.run(responder.generate("price please", "en"))
        assert result.text == PRICE_RESPONSE_EN
        assert result.confidence == RULE_BASED_CONFIDENCE
        assert result.origin == "rule_based"

    def test_rules_only(self):
        """With the model disabled, rules still answer"""
        responder = GenerativeResponder(use_llm=False)
        result = asyncio.run(responder.generate("book a meeting", "en"))
        assert result.text == APPOINTMENT_RESPONSE_EN

    def test_nothing_available_raises(self):
        """No model and no matching rule -> GenerationError"""
        responder = GenerativeResponder(use_llm=False)
        with pytest.raises(GenerationError):
            asyncio.run(responder.generate("hello", "en"))

    def test_empty_model_text_falls_to_rules(self):
        """Blank model output is not returned"""
        responder = GenerativeResponder(answer_fn=lambda message, language: "  ")
        result = asyncio.run(responder.generate("what does it cost", "en"))
        assert result.origin == "rule_based"

    def test_request_timeout_reaches_transport(self, openai_key, captured_post):
        """The configured request timeout is what requests.post receives"""
        captured_post["response"] = FakeResponse({"choices": [{"message": {"content": "Hi"}}]})
        responder = GenerativeResponder(provider="openai", request_timeout=2.0)
        result = asyncio.run(responder.generate("hello", "en"))

        assert result.text == "Hi"
        assert captured_post["calls"][0]["timeout"] == 2.0

    def test_default_request_timeout(self):
        """Without an override the provider default applies"""
        assert GenerativeResponder().request_timeout == REQUEST_TIMEOUT
