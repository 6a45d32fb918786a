"""Provider-specific transport client for chat-completion requests.

Architectural role:
    Executes HTTP requests against the configured model provider and extracts
    the reply text from the provider's response shape.

Model invocation flow:
    `service.generate_answer` -> `send_request(payload)` -> provider branch
    (OpenAI-compatible / Anthropic) -> stripped reply text.

Retry behavior:
    No retry loop is implemented. Each HTTP call is attempted once with
    `REQUEST_TIMEOUT`. Retry policy, if any, belongs to callers.

Failure handling model:
    Every failure (missing key, unknown provider, HTTP error, timeout, malformed
    body, empty content) is raised as `GenerationError` carrying a sanitized,
    provider-labeled message. Callers can always distinguish success (a
    non-empty string) from failure (the exception).
"""

import requests

from app.llm.provider_config import (
    ANTHROPIC_VERSION,
    MODEL_NAME,
    REQUEST_TIMEOUT,
    load_key,
    resolve_provider,
)


class GenerationError(RuntimeError):
    """Raised when the generative backend cannot produce a reply."""


def _build_sanitized_http_error(provider_name: str, err: requests.exceptions.RequestException) -> str:
    """Build provider-labeled HTTP error text without exposing raw internals."""
    status_code = None
    if getattr(err, "response", None) is not None:
        status_code = getattr(err.response, "status_code", None)

    label = str(provider_name or "provider").upper()
    if isinstance(err, requests.exceptions.Timeout):
        return f"{label} REQUEST TIMED OUT"
    if status_code:
        return f"{label} HTTP ERROR ({status_code})"
    return f"{label} HTTP ERROR"


def _extract_openai_text(data: dict) -> str:
    return data["choices"][0]["message"]["content"]


def _extract_anthropic_text(data: dict) -> str:
    return data["content"][0]["text"]


def _to_anthropic_payload(payload: dict) -> dict:
    """Remap an OpenAI-style payload to the Anthropic messages format."""
    system_prompt = None
    messages = []

    for msg in payload.get("messages", []):
        if not isinstance(msg, dict):
            continue

        role = msg.get("role")
        content = msg.get("content", "")

        if role == "system":
            if isinstance(content, str) and content.strip():
                system_prompt = content.strip()
        elif role in ["user", "assistant"]:
            messages.append({"role": role, "content": content})

    anthropic_payload = {
        "model": payload.get("model", MODEL_NAME),
        "max_tokens": payload.get("max_tokens", 1024),
        "messages": messages,
    }

    if system_prompt:
        anthropic_payload["system"] = system_prompt
    if "temperature" in payload:
        anthropic_payload["temperature"] = payload["temperature"]

    return anthropic_payload


def send_request(payload: dict, provider: str | None = None, timeout: float | None = None) -> str:
    """Send one chat-completion request and return the reply text.

    Args:
        payload: OpenAI-style payload (`model`, `messages`, generation params).
        provider: Provider name; defaults to the configured `PROVIDER`.
        timeout: HTTP timeout in seconds; defaults to `REQUEST_TIMEOUT`.

    Returns:
        Stripped, non-empty reply text.

    Raises:
        GenerationError: on any configuration, transport or parsing failure.
    """
    config = resolve_provider(provider)
    if config is None:
        raise GenerationError(f"INVALID PROVIDER: {provider}")

    name = config["name"]
    headers = {"Content-Type": "application/json"}
    api_key = None

    if config["key_file"]:
        api_key = load_key(config["key_file"])
        if not api_key:
            raise GenerationError(f"{name.upper()} API KEY NOT CONFIGURED")

    if name == "anthropic":
        headers["x-api-key"] = api_key
        headers["anthropic-version"] = ANTHROPIC_VERSION
        body = _to_anthropic_payload(payload)
        extract = _extract_anthropic_text
    else:
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        body = payload
        extract = _extract_openai_text

    try:
        response = requests.post(
            config["url"],
            headers=headers,
            json=body,
            timeout=timeout or REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
        text = extract(data)

    except requests.exceptions.RequestException as err:
        raise GenerationError(_build_sanitized_http_error(name, err)) from err

    except (ValueError, KeyError, IndexError, TypeError) as err:
        raise GenerationError(f"{name.upper()} MALFORMED RESPONSE") from err

    if not isinstance(text, str) or not text.strip():
        raise GenerationError(f"{name.upper()} EMPTY RESPONSE")

    return text.strip()
