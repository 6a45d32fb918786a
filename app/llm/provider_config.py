"""Provider/runtime configuration for the generative fallback.

Architectural role:
    Centralizes model/provider selection, generation parameters and credential
    lookup for `app.llm.service` and `app.llm.client`.

Model call flow integration:
    - `service.generate_answer` consumes `MODEL_NAME`, `MAX_TOKENS` and
      `TEMPERATURE`.
    - `client.send_request` consumes `resolve_provider()`.

Determinism:
    Deterministic for a fixed process environment and key files. Values are
    resolved at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`; the service reports itself
    as not configured and the client raises `GenerationError`.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Primary model routing controls.
PROVIDER = os.getenv("PROVIDER", "openai")
MODEL_NAME = os.getenv("MODEL_NAME") or os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")

# Generation parameters.
MAX_TOKENS = int(os.getenv("OPENAI_MAX_TOKENS", "500"))
TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))

# Per-request HTTP timeout in seconds. `app.api.runtime` caps it at the
# router generation timeout.
REQUEST_TIMEOUT = float(os.getenv("LLM_REQUEST_TIMEOUT", "8"))

# Optional endpoint override for the selected OpenAI-compatible provider.
API_URL_OVERRIDE = os.getenv("OPENAI_API_URL")

# OpenAI-compatible and provider-specific endpoint map.
PROVIDERS = {

    "local": {
        "url": "http://127.0.0.1:8080/v1/chat/completions",
        "key_file": None
    },

    "openai": {
        "url": "https://api.openai.com/v1/chat/completions",
        "key_file": "config/openai.key"
    },

    "groq": {
        "url": "https://api.groq.com/openai/v1/chat/completions",
        "key_file": "config/groq.key"
    },

    "openrouter": {
        "url": "https://openrouter.ai/api/v1/chat/completions",
        "key_file": "config/openrouter.key"
    },

    "anthropic": {
        "url": "https://api.anthropic.com/v1/messages",
        "key_file": "config/anthropic.key"
    },

}

ANTHROPIC_VERSION = "2023-06-01"


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/openai.key` -> `OPENAI_API_KEY`).
        2. Raw file contents at `path`.

    Edge cases:
        - `None` path returns `None`.
        - Missing or empty file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None


def resolve_provider(provider: str | None = None) -> dict | None:
    """Return `{"name", "url", "key_file"}` for a provider, or `None` if unknown.

    `OPENAI_API_URL` replaces the URL of every OpenAI-compatible provider.
    """
    name = provider or PROVIDER
    config = PROVIDERS.get(name)
    if config is None:
        return None

    url = config["url"]
    if API_URL_OVERRIDE and name != "anthropic":
        url = API_URL_OVERRIDE

    return {"name": name, "url": url, "key_file": config["key_file"]}
