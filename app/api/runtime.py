"""Shared wiring for the CLI and HTTP adapters.

Builds one `ResponseRouter` from process configuration: the JSON knowledge
base at `KNOWLEDGE_BASE_PATH`, a `GenerativeResponder` for the configured
provider, and `RouterConfig.from_env()`. Adapters own the router instance;
the core layer never constructs its collaborators itself.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os

from app.core.engine import ResponseRouter, RouterConfig
from app.llm.provider_config import REQUEST_TIMEOUT
from app.llm.service import GenerativeResponder
from app.retrieval.knowledge_base import JsonKnowledgeBase


BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DEFAULT_KNOWLEDGE_BASE_PATH = os.path.join("knowledge", "qa_pairs.json")


def configure_logging() -> None:
    """Configure root logging once, with level from `LOG_LEVEL` (default INFO)."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def resolve_knowledge_base_path(path: str | None = None) -> str:
    """Return an absolute knowledge-base path; relative paths resolve from the repo root."""
    path = path or os.getenv("KNOWLEDGE_BASE_PATH") or DEFAULT_KNOWLEDGE_BASE_PATH
    if os.path.isabs(path):
        return path
    return os.path.join(BASE_DIR, path)


def build_router(knowledge_base_path: str | None = None) -> ResponseRouter:
    """Construct the production router from environment configuration.

    The HTTP timeout of the model call never exceeds the router generation
    timeout, so an abandoned worker thread finishes within the same bound.
    """
    config = RouterConfig.from_env()
    return ResponseRouter(
        knowledge_base=JsonKnowledgeBase(resolve_knowledge_base_path(knowledge_base_path)),
        generator=GenerativeResponder(request_timeout=min(REQUEST_TIMEOUT, config.generation_timeout)),
        config=config,
    )
