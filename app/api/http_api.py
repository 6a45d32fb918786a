"""
HTTP API adapter for the WhatsApp response router.

Architectural role:
- Expose a small JSON interface for the message-handling layer (webhook
  workers) that needs a reply for one inbound text message.
- Enforce adapter-level input validation.
- Delegate routing to `app.core.engine.ResponseRouter.route`.

Endpoint responsibilities:
- `GET /health`: liveness plus knowledge-base and provider status.
- `POST /v1/route`: validate input, route, and return the decision.

API request lifecycle (`POST /v1/route`):
1. Parse and validate `{"message", "caller_id"}` with pydantic.
2. Forward the message to the router.
3. Return `{"response", "source", "best_score", "matched_question"}`.

Input validation behavior:
- Missing `message` -> HTTP 422 (pydantic validation).
- Blank `message` -> HTTP 400.

Error handling strategy:
- The router never raises for knowledge-base or generative failures, so a
  valid request always receives a 200 with non-empty `response`.
- Unexpected exceptions follow FastAPI default exception handling.

Side effects:
- Loads environment variables at import time via `load_dotenv()` (through
  `app.api.runtime`).
- Configures root logging on application startup, not at import.
- The default router is constructed lazily on first use.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.api.runtime import build_router, configure_logging
from app.core.engine import ResponseRouter
from app.retrieval.knowledge_base import KnowledgeBaseUnavailable


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(title="WhatsApp response router", lifespan=lifespan)

_router: ResponseRouter | None = None


def set_router(router: ResponseRouter | None) -> None:
    """Install the router used by request handlers (tests inject fakes here)."""
    global _router
    _router = router


def _get_router() -> ResponseRouter:
    global _router
    if _router is None:
        _router = build_router()
    return _router


# ============================================================
# Request / Response Schema
# ============================================================

class RouteRequest(BaseModel):
    message: str
    caller_id: str | None = None


class RouteResponse(BaseModel):
    response: str
    source: str
    best_score: float | None = None
    matched_question: str | None = None


# ============================================================
# Health
# ============================================================

@app.get("/health")
async def health():
    """Report liveness, active knowledge entry count and provider status."""
    router = _get_router()

    try:
        entries = len(router.knowledge_base.list_active_entries())
        knowledge_base = "ok"
    except KnowledgeBaseUnavailable:
        logger.exception("Knowledge base unavailable during health check")
        entries = 0
        knowledge_base = "unavailable"

    generator = router.generator
    llm_configured = bool(generator is not None and getattr(generator, "is_configured", lambda: False)())

    return {
        "status": "ok",
        "knowledge_base": knowledge_base,
        "active_entries": entries,
        "llm_configured": llm_configured,
    }


# ============================================================
# Routing
# ============================================================

@app.post("/v1/route", response_model=RouteResponse)
async def route_message(request: RouteRequest):
    """Route one inbound message and return the chosen reply with provenance."""
    if not request.message.strip():
        return JSONResponse(status_code=400, content={"error": "Message must not be empty"})

    decision = await _get_router().route(request.message, caller_id=request.caller_id)

    return RouteResponse(
        response=decision.response,
        source=decision.source.value,
        best_score=decision.best_score,
        matched_question=decision.matched_question,
    )
