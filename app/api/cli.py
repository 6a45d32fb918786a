"""
Interactive CLI adapter for the WhatsApp response router.

Architectural role:
- Exposes terminal interaction for operators testing knowledge-base answers.
- Provides startup observability for the knowledge base and LLM provider.
- Delegates all routing decisions to `app.core.engine.ResponseRouter.route`.

Request lifecycle (per user turn, CLI):
1. Read stdin.
2. Handle local control commands (`exit`/`quit`).
3. Route normal text to the router with a fixed console caller id.
4. Print the response text followed by its provenance tag and best score.

Input validation behavior:
- Empty input is ignored and does not call the router.

Error handling strategy:
- Knowledge-base read failures at startup degrade to zero-count reporting;
  the router itself degrades the same way per message.
- EOF and keyboard interrupts terminate the loop without traceback output.

Side effects:
- Reads the knowledge-base JSON file.
- May call the configured LLM provider over HTTP.
- Writes to stdout extensively for operator feedback.
"""

import sys
import asyncio

from app.api.runtime import build_router, configure_logging, resolve_knowledge_base_path
from app.retrieval.knowledge_base import KnowledgeBaseUnavailable


CONSOLE_CALLER_ID = "console"


# =========================================================
# UTF-8 SAFE OUTPUT
# Best-effort stdout encoding normalization for Arabic text in terminals.
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except (AttributeError, ValueError, OSError):
        pass


def format_decision(decision) -> str:
    """Render a routing decision for the terminal."""
    score = f"{decision.best_score:.2f}" if decision.best_score is not None else "n/a"
    lines = [decision.response, "", f"[source: {decision.source.value} | best score: {score}]"]
    if decision.matched_question:
        lines.append(f"[matched: {decision.matched_question}]")
    return "\n".join(lines)


# =========================================================
# MAIN
# =========================================================

def main():
    """
    Run the CLI loop.

    Error handling strategy:
    - Knowledge-base status failures print a fallback count.
    - EOF/interrupt are handled without stack traces.
    """
    configure_logging()

    router = build_router()

    print("WhatsApp response router console. (Type 'exit' to quit)")
    print(f"Knowledge base: {resolve_knowledge_base_path()}")

    try:
        entry_count = len(router.knowledge_base.list_active_entries())
    except KnowledgeBaseUnavailable as err:
        print(f"Knowledge base unavailable: {err}")
        entry_count = 0

    print(f"Active knowledge entries: {entry_count}")
    llm_state = "configured" if router.generator.is_configured() else "not configured (rule-based replies only)"
    print(f"LLM provider {router.generator.provider!r}: {llm_state}")
    print("-" * 60)

    while True:

        try:
            message = input("Message: ").strip()

        except EOFError:
            print("\nShutting down (EOF received).")
            break

        except KeyboardInterrupt:
            print("\nOperation cancelled by user.")
            break

        if not message:
            continue

        if message.lower() in ("exit", "quit"):
            print("Shutting down.")
            break

        decision = asyncio.run(router.route(message, caller_id=CONSOLE_CALLER_ID))

        print("\nResponse:\n")
        print(format_decision(decision))
        print("\n" + "-" * 60 + "\n")


if __name__ == "__main__":
    main()
