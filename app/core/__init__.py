"""Core routing package.

Architectural role:
    Exposes the response-routing layer that sits between adapters (CLI, HTTP,
    message handlers) and lower-level subsystems (similarity scoring,
    knowledge retrieval, prompting and LLM adapters).

Composition:
    - `engine`: `ResponseRouter` and its threshold configuration.
    - `fallbacks`: ordered routing strategies evaluated by the router.
    - `routing_types`: shared decision/candidate schema and source tags.

Determinism and side effects:
    Package import itself is deterministic and side-effect free. Runtime side effects
    (knowledge-base reads, model calls, logging) happen during `route`.
"""
