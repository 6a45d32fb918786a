"""Text-analysis utilities used by response routing.

Module scope:
- Similarity metrics and contextual scoring (`similarity`).
- Arabic/English language detection (`language_detector`).

Determinism profile:
- Fully deterministic, rule-based logic. No model calls.
"""
