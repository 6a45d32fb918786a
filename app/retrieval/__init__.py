"""Retrieval package.

Architectural role:
    Provides knowledge-base storage adapters and the candidate-retrieval pass
    used by core routing.

Scope:
    - `knowledge_base`: Q&A entry model, in-memory and JSON-file readers.
    - `retriever`: exact lookup, contextual scoring, floor filter and ranking.
"""
