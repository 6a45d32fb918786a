"""LLM access package.

Architectural role:
    Provides provider configuration, request-payload construction, and transport
    adapters used by the router's generative fallback.

Module split:
    - `provider_config`: environment-driven provider and model configuration.
    - `service`: `GenerativeResponder`, LLM-first with rule-based replies second.
    - `client`: provider-specific HTTP transport and response parsing.
"""
