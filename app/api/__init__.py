"""API adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and CLI interfaces.
- Performs transport-level validation and response shaping.
- Delegates routing to `app.core.engine.ResponseRouter`.

Scope:
- Request lifecycle control for adapter concerns only.
- No similarity scoring or model invocation logic lives in this package.
"""
