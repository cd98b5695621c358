"""LLM integration layer.

This package is intentionally small and conservative:
- No prompt/output logging (may contain the user's subscription data).
- Configurable via environment variables.
- Treated as a pure/stateless function by callers.
"""
