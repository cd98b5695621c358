from __future__ import annotations

from typing import Literal

ErrorCode = Literal["BAD_REQUEST", "TIMEOUT", "MODEL_ERROR", "RATE_LIMITED"]


class AssistantError(Exception):
    """Base error for the assistant layer; `code` is stable and safe to expose."""

    code: ErrorCode = "MODEL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(AssistantError):
    """Raised when caller input has no usable items. Always raised before any model call."""

    code: ErrorCode = "BAD_REQUEST"


class ModelTimeoutError(AssistantError):
    """Raised when the model call did not complete within the configured deadline."""

    code: ErrorCode = "TIMEOUT"


class ModelError(AssistantError):
    """Raised for any other model failure (transport, upstream rejection, unparseable output)."""

    code: ErrorCode = "MODEL_ERROR"


class RateLimitedError(AssistantError):
    """Raised by the boundary rate limiter; never raised by the mediation layer itself."""

    code: ErrorCode = "RATE_LIMITED"

    def __init__(self, message: str, *, retry_after_seconds: int | None = None):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds
