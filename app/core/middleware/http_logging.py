"""HTTP logging middleware.

- Logs request metadata only: never bodies (they carry chat history and
  subscription data), query strings or headers.
- Generates or propagates X-Request-ID for correlation.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("app.http")

REQUEST_ID_HEADER = "X-Request-ID"
_SAFE_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def _get_or_create_request_id(*, request: Request) -> str:
    """Propagate a well-formed incoming id, otherwise generate a UUID4 hex.

    The narrow pattern keeps log lines injection-free.
    """

    candidate = request.headers.get(REQUEST_ID_HEADER)
    if candidate and _SAFE_REQUEST_ID_PATTERN.fullmatch(candidate):
        return candidate
    return uuid.uuid4().hex


def _route_template(*, request: Request) -> str:
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    if isinstance(path, str) and path:
        return path
    return "unmatched"


def _request_meta(
    *, request: Request, request_id: str, status_code: int, started: float
) -> dict[str, Any]:
    return {
        "request_id": request_id,
        "http_method": request.method,
        "request_path": _route_template(request=request),
        "status_code": status_code,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
    }


class HttpLoggingMiddleware(BaseHTTPMiddleware):
    """One log record per request plus a correlation id on every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _get_or_create_request_id(request=request)
        started = time.perf_counter()
        # Downstream handlers read the id from request.state for their own log records.
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception:  # noqa: BLE001 - unexpected exceptions are logged with stack trace
            logger.exception(
                "Unhandled exception while processing request",
                extra=_request_meta(
                    request=request, request_id=request_id, status_code=500, started=started
                ),
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "Request completed",
            extra=_request_meta(
                request=request,
                request_id=request_id,
                status_code=response.status_code,
                started=started,
            ),
        )
        return response
