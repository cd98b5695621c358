from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.schemas import ErrorBody, ErrorOut
from app.domain.exceptions import AssistantError, RateLimitedError

logger = logging.getLogger("app.errors")

NO_STORE = "no-store, max-age=0"

_STATUS_BY_CODE = {
    "BAD_REQUEST": 400,
    "RATE_LIMITED": 429,
    "MODEL_ERROR": 500,
    "TIMEOUT": 504,
}


def error_response(
    *, status_code: int, code: str, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    body = ErrorOut(error=ErrorBody(code=code, message=message))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(),
        headers={"Cache-Control": NO_STORE, **(headers or {})},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register application exception handlers."""

    @app.exception_handler(AssistantError)
    async def handle_assistant_error(request: Request, exc: AssistantError) -> JSONResponse:
        # IMPORTANT: do not log request bodies or model output.
        status_code = _STATUS_BY_CODE.get(exc.code, 500)
        logger.info(
            "Assistant error",
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "http_method": request.method,
                "request_path": request.url.path,  # no query string
                "status_code": status_code,
                "error_code": exc.code,
            },
        )
        headers: dict[str, str] = {}
        if isinstance(exc, RateLimitedError) and exc.retry_after_seconds:
            headers["Retry-After"] = str(exc.retry_after_seconds)
        return error_response(
            status_code=status_code, code=exc.code, message=exc.message, headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Bodies that are not JSON objects; field-level problems are handled by the sanitizer.
        return error_response(status_code=400, code="BAD_REQUEST", message="Invalid JSON body")
