from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.exception_handlers import register_exception_handlers
from app.api.schemas import HealthOut
from app.assistant.rate_limit import FixedWindowRateLimiter
from app.assistant.router import router as assistant_router
from app.core.llm.deps import close_llm, init_llm
from app.core.logging import setup_logging
from app.core.metrics import PrometheusMetricsMiddleware, metrics_router
from app.core.middleware.http_logging import HttpLoggingMiddleware
from app.core.settings import get_settings

setup_logging()


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Settings/env are read at startup, not import time (keeps pytest collection env-free).
        # A missing GEMINI_API_KEY aborts startup here, once.
        settings = get_settings()
        init_llm(app=app, settings=settings)
        app.state.rate_limiter = FixedWindowRateLimiter(
            limit=settings.assistant_rate_limit_requests,
            window_seconds=float(settings.assistant_rate_limit_window_seconds),
        )
        yield
        await close_llm(app=app)

    app = FastAPI(
        title="Subscription Assistant API",
        description=(
            "Mediation layer between the subscription tracker UI and a generative model.\n\n"
            "Design principles:\n"
            "- Client input is untrusted: it is sanitized and size-bounded before it reaches "
            "the model.\n"
            "- Model output is untrusted: it is validated and size-bounded before it is "
            "returned.\n"
            "- Failures are reported as one of BAD_REQUEST, TIMEOUT or MODEL_ERROR.\n"
            "- Nothing is persisted; logs and metrics carry metadata only."
        ),
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "health",
                "description": "Basic uptime check for load balancers and monitoring.",
            },
            {
                "name": "assistant",
                "description": "AI chat and cost-saving suggestions over a subscriptions snapshot.",
            },
            {
                "name": "metrics",
                "description": "Prometheus-compatible metrics endpoint.",
            },
        ],
    )

    app.add_middleware(PrometheusMetricsMiddleware)
    app.add_middleware(HttpLoggingMiddleware)

    register_exception_handlers(app)

    @app.get(
        "/health",
        response_model=HealthOut,
        tags=["health"],
        summary="Health check",
        description=(
            "Lightweight endpoint to verify the API process is running. It does not call "
            "the model provider."
        ),
    )
    async def health() -> HealthOut:
        return HealthOut(status="ok")

    app.include_router(metrics_router)
    app.include_router(assistant_router)
    return app


app = create_app()
