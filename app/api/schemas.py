from __future__ import annotations

from pydantic import BaseModel, Field


class HealthOut(BaseModel):
    """Health check response."""

    status: str = Field(
        description="Service status indicator. `ok` means the API process is up and responding.",
        examples=["ok"],
    )


class ErrorBody(BaseModel):
    code: str = Field(
        description="Stable error code: BAD_REQUEST, TIMEOUT, MODEL_ERROR or RATE_LIMITED.",
        examples=["BAD_REQUEST"],
    )
    message: str = Field(description="Human-readable message; never contains user data.")


class ErrorOut(BaseModel):
    """Error envelope shared by all assistant endpoints."""

    error: ErrorBody
