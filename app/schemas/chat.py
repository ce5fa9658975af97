"""Pydantic schemas for chat and quota status responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str | None = Field(
        default=None,
        description="Prompt forwarded to the language model.",
    )


class ChatResponse(BaseModel):
    """Model reply plus the caller's remaining quota."""

    success: bool = True
    message: str = Field(..., description="The model's reply.")
    remaining_requests: int = Field(
        ...,
        ge=0,
        description="Requests left in the current window after this one.",
    )


class StatusResponse(BaseModel):
    success: bool = True
    message: str = Field(..., description="Description of the caller's class and limit.")
    remaining_requests: int = Field(..., ge=0)


class ErrorBody(BaseModel):
    code: str
    request_id: str | None = None
    details: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Envelope returned for every failed request."""

    success: bool = False
    message: str
    error: ErrorBody
    remaining_requests: int | None = Field(
        default=None,
        description="Present (always 0) when the request was rejected for quota.",
    )
