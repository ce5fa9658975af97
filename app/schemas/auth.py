"""Pydantic schemas for the login endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credentials submitted to /api/login.

    Both fields are optional at the schema level so that a missing field is
    reported as missing credentials (401) rather than a validation error.
    """

    username: str | None = Field(default=None, description="Account username (case-sensitive).")
    password: str | None = Field(default=None, description="Account password.")


class LoginResponse(BaseModel):
    success: bool = True
    message: str = Field(..., description="Human-readable outcome.")
    token: str = Field(..., description="Bearer token for the Authorization header.")
    expires_at: int = Field(..., description="UNIX epoch seconds when the token expires.")
