from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends

from app.api.dependencies import get_gateway
from app.schemas.auth import LoginRequest, LoginResponse
from app.schemas.chat import ErrorResponse
from app.services.gateway import RequestGateway

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Username or password missing"},
        403: {"model": ErrorResponse, "description": "Invalid username or password"},
    },
)
def login(
    gateway: Annotated[RequestGateway, Depends(get_gateway)],
    payload: Annotated[LoginRequest | None, Body()] = None,
) -> LoginResponse:
    """Exchange a username and password for a bearer token.

    The token carries the user's id and class and expires after the
    configured TTL. Send it as ``Authorization: Bearer <token>``.
    """
    payload = payload or LoginRequest()
    issued = gateway.login(payload.username, payload.password)
    return LoginResponse(
        message="User logged in successfully!",
        token=issued.token,
        expires_at=issued.expires_at,
    )
