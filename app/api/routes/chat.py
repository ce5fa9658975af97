from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Header, Response

from app.api.dependencies import get_client_origin, get_gateway
from app.schemas.chat import ChatRequest, ChatResponse, ErrorResponse, StatusResponse
from app.services.gateway import RequestGateway

router = APIRouter(tags=["Chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Message missing"},
        401: {"model": ErrorResponse, "description": "Invalid bearer token"},
        429: {"model": ErrorResponse, "description": "Quota exceeded"},
        500: {"model": ErrorResponse, "description": "Language model request failed"},
    },
)
async def chat(
    response: Response,
    gateway: Annotated[RequestGateway, Depends(get_gateway)],
    origin: Annotated[str, Depends(get_client_origin)],
    payload: Annotated[ChatRequest | None, Body()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> ChatResponse:
    """Send a message to the language model.

    Guests (no Authorization header) are limited per network address;
    logged-in users are limited per account according to their class.
    Each accepted request consumes one unit of quota.
    """
    message = payload.message if payload else None
    reply = await gateway.chat(authorization, origin, message)

    if gateway.include_rate_limit_headers:
        response.headers["X-RateLimit-Limit"] = str(reply.limit)
        response.headers["X-RateLimit-Remaining"] = str(reply.remaining)
        response.headers["X-RateLimit-Reset"] = str(reply.reset_at)

    return ChatResponse(message=reply.message, remaining_requests=reply.remaining)


@router.get(
    "/status",
    response_model=StatusResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid bearer token"}},
)
def status(
    gateway: Annotated[RequestGateway, Depends(get_gateway)],
    origin: Annotated[str, Depends(get_client_origin)],
    authorization: Annotated[str | None, Header()] = None,
) -> StatusResponse:
    """Report the caller's class, limit and remaining quota without consuming any."""
    report = gateway.status(authorization, origin)
    return StatusResponse(message=report.message, remaining_requests=report.remaining)
