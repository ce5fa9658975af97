from __future__ import annotations

from fastapi import Request

from app.services.gateway import RequestGateway


def get_gateway(request: Request) -> RequestGateway:
    """Return the gateway built by the app factory for this application."""
    return request.app.state.gateway


def get_client_origin(request: Request) -> str:
    """Network origin used as the quota key for guests."""
    return request.client.host if request.client else "unknown"
