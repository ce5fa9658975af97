from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Does not touch the credential store, the usage store or the model, so it
    stays cheap and never consumes quota.
    """

    return {"status": "ok"}
