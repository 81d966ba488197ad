"""Unauthenticated service endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from ideanest import __version__
from ideanest.schemas.common import ApiResponse, ok

router = APIRouter(tags=["system"])


@router.get("/health")
def health_check() -> ApiResponse[dict[str, str]]:
    """Health check endpoint to verify the service is running."""
    return ok({"status": "ok", "version": __version__}, message="Service is healthy")
