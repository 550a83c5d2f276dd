"""Health check endpoint."""

from fastapi import APIRouter, Request
from datetime import datetime, timezone

from .. import __version__

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": _now(),
        "service": "inspection-proxy",
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness check; reports which provider keys are configured."""
    config = request.app.state.config
    return {
        "ready": True,
        "timestamp": _now(),
        "providers": {
            "kie": bool(config.kie_api_key),
            "anthropic": bool(config.anthropic_api_key),
            "openai": bool(config.openai_api_key),
        },
    }
