"""Health check endpoints."""

from fastapi import APIRouter, Depends

from gateway_core.protocol import ProtocolHandler
from shared_libraries.state import get_gateway

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "iclock-gateway"}


@router.get("/ready")
async def readiness_check(gateway: ProtocolHandler = Depends(get_gateway)) -> dict:
    """Readiness check; the in-memory state must be attached to the app."""
    return {"status": "ready", "devices": gateway.stats()["devices"]}
