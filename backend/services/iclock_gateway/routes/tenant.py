"""
Server status and fallback tenant endpoints.

``/pin/{tenant_id}`` and ``/?pin=`` are the only ways to change the fallback
tenant applied to terminal traffic that carries no tenant of its own.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from gateway_core.protocol import ProtocolHandler
from shared_libraries.state import get_gateway

router = APIRouter()


class ServerInfo(BaseModel):
    """Server status summary."""

    status: str
    server_time: datetime
    devices: int
    records: int
    tenant_id: str | None = None


class TenantFallback(BaseModel):
    """Current fallback tenant."""

    tenant_id: str | None = None


def server_info(gateway: ProtocolHandler) -> ServerInfo:
    stats = gateway.stats()
    return ServerInfo(
        status="ok",
        server_time=datetime.now(timezone.utc),
        devices=stats["devices"],
        records=stats["records"],
        tenant_id=stats["tenant_fallback"],
    )


@router.get("/", response_model=ServerInfo)
async def root(
    pin: str | None = None,
    gateway: ProtocolHandler = Depends(get_gateway),
) -> ServerInfo:
    """Server status. ``?pin=<id>`` also sets the fallback tenant."""
    if pin and pin.strip():
        gateway.tenants.set_fallback(pin)
    return server_info(gateway)


@router.get("/info", response_model=ServerInfo)
async def info(gateway: ProtocolHandler = Depends(get_gateway)) -> ServerInfo:
    """Server status without side effects."""
    return server_info(gateway)


@router.get("/pin/{tenant_id}", response_model=TenantFallback)
async def set_fallback_tenant(
    tenant_id: str,
    gateway: ProtocolHandler = Depends(get_gateway),
) -> TenantFallback:
    """Set the fallback tenant for terminal traffic without a tenant."""
    try:
        gateway.tenants.set_fallback(tenant_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return TenantFallback(tenant_id=gateway.tenants.fallback)


@router.delete("/pin", response_model=TenantFallback)
async def clear_fallback_tenant(
    gateway: ProtocolHandler = Depends(get_gateway),
) -> TenantFallback:
    """Return to single-tenant mode."""
    gateway.tenants.clear_fallback()
    return TenantFallback(tenant_id=None)
