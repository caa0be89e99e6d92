"""
Device listing endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict

from gateway_core.protocol import ProtocolHandler
from shared_libraries.state import get_gateway

router = APIRouter()


class DeviceResponse(BaseModel):
    """Response model for terminal session state."""

    serial: str
    tenant_id: str | None = None
    first_seen_at: datetime
    last_seen_at: datetime
    options: dict[str, str]
    push_version: str | None = None
    language: str | None = None

    model_config = ConfigDict(from_attributes=True)


class DeviceList(BaseModel):
    """List of devices."""

    items: list[DeviceResponse]
    total: int


@router.get("/", response_model=DeviceList)
async def list_devices(
    tenant: str | None = None,
    gateway: ProtocolHandler = Depends(get_gateway),
) -> DeviceList:
    """List every terminal seen so far, optionally for one tenant."""
    devices = gateway.list_devices(tenant_id=tenant)
    items = [DeviceResponse.model_validate(d) for d in devices]
    return DeviceList(items=items, total=len(items))


@router.get("/{serial}", response_model=DeviceResponse)
async def get_device(
    serial: str,
    gateway: ProtocolHandler = Depends(get_gateway),
) -> DeviceResponse:
    """Get one terminal by serial number."""
    device = gateway.get_device(serial)
    if device is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Device {serial} not found",
        )
    return DeviceResponse.model_validate(device)
