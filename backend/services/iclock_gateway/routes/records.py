"""
Attendance record endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict

from gateway_core.models import RecordFilter
from gateway_core.protocol import ProtocolHandler
from shared_libraries.state import get_gateway

router = APIRouter()


class RecordResponse(BaseModel):
    """Response model for one attendance event."""

    device_serial: str
    user_pin: str
    event_time: str
    status: str
    verify_method: str
    work_code: str
    extra_fields: list[str]
    received_at: datetime
    tenant_id: str | None = None

    model_config = ConfigDict(from_attributes=True)


class RecordList(BaseModel):
    """List of attendance records."""

    items: list[RecordResponse]
    total: int


def as_utc(value: datetime | None) -> datetime | None:
    # Naive query values are taken as UTC so they compare with received_at
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@router.get("/", response_model=RecordList)
async def list_records(
    device: str | None = None,
    user: str | None = None,
    tenant: str | None = None,
    since: datetime | None = None,
    until: datetime | None = None,
    limit: int = Query(100, ge=1, le=10000),
    gateway: ProtocolHandler = Depends(get_gateway),
) -> RecordList:
    """
    List attendance records in arrival order.

    ``since``/``until`` filter on the gateway receive time; ``limit`` keeps the
    most recent matches.
    """
    record_filter = RecordFilter(
        device_serial=device,
        user_pin=user,
        tenant_id=tenant,
        since=as_utc(since),
        until=as_utc(until),
        limit=limit,
    )
    records = gateway.list_records(record_filter)
    items = [RecordResponse.model_validate(r) for r in records]
    return RecordList(items=items, total=len(items))
