"""
Administrative command endpoints.

Commands are queued here and delivered on the terminal's next poll.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from gateway_core.exceptions import CommandPayloadError
from gateway_core.models import Command, CommandKind
from gateway_core.protocol import BROADCAST_TARGET, ProtocolHandler
from shared_libraries.logging import get_logger
from shared_libraries.state import get_gateway

logger = get_logger(__name__)

router = APIRouter()


# =============================================================================
# Request/Response Models
# =============================================================================


class CommandCreate(BaseModel):
    """Request model for queueing a command. ``serial="any"`` targets every device."""

    serial: str = Field(..., min_length=1, max_length=100)
    kind: CommandKind
    payload: dict[str, str | int] = Field(default_factory=dict)


class SetPinRequest(BaseModel):
    """Request model for the set-pin capability."""

    serial: str = Field(BROADCAST_TARGET, min_length=1, max_length=100)
    pin: str | int
    name: str = Field(..., min_length=1, max_length=100)


class CommandResponse(BaseModel):
    """Response model for a tracked command."""

    id: str | None = None
    device_serial: str
    kind: CommandKind
    payload: dict[str, str]
    status: str
    created_at: datetime
    sent_at: datetime | None = None
    responded_at: datetime | None = None
    return_code: int | None = None

    model_config = ConfigDict(from_attributes=True)


class CommandList(BaseModel):
    """List of commands."""

    items: list[CommandResponse]
    total: int


def to_response(command: Command) -> CommandResponse:
    return CommandResponse(
        id=command.id,
        device_serial=command.device_serial,
        kind=command.kind,
        payload=command.payload,
        status=command.status.value,
        created_at=command.created_at,
        sent_at=command.sent_at,
        responded_at=command.responded_at,
        return_code=command.return_code,
    )


def enqueue(
    gateway: ProtocolHandler, serial: str, kind: CommandKind, payload: dict
) -> CommandList:
    try:
        commands = gateway.enqueue_command(serial, kind, payload)
    except CommandPayloadError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc

    if not commands:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No devices registered; nothing was queued",
        )

    logger.info("operator_command_queued", target=serial, kind=kind.value, count=len(commands))
    items = [to_response(c) for c in commands]
    return CommandList(items=items, total=len(items))


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/", response_model=CommandList, status_code=status.HTTP_202_ACCEPTED)
async def create_command(
    request: CommandCreate,
    gateway: ProtocolHandler = Depends(get_gateway),
) -> CommandList:
    """Queue a command for one device or, with ``serial="any"``, for all of them."""
    return enqueue(gateway, request.serial, request.kind, request.payload)


@router.post("/set-pin", response_model=CommandList, status_code=status.HTTP_202_ACCEPTED)
async def set_user_pin(
    request: SetPinRequest,
    gateway: ProtocolHandler = Depends(get_gateway),
) -> CommandList:
    """Push a user PIN and display name to a terminal on its next poll."""
    payload = {"pin": request.pin, "name": request.name}
    return enqueue(gateway, request.serial, CommandKind.SET_USER_PIN, payload)


@router.get("/", response_model=CommandList)
async def list_commands(
    serial: str | None = None,
    gateway: ProtocolHandler = Depends(get_gateway),
) -> CommandList:
    """List pending and delivered commands."""
    items = [to_response(c) for c in gateway.list_commands(serial)]
    return CommandList(items=items, total=len(items))
