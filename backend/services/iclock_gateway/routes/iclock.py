"""
Terminal wire protocol endpoints.

Every response is ``text/plain`` in the exact layout terminals expect. Only a
missing ``SN`` on the four core operations produces an error status.
"""

import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from gateway_core.exceptions import BodyReadTimeoutError
from gateway_core.protocol import OK, ProtocolHandler
from gateway_core.requests import AckRequest, InitRequest, PollRequest, UploadRequest
from shared_libraries.config import get_settings
from shared_libraries.logging import get_logger
from shared_libraries.state import get_gateway, get_tenant_id

logger = get_logger(__name__)

router = APIRouter(default_response_class=PlainTextResponse)


# =============================================================================
# Request Dependencies
# =============================================================================


async def read_body(request: Request) -> str:
    """Read the raw request body, bounded by ``body_read_timeout``."""
    timeout = get_settings().body_read_timeout
    try:
        raw = await asyncio.wait_for(request.body(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise BodyReadTimeoutError(timeout) from exc
    return raw.decode("utf-8", errors="replace")


def init_request(request: Request) -> InitRequest:
    return InitRequest.from_query(request.query_params)


def upload_request(request: Request) -> UploadRequest:
    return UploadRequest.from_query(request.query_params)


def poll_request(request: Request) -> PollRequest:
    return PollRequest.from_query(request.query_params)


def ack_request(request: Request) -> AckRequest:
    return AckRequest.from_query(request.query_params)


# =============================================================================
# Core Operations
# =============================================================================


@router.get("/cdata")
@router.get("/cdata/", include_in_schema=False)
async def terminal_init(
    shape: InitRequest = Depends(init_request),
    tenant_id: str | None = Depends(get_tenant_id),
    gateway: ProtocolHandler = Depends(get_gateway),
) -> PlainTextResponse:
    """Terminal registration; replies with the capability block."""
    reply = gateway.init(shape, tenant_id)
    return PlainTextResponse(reply.body)


@router.post("/cdata")
@router.post("/cdata/", include_in_schema=False)
async def terminal_upload(
    shape: UploadRequest = Depends(upload_request),
    body: str = Depends(read_body),
    tenant_id: str | None = Depends(get_tenant_id),
    gateway: ProtocolHandler = Depends(get_gateway),
) -> PlainTextResponse:
    """Table upload (ATTLOG, OPERLOG, options, anything else)."""
    reply = gateway.upload(shape, body, tenant_id)
    return PlainTextResponse(reply.body)


@router.get("/getrequest")
@router.get("/getrequest/", include_in_schema=False)
async def terminal_poll(
    shape: PollRequest = Depends(poll_request),
    tenant_id: str | None = Depends(get_tenant_id),
    gateway: ProtocolHandler = Depends(get_gateway),
) -> PlainTextResponse:
    """Command poll; replies ``OK`` or ``C:<id>:<command>``."""
    reply = gateway.poll(shape, tenant_id)
    return PlainTextResponse(reply.body)


@router.post("/devicecmd")
@router.post("/devicecmd/", include_in_schema=False)
async def terminal_acknowledge(
    shape: AckRequest = Depends(ack_request),
    body: str = Depends(read_body),
    tenant_id: str | None = Depends(get_tenant_id),
    gateway: ProtocolHandler = Depends(get_gateway),
) -> PlainTextResponse:
    """Command results from the terminal."""
    reply = gateway.acknowledge(shape, body, tenant_id)
    return PlainTextResponse(reply.body)


# =============================================================================
# Auxiliary Endpoints
# =============================================================================


@router.post("/data/upload")
async def terminal_raw_upload(
    request: Request,
    body: str = Depends(read_body),
    tenant_id: str | None = Depends(get_tenant_id),
    gateway: ProtocolHandler = Depends(get_gateway),
) -> PlainTextResponse:
    """Raw data upload; logged and acknowledged."""
    serial = request.query_params.get("SN")
    gateway.touch_if_identified(serial, tenant_id)
    logger.info("raw_upload_received", serial=serial, size=len(body), body=body[:500])
    return PlainTextResponse(OK)


@router.get("/accounts/login/")
async def terminal_login(
    request: Request,
    tenant_id: str | None = Depends(get_tenant_id),
    gateway: ProtocolHandler = Depends(get_gateway),
) -> PlainTextResponse:
    """Login probe some firmwares send before pushing data."""
    serial = request.query_params.get("SN")
    gateway.touch_if_identified(serial, tenant_id)
    logger.info("terminal_login", serial=serial, params=dict(request.query_params))
    return PlainTextResponse(OK)
