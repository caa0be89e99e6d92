"""
Gateway statistics API routes.
"""

from typing import Any

from fastapi import APIRouter, Depends

from gateway_core.protocol import ProtocolHandler
from shared_libraries.state import get_gateway

router = APIRouter()


@router.get("/", response_model=dict[str, Any])
async def get_gateway_stats(gateway: ProtocolHandler = Depends(get_gateway)):
    """
    Get device, record and command counts.
    """
    return gateway.stats()
