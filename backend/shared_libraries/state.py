"""
Gateway state construction and request dependencies.
"""

from fastapi import Request

from gateway_core.protocol import CapabilityBlock, ProtocolHandler
from gateway_core.tenants import TenantResolver
from shared_libraries.config import Settings, get_settings


def build_gateway(settings: Settings | None = None) -> ProtocolHandler:
    """Create a fresh protocol handler with empty registry, store and queue."""
    settings = settings or get_settings()
    tenants = TenantResolver(
        query_params=settings.tenant_query_params,
        mount_prefixes=settings.tenant_mount_prefixes,
        fallback=settings.default_tenant_id,
    )
    capabilities = CapabilityBlock(
        error_delay=settings.error_delay,
        delay=settings.delay,
        trans_times=settings.trans_times,
        trans_interval=settings.trans_interval,
        trans_flag=settings.trans_flag,
        timezone_offset=settings.timezone_offset,
        realtime=settings.realtime,
        server_version=settings.server_version,
        push_protocol_version=settings.push_protocol_version,
    )
    return ProtocolHandler(
        tenants=tenants,
        capabilities=capabilities,
        success_code=settings.ack_success_code,
    )


def get_gateway(request: Request) -> ProtocolHandler:
    """Dependency for FastAPI routes to get the process-wide protocol handler."""
    return request.app.state.gateway


def get_tenant_id(request: Request) -> str | None:
    """Dependency returning the tenant resolved by TenantMiddleware."""
    return getattr(request.state, "tenant_id", None)
