"""
Tenant resolution middleware.

Resolves the tenant for every request before routing, strips a tenant path
segment so ``/41038/iclock/cdata`` reaches the same route as
``/iclock/cdata``, and exposes the result as ``request.state.tenant_id``.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from structlog.contextvars import bound_contextvars

from shared_libraries.logging import get_logger

logger = get_logger(__name__)


class TenantMiddleware(BaseHTTPMiddleware):
    """
    Middleware attaching the resolved tenant to each request.

    Sets:
    - request.state.tenant_id
    - request.state.tenant_source (path, query, fallback, none)
    - scope path with any tenant segment removed
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        resolver = request.app.state.gateway.tenants
        path = request.scope["path"]
        resolution = resolver.resolve(path, request.query_params)

        if resolution.path != path:
            request.scope["path"] = resolution.path

        request.state.tenant_id = resolution.tenant_id
        request.state.tenant_source = resolution.source.value

        with bound_contextvars(tenant_id=resolution.tenant_id):
            logger.debug(
                "tenant_resolved",
                path=resolution.path,
                source=resolution.source.value,
            )
            return await call_next(request)
