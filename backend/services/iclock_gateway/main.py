"""
iclock Gateway - entry point for terminal push traffic and the operator API.

Terminals register, upload attendance and poll for commands over the
``/iclock`` wire endpoints; operators list devices and records and queue
commands through the JSON API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_fastapi_instrumentator import Instrumentator

from gateway_core.exceptions import BodyReadTimeoutError, PreconditionError
from services.iclock_gateway.middleware import TenantMiddleware
from services.iclock_gateway.routes import (
    commands, devices, health, iclock, records, stats, tenant
)
from shared_libraries.config import get_settings
from shared_libraries.logging import get_logger, setup_logging
from shared_libraries.state import build_gateway

# Load settings
settings = get_settings()

# Setup logging
setup_logging(
    log_level=settings.effective_log_level,
    service_name="iclock-gateway",
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Startup and shutdown events for the FastAPI application."""
    logger.info(
        "iclock_gateway_started",
        host=settings.api_host,
        port=settings.api_port,
        iclock_prefix=settings.iclock_prefix,
        tenant_fallback=app.state.gateway.tenants.fallback,
    )
    yield
    stats_snapshot = app.state.gateway.stats()
    logger.info(
        "iclock_gateway_shutdown",
        devices=stats_snapshot["devices"],
        records=stats_snapshot["records"],
    )


app = FastAPI(
    title="iclock Gateway",
    description="Push-protocol gateway for networked biometric attendance terminals.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=f"{settings.api_prefix}/docs",
    openapi_url=f"{settings.api_prefix}/openapi.json",
)

# In-memory state owned by the protocol handler
app.state.gateway = build_gateway(settings)

# Instrument Prometheus
if settings.metrics_enabled:
    Instrumentator().instrument(app).expose(app)

# Middleware
app.add_middleware(TenantMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(PreconditionError)
async def precondition_exception_handler(request: Request, exc: PreconditionError):
    logger.warning(
        "terminal_precondition_failed",
        path=request.url.path,
        operation=exc.operation,
        parameter=exc.parameter,
    )
    return PlainTextResponse(str(exc), status_code=400)


@app.exception_handler(BodyReadTimeoutError)
async def body_timeout_exception_handler(request: Request, exc: BodyReadTimeoutError):
    logger.warning("terminal_body_timeout", path=request.url.path, timeout=exc.timeout)
    return PlainTextResponse(str(exc), status_code=408)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_type": type(exc).__name__},
    )


# Health checks
@app.get("/health", tags=["System"])
async def root_health():
    return {"status": "ok"}


# Terminal wire protocol
app.include_router(iclock.router, prefix=settings.iclock_prefix, tags=["Terminal"])

# Status and fallback tenant
app.include_router(tenant.router, tags=["Tenant"])

# Operator API
app.include_router(health.router, prefix=f"{settings.api_prefix}/health", tags=["System"])
app.include_router(devices.router, prefix=f"{settings.api_prefix}/devices", tags=["Devices"])
app.include_router(records.router, prefix=f"{settings.api_prefix}/records", tags=["Attendance"])
app.include_router(commands.router, prefix=f"{settings.api_prefix}/commands", tags=["Commands"])
app.include_router(stats.router, prefix=f"{settings.api_prefix}/stats", tags=["Statistics"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "services.iclock_gateway.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        timeout_keep_alive=settings.keep_alive_timeout,
    )
