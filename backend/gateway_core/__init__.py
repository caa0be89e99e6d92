"""Core state machine, parsers and stores for the terminal push protocol."""

from gateway_core.exceptions import (
    CommandPayloadError,
    GatewayError,
    PreconditionError,
    UnknownCommandKindError,
)
from gateway_core.models import (
    AttendanceRecord,
    Command,
    CommandKind,
    CommandStatus,
    Device,
    RecordFilter,
    UploadOutcome,
)
from gateway_core.protocol import CapabilityBlock, ProtocolHandler, ProtocolReply
from gateway_core.tenants import TenantResolution, TenantResolver, TenantSource

__all__ = [
    "AttendanceRecord",
    "CapabilityBlock",
    "Command",
    "CommandKind",
    "CommandPayloadError",
    "CommandStatus",
    "Device",
    "GatewayError",
    "PreconditionError",
    "ProtocolHandler",
    "ProtocolReply",
    "RecordFilter",
    "TenantResolution",
    "TenantResolver",
    "TenantSource",
    "UnknownCommandKindError",
    "UploadOutcome",
]
