"""
In-memory domain models for terminal sessions, attendance records and commands.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class CommandStatus(str, Enum):
    """Lifecycle of an administrative command."""

    PENDING = "PENDING"
    SENT = "SENT"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    FAILED = "FAILED"

    @property
    def is_final(self) -> bool:
        return self in (CommandStatus.ACKNOWLEDGED, CommandStatus.FAILED)


class CommandKind(str, Enum):
    """Administrative instructions the gateway knows how to encode."""

    SET_USER_PIN = "set-user-pin"
    DELETE_USER = "delete-user"
    REBOOT = "reboot"
    CLEAR_LOG = "clear-log"
    INFO = "info"


class SlotState(str, Enum):
    """State of a device's command slot."""

    EMPTY = "EMPTY"
    PENDING = "PENDING"
    SENT = "SENT"


class LineOutcome(str, Enum):
    """What happened to a single line of an attendance batch."""

    STORED = "STORED"
    SKIPPED_MALFORMED = "SKIPPED_MALFORMED"


class UploadOutcome(str, Enum):
    """Closed set of results for a terminal upload."""

    STORED = "STORED"
    SKIPPED_MALFORMED = "SKIPPED_MALFORMED"
    UNRECOGNIZED = "UNRECOGNIZED"


# =============================================================================
# Core Entities
# =============================================================================


@dataclass
class Device:
    """Session state for one terminal, keyed by serial number."""

    serial: str
    first_seen_at: datetime
    last_seen_at: datetime
    tenant_id: str | None = None
    options: dict[str, str] = field(default_factory=dict)
    push_version: str | None = None
    language: str | None = None

    def snapshot(self) -> "Device":
        return replace(self, options=dict(self.options))


@dataclass(frozen=True)
class AttendanceRecord:
    """One attendance event uploaded by a terminal."""

    device_serial: str
    user_pin: str
    event_time: str
    status: str
    verify_method: str
    work_code: str
    extra_fields: tuple[str, ...]
    received_at: datetime
    tenant_id: str | None = None


@dataclass
class Command:
    """An administrative instruction addressed to one terminal."""

    device_serial: str
    kind: CommandKind
    payload: dict[str, str]
    created_at: datetime
    id: str | None = None
    status: CommandStatus = CommandStatus.PENDING
    sent_at: datetime | None = None
    responded_at: datetime | None = None
    return_code: int | None = None

    def snapshot(self) -> "Command":
        return replace(self, payload=dict(self.payload))


@dataclass
class CommandSlot:
    """Per-device slot: empty, holding a pending command, or last sent command."""

    state: SlotState = SlotState.EMPTY
    command: Command | None = None


@dataclass(frozen=True)
class RecordFilter:
    """Filter for attendance record reads."""

    device_serial: str | None = None
    user_pin: str | None = None
    tenant_id: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    limit: int | None = None

    def matches(self, record: AttendanceRecord) -> bool:
        if self.device_serial is not None and record.device_serial != self.device_serial:
            return False
        if self.user_pin is not None and record.user_pin != self.user_pin:
            return False
        if self.tenant_id is not None and record.tenant_id != self.tenant_id:
            return False
        if self.since is not None and record.received_at < self.since:
            return False
        if self.until is not None and record.received_at > self.until:
            return False
        return True
