"""
Protocol handler for the terminal push protocol.

Interprets the four terminal operations (init, upload, poll, acknowledge) and
the operator operations over the device registry, attendance store and
command queue. The handler is the single owner of that state: every state
transition runs to completion under one lock, and callers read request bodies
before calling in.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from gateway_core.commands import CommandQueue, wire_line
from gateway_core.models import (
    AttendanceRecord,
    Command,
    CommandKind,
    CommandStatus,
    Device,
    RecordFilter,
    UploadOutcome,
)
from gateway_core.parsers import (
    parse_acknowledgments,
    parse_attendance_batch,
    parse_options,
    split_lines,
)
from gateway_core.registry import AttendanceStore, DeviceRegistry, utcnow
from gateway_core.requests import AckRequest, InitRequest, PollRequest, UploadRequest
from gateway_core.tenants import TenantResolver
from shared_libraries.logging import get_logger

logger = get_logger(__name__)

OK = "OK"
BROADCAST_TARGET = "any"

TABLE_ATTLOG = "ATTLOG"
TABLE_OPERLOG = "OPERLOG"
TABLE_OPTIONS = "options"


@dataclass(frozen=True)
class CapabilityBlock:
    """Values announced to a terminal in reply to its init request."""

    error_delay: int = 30
    delay: int = 10
    trans_times: str = "00:00;14:05"
    trans_interval: int = 1
    trans_flag: str = (
        "TransData AttLog OpLog AttPhoto EnrollUser ChgUser EnrollFP ChgFP UserPic"
    )
    timezone_offset: int = 8
    realtime: int = 1
    server_version: str = "2.4.2"
    push_protocol_version: str = "2.4.2"

    def render(self, serial: str) -> str:
        lines = [
            f"GET OPTION FROM: {serial}",
            "ATTLOGStamp=None",
            "OPERLOGStamp=9999",
            "ATTPHOTOStamp=None",
            f"ErrorDelay={self.error_delay}",
            f"Delay={self.delay}",
            f"TransTimes={self.trans_times}",
            f"TransInterval={self.trans_interval}",
            f"TransFlag={self.trans_flag}",
            f"TimeZone={self.timezone_offset}",
            f"Realtime={self.realtime}",
            "Encrypt=None",
            f"ServerVer={self.server_version}",
            f"PushProtVer={self.push_protocol_version}",
        ]
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class ProtocolReply:
    """Plain-text body for the terminal plus what the gateway did with the request."""

    body: str
    outcome: UploadOutcome | None = None
    command: Command | None = None


class ProtocolHandler:
    """Owns gateway state and turns terminal requests into wire replies."""

    def __init__(
        self,
        tenants: TenantResolver | None = None,
        capabilities: CapabilityBlock | None = None,
        success_code: int = 0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.tenants = tenants or TenantResolver()
        self.capabilities = capabilities or CapabilityBlock()
        self.clock = clock
        self.devices = DeviceRegistry(clock=clock)
        self.records = AttendanceStore()
        self.commands = CommandQueue(success_code=success_code)
        self.lock = threading.RLock()

    # =========================================================================
    # Terminal operations
    # =========================================================================

    def init(self, request: InitRequest, tenant_id: str | None = None) -> ProtocolReply:
        with self.lock:
            device = self.devices.touch(request.serial, tenant_id)
            if request.push_version:
                device.push_version = request.push_version
            if request.language:
                device.language = request.language
            options = parse_options(request.options)
            if options:
                self.devices.merge_options(request.serial, options)

        logger.info(
            "device_init",
            serial=request.serial,
            tenant_id=tenant_id,
            pushver=request.push_version,
            language=request.language,
            options=request.options,
        )
        return ProtocolReply(self.capabilities.render(request.serial))

    def upload(
        self, request: UploadRequest, body: str, tenant_id: str | None = None
    ) -> ProtocolReply:
        table = request.table

        if table == TABLE_ATTLOG:
            batch = parse_attendance_batch(
                request.serial, body, received_at=self.clock(), tenant_id=tenant_id
            )
            with self.lock:
                self.devices.touch(request.serial, tenant_id)
                stored = self.records.extend(batch.records)
            logger.info(
                "attendance_stored",
                serial=request.serial,
                tenant_id=tenant_id,
                lines=batch.line_count,
                stored=stored,
                skipped=batch.skipped,
            )
            outcome = UploadOutcome.STORED if stored else UploadOutcome.SKIPPED_MALFORMED
            return ProtocolReply(f"OK: {batch.line_count}", outcome)

        if table == TABLE_OPERLOG:
            with self.lock:
                self.devices.touch(request.serial, tenant_id)
            logger.info(
                "operation_log_received",
                serial=request.serial,
                tenant_id=tenant_id,
                lines=len(split_lines(body)),
                body=body[:500],
            )
            return ProtocolReply("OK: 1", UploadOutcome.STORED)

        if table == TABLE_OPTIONS:
            options = parse_options(body.strip())
            with self.lock:
                self.devices.touch(request.serial, tenant_id)
                self.devices.merge_options(request.serial, options)
            logger.info(
                "device_options_merged",
                serial=request.serial,
                keys=sorted(options),
            )
            outcome = UploadOutcome.STORED if options else UploadOutcome.SKIPPED_MALFORMED
            return ProtocolReply(OK, outcome)

        with self.lock:
            self.devices.touch(request.serial, tenant_id)
        logger.warning(
            "unknown_table",
            serial=request.serial,
            table=table,
            body=body[:200],
        )
        return ProtocolReply(OK, UploadOutcome.UNRECOGNIZED)

    def poll(self, request: PollRequest, tenant_id: str | None = None) -> ProtocolReply:
        with self.lock:
            self.devices.touch(request.serial, tenant_id)
            command = self.commands.take_pending_for_delivery(
                request.serial, self.clock()
            )
            if command is None:
                return ProtocolReply(OK)
            snapshot = command.snapshot()
        return ProtocolReply(wire_line(snapshot), command=snapshot)

    def acknowledge(
        self, request: AckRequest, body: str, tenant_id: str | None = None
    ) -> ProtocolReply:
        acknowledgments = parse_acknowledgments(body)
        if not acknowledgments:
            logger.warning("ack_body_unparseable", serial=request.serial, body=body[:200])

        with self.lock:
            self.devices.touch(request.serial, tenant_id)
            now = self.clock()
            for ack in acknowledgments:
                self.commands.record_acknowledgment(ack.command_id, ack.return_code, now)
        return ProtocolReply(OK)

    def touch_if_identified(self, serial: str | None, tenant_id: str | None = None) -> None:
        """Record activity for auxiliary endpoints that do not require ``SN``."""
        if not serial:
            return
        with self.lock:
            self.devices.touch(serial, tenant_id)

    # =========================================================================
    # Operator operations
    # =========================================================================

    def enqueue_command(
        self, target: str, kind: CommandKind | str, payload: dict[str, str]
    ) -> list[Command]:
        """Queue a command for one serial, or for every known device with ``any``.

        An empty list means a broadcast found no devices.
        """
        with self.lock:
            now = self.clock()
            if target == BROADCAST_TARGET:
                commands = self.commands.enqueue_broadcast(
                    self.devices.serials(), kind, payload, now
                )
            else:
                commands = [self.commands.enqueue(target, kind, payload, now)]
            return [c.snapshot() for c in commands]

    def list_devices(self, tenant_id: str | None = None) -> list[Device]:
        with self.lock:
            devices = self.devices.list()
        if tenant_id is not None:
            devices = [d for d in devices if d.tenant_id == tenant_id]
        return devices

    def get_device(self, serial: str) -> Device | None:
        with self.lock:
            return self.devices.get(serial)

    def list_records(self, record_filter: RecordFilter | None = None) -> list[AttendanceRecord]:
        with self.lock:
            return self.records.list(record_filter)

    def list_commands(self, serial: str | None = None) -> list[Command]:
        with self.lock:
            return self.commands.list(serial)

    def stats(self) -> dict:
        with self.lock:
            commands = self.commands.list()
            counts = {status.value: 0 for status in CommandStatus}
            for command in commands:
                counts[command.status.value] += 1
            return {
                "devices": len(self.devices),
                "records": len(self.records),
                "commands": counts,
                "tenant_fallback": self.tenants.fallback,
            }
