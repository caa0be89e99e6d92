"""
Command queue for administrative instructions delivered on the terminal's poll.

Each device owns one slot in one of three states:

    EMPTY    nothing to deliver
    PENDING  a command waits for the next poll; a new enqueue replaces it
    SENT     the last command was delivered; a new enqueue starts a fresh one

Command ids are assigned when a command is delivered, not when it is queued.
"""

import itertools
from collections.abc import Iterable
from datetime import datetime

from gateway_core.exceptions import CommandPayloadError, UnknownCommandKindError
from gateway_core.models import (
    Command,
    CommandKind,
    CommandSlot,
    CommandStatus,
    SlotState,
)
from shared_libraries.logging import get_logger

logger = get_logger(__name__)


REQUIRED_PAYLOAD: dict[CommandKind, tuple[str, ...]] = {
    CommandKind.SET_USER_PIN: ("pin", "name"),
    CommandKind.DELETE_USER: ("pin",),
    CommandKind.REBOOT: (),
    CommandKind.CLEAR_LOG: (),
    CommandKind.INFO: (),
}

USERINFO_TEMPLATE = (
    "DATA UPDATE USERINFO PIN={pin} Name={name} Pri=0 Passwd= Card= Grp=1 "
    "TZ=0000000000000000"
)


def coerce_kind(kind: CommandKind | str) -> CommandKind:
    try:
        return CommandKind(kind)
    except ValueError as exc:
        raise UnknownCommandKindError(str(kind)) from exc


def validate_payload(kind: CommandKind, payload: dict[str, str]) -> dict[str, str]:
    """Check required fields and normalize values to strings."""
    normalized = {key: str(value) for key, value in payload.items() if value is not None}
    missing = [name for name in REQUIRED_PAYLOAD[kind] if not normalized.get(name)]
    if missing:
        raise CommandPayloadError(kind.value, missing)
    return normalized


def encode_command(command: Command) -> str:
    """Render a command as the text that follows ``C:<id>:`` on the wire."""
    payload = command.payload
    if command.kind is CommandKind.SET_USER_PIN:
        return USERINFO_TEMPLATE.format(pin=payload["pin"], name=payload["name"])
    if command.kind is CommandKind.DELETE_USER:
        return f"DATA DELETE USERINFO PIN={payload['pin']}"
    if command.kind is CommandKind.REBOOT:
        return "REBOOT"
    if command.kind is CommandKind.CLEAR_LOG:
        return "CLEAR LOG"
    if command.kind is CommandKind.INFO:
        return "INFO"
    raise UnknownCommandKindError(command.kind.value)


def wire_line(command: Command) -> str:
    return f"C:{command.id}:{encode_command(command)}"


class CommandQueue:
    """Single-slot-per-device command queue.

    Not locked; ProtocolHandler serializes access.
    """

    def __init__(self, success_code: int = 0) -> None:
        self.success_code = success_code
        self._slots: dict[str, CommandSlot] = {}
        self._delivered: dict[str, Command] = {}
        self._ids = itertools.count(1)

    def slot(self, serial: str) -> CommandSlot:
        slot = self._slots.get(serial)
        if slot is None:
            return CommandSlot()
        return CommandSlot(slot.state, slot.command.snapshot() if slot.command else None)

    def enqueue(
        self,
        serial: str,
        kind: CommandKind | str,
        payload: dict[str, str],
        now: datetime,
    ) -> Command:
        """Queue a command for ``serial``, replacing any pending one."""
        kind = coerce_kind(kind)
        command = Command(
            device_serial=serial,
            kind=kind,
            payload=validate_payload(kind, payload),
            created_at=now,
        )

        slot = self._slots.setdefault(serial, CommandSlot())
        if slot.state is SlotState.PENDING and slot.command is not None:
            logger.info(
                "command_replaced",
                serial=serial,
                kind=kind.value,
                replaced_kind=slot.command.kind.value,
            )
        slot.state = SlotState.PENDING
        slot.command = command

        logger.info("command_queued", serial=serial, kind=kind.value)
        return command

    def enqueue_broadcast(
        self,
        serials: Iterable[str],
        kind: CommandKind | str,
        payload: dict[str, str],
        now: datetime,
    ) -> list[Command]:
        """Queue an independent copy of the command for every serial given."""
        kind = coerce_kind(kind)
        payload = validate_payload(kind, payload)
        commands = [self.enqueue(serial, kind, payload, now) for serial in serials]
        if not commands:
            logger.warning("command_broadcast_no_devices", kind=kind.value)
        return commands

    def take_pending_for_delivery(self, serial: str, now: datetime) -> Command | None:
        """Clear the pending slot, assign an id and mark the command sent."""
        slot = self._slots.get(serial)
        if slot is None or slot.state is not SlotState.PENDING or slot.command is None:
            return None

        command = slot.command
        command.id = str(next(self._ids))
        command.status = CommandStatus.SENT
        command.sent_at = now
        slot.state = SlotState.SENT
        self._delivered[command.id] = command

        logger.info(
            "command_delivered",
            serial=serial,
            command_id=command.id,
            kind=command.kind.value,
        )
        return command

    def record_acknowledgment(
        self, command_id: str, return_code: int, now: datetime
    ) -> Command | None:
        """Finalize a delivered command from the terminal's reported result."""
        command = self._delivered.get(command_id)
        if command is None:
            logger.warning("ack_unknown_command", command_id=command_id)
            return None
        if command.status.is_final:
            logger.info(
                "ack_duplicate",
                command_id=command_id,
                status=command.status.value,
            )
            return None

        command.status = (
            CommandStatus.ACKNOWLEDGED
            if return_code == self.success_code
            else CommandStatus.FAILED
        )
        command.responded_at = now
        command.return_code = return_code

        logger.info(
            "command_acknowledged",
            serial=command.device_serial,
            command_id=command_id,
            status=command.status.value,
            return_code=return_code,
        )
        return command

    def get(self, command_id: str) -> Command | None:
        command = self._delivered.get(command_id)
        return command.snapshot() if command else None

    def list(self, serial: str | None = None) -> list[Command]:
        """Pending and delivered commands, optionally for one device."""
        commands = list(self._delivered.values())
        commands.extend(
            slot.command
            for slot in self._slots.values()
            if slot.state is SlotState.PENDING and slot.command is not None
        )
        if serial is not None:
            commands = [c for c in commands if c.device_serial == serial]
        return [c.snapshot() for c in commands]
