"""
Parsers for the text payloads terminals upload.

All functions are pure. Malformed input is skipped and logged, never raised.
"""

from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import parse_qsl

from gateway_core.models import AttendanceRecord, LineOutcome
from shared_libraries.logging import get_logger

logger = get_logger(__name__)

ATTLOG_MIN_FIELDS = 5


@dataclass
class AttendanceBatch:
    """Result of parsing one ATTLOG upload."""

    records: list[AttendanceRecord] = field(default_factory=list)
    outcomes: list[LineOutcome] = field(default_factory=list)

    @property
    def line_count(self) -> int:
        """Every line in the batch, well-formed or not."""
        return len(self.outcomes)

    @property
    def skipped(self) -> int:
        return self.outcomes.count(LineOutcome.SKIPPED_MALFORMED)


@dataclass(frozen=True)
class Acknowledgment:
    """One command result reported by a terminal."""

    command_id: str
    return_code: int
    command: str | None = None


def split_lines(text: str) -> list[str]:
    """Split a body into lines, ignoring the terminator after the last line."""
    text = text.rstrip("\r\n")
    if not text:
        return []
    return [line.rstrip("\r") for line in text.split("\n")]


def parse_attendance_batch(
    serial: str,
    text: str,
    received_at: datetime,
    tenant_id: str | None = None,
) -> AttendanceBatch:
    """Parse a tab-delimited ATTLOG batch.

    Each line is ``PIN<TAB>time<TAB>status<TAB>verify<TAB>workcode[<TAB>...]``.
    Lines with fewer than five fields are skipped but still counted, because
    the terminal expects the acknowledged count to match what it sent.
    """
    batch = AttendanceBatch()

    for number, line in enumerate(split_lines(text), start=1):
        fields = line.split("\t")
        if len(fields) < ATTLOG_MIN_FIELDS:
            logger.warning(
                "attendance_line_skipped",
                serial=serial,
                line_number=number,
                field_count=len(fields),
                line=line[:100],
            )
            batch.outcomes.append(LineOutcome.SKIPPED_MALFORMED)
            continue

        user_pin, event_time, status, verify_method, work_code, *extra = fields
        batch.records.append(
            AttendanceRecord(
                device_serial=serial,
                user_pin=user_pin,
                event_time=event_time,
                status=status,
                verify_method=verify_method,
                work_code=work_code,
                extra_fields=tuple(extra),
                received_at=received_at,
                tenant_id=tenant_id,
            )
        )
        batch.outcomes.append(LineOutcome.STORED)

    return batch


def parse_options(text: str | None) -> dict[str, str]:
    """Parse ``key=value,key=value`` into a dict.

    Items without a key or a value are dropped. The last duplicate wins.
    """
    options: dict[str, str] = {}
    if not text:
        return options

    for item in text.split(","):
        key, sep, value = item.partition("=")
        key = key.strip()
        value = value.strip()
        if not sep or not key or not value:
            if item.strip():
                logger.debug("option_item_dropped", item=item[:100])
            continue
        options[key] = value

    return options


def parse_acknowledgments(text: str) -> list[Acknowledgment]:
    """Parse command results posted to the acknowledge endpoint.

    Terminals send one ``ID=<id>&Return=<code>&CMD=<cmd>`` line per finished
    command. Lines without a usable ID or integer Return are skipped.
    """
    acknowledgments: list[Acknowledgment] = []

    for line in split_lines(text):
        if not line.strip():
            continue
        params = dict(parse_qsl(line.strip(), keep_blank_values=True))
        command_id = params.get("ID", "").strip()
        raw_code = params.get("Return", "").strip()
        try:
            return_code = int(raw_code)
        except ValueError:
            return_code = None

        if not command_id or return_code is None:
            logger.warning("ack_line_unparseable", line=line[:100])
            continue

        acknowledgments.append(
            Acknowledgment(
                command_id=command_id,
                return_code=return_code,
                command=params.get("CMD") or None,
            )
        )

    return acknowledgments
