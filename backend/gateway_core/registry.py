"""
Device session registry and attendance record store.

Neither class locks. Both are owned by ProtocolHandler, which serializes
every mutation.
"""

from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from gateway_core.models import AttendanceRecord, Device, RecordFilter


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeviceRegistry:
    """Maps terminal serial numbers to session state. Devices are never removed."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._devices: dict[str, Device] = {}

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, serial: str) -> bool:
        return serial in self._devices

    def touch(self, serial: str, tenant_id: str | None = None) -> Device:
        """Fetch or create a device and mark it as seen now."""
        now = self._clock()
        device = self._devices.get(serial)
        if device is None:
            device = Device(serial=serial, first_seen_at=now, last_seen_at=now)
            self._devices[serial] = device
        elif now > device.last_seen_at:
            device.last_seen_at = now

        if tenant_id is not None:
            device.tenant_id = tenant_id
        return device

    def merge_options(self, serial: str, options: dict[str, str]) -> None:
        device = self._devices.get(serial)
        if device is None:
            return
        device.options.update(options)

    def get(self, serial: str) -> Device | None:
        device = self._devices.get(serial)
        return device.snapshot() if device else None

    def serials(self) -> list[str]:
        return list(self._devices)

    def list(self) -> list[Device]:
        return [device.snapshot() for device in self._devices.values()]


class AttendanceStore:
    """Append-only sequence of attendance records in arrival order."""

    def __init__(self) -> None:
        self._records: list[AttendanceRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def extend(self, records: Iterable[AttendanceRecord]) -> int:
        before = len(self._records)
        self._records.extend(records)
        return len(self._records) - before

    def list(self, record_filter: RecordFilter | None = None) -> list[AttendanceRecord]:
        """Return matching records; ``limit`` keeps the most recent ones."""
        record_filter = record_filter or RecordFilter()
        matched = [r for r in self._records if record_filter.matches(r)]
        if record_filter.limit is not None:
            matched = matched[-record_filter.limit :] if record_filter.limit > 0 else []
        return matched
