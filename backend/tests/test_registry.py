"""
Tests for the device registry and attendance store.
"""

from datetime import datetime, timedelta, timezone

from gateway_core.models import AttendanceRecord, RecordFilter
from gateway_core.registry import AttendanceStore, DeviceRegistry

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_record(serial: str, pin: str, received_at: datetime, tenant_id=None) -> AttendanceRecord:
    return AttendanceRecord(
        device_serial=serial,
        user_pin=pin,
        event_time="2024-05-01 12:00:00",
        status="0",
        verify_method="1",
        work_code="0",
        extra_fields=(),
        received_at=received_at,
        tenant_id=tenant_id,
    )


def test_touch_creates_device_once(step_clock) -> None:
    registry = DeviceRegistry(clock=step_clock(T0, T0 + timedelta(seconds=5)))

    created = registry.touch("ABC123")
    again = registry.touch("ABC123")

    assert created is again
    assert len(registry) == 1
    assert again.first_seen_at == T0
    assert again.last_seen_at == T0 + timedelta(seconds=5)


def test_last_seen_never_moves_backwards(step_clock) -> None:
    registry = DeviceRegistry(
        clock=step_clock(T0, T0 - timedelta(minutes=10), T0 + timedelta(seconds=1))
    )

    seen = [registry.touch("S").last_seen_at for _ in range(3)]

    assert seen == [T0, T0, T0 + timedelta(seconds=1)]
    assert seen == sorted(seen)


def test_touch_overwrites_tenant_only_when_given() -> None:
    registry = DeviceRegistry()
    registry.touch("S", "41038")
    registry.touch("S")
    assert registry.get("S").tenant_id == "41038"
    registry.touch("S", "77")
    assert registry.get("S").tenant_id == "77"


def test_merge_options_is_cumulative() -> None:
    registry = DeviceRegistry()
    registry.touch("S")
    registry.merge_options("S", {"A": "1", "B": "2"})
    registry.merge_options("S", {"B": "3"})
    assert registry.get("S").options == {"A": "1", "B": "3"}


def test_merge_options_unknown_device_is_noop() -> None:
    registry = DeviceRegistry()
    registry.merge_options("missing", {"A": "1"})
    assert len(registry) == 0
    assert registry.get("missing") is None


def test_list_returns_snapshots() -> None:
    registry = DeviceRegistry()
    registry.touch("S")
    snapshot = registry.list()[0]
    snapshot.options["injected"] = "x"
    assert registry.get("S").options == {}


def test_store_keeps_arrival_order_and_filters() -> None:
    store = AttendanceStore()
    store.extend(
        [
            make_record("A", "1", T0, tenant_id="t1"),
            make_record("B", "2", T0 + timedelta(minutes=1)),
            make_record("A", "2", T0 + timedelta(minutes=2), tenant_id="t1"),
        ]
    )

    assert [r.user_pin for r in store.list()] == ["1", "2", "2"]
    assert [r.device_serial for r in store.list(RecordFilter(user_pin="2"))] == ["B", "A"]
    assert len(store.list(RecordFilter(device_serial="A"))) == 2
    assert len(store.list(RecordFilter(tenant_id="t1"))) == 2
    window = RecordFilter(since=T0 + timedelta(seconds=30), until=T0 + timedelta(minutes=1))
    assert [r.device_serial for r in store.list(window)] == ["B"]


def test_store_limit_keeps_most_recent() -> None:
    store = AttendanceStore()
    store.extend(make_record("A", str(i), T0 + timedelta(seconds=i)) for i in range(5))
    assert [r.user_pin for r in store.list(RecordFilter(limit=2))] == ["3", "4"]
