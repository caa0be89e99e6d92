"""
Tests for the operator JSON API: devices, records, commands, stats, tenant.
"""

import pytest
from httpx import AsyncClient

from gateway_core.protocol import ProtocolHandler

ATTLOG = "1\t2021-01-01 08:00:00\t1\t1\t0\n2\t2021-01-01 08:05:00\t1\t1\t0"


async def register(client: AsyncClient, serial: str, path: str = "/iclock/cdata") -> None:
    await client.get(path, params={"SN": serial})


@pytest.mark.asyncio
async def test_list_devices(async_client: AsyncClient) -> None:
    await register(async_client, "A")
    await register(async_client, "B", "/41038/iclock/cdata")

    response = await async_client.get("/api/v1/devices/")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert {d["serial"] for d in data["items"]} == {"A", "B"}

    filtered = await async_client.get("/api/v1/devices/", params={"tenant": "41038"})
    assert [d["serial"] for d in filtered.json()["items"]] == ["B"]


@pytest.mark.asyncio
async def test_get_device_not_found(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/devices/NOPE")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_records_with_filters(async_client: AsyncClient) -> None:
    await async_client.post("/iclock/cdata", params={"SN": "A", "table": "ATTLOG"}, content=ATTLOG)
    await async_client.post("/iclock/cdata", params={"SN": "B", "table": "ATTLOG"}, content=ATTLOG)

    everything = (await async_client.get("/api/v1/records/")).json()
    assert everything["total"] == 4
    assert [r["device_serial"] for r in everything["items"]] == ["A", "A", "B", "B"]

    by_user = (await async_client.get("/api/v1/records/", params={"user": "2", "device": "B"})).json()
    assert by_user["total"] == 1
    assert by_user["items"][0]["event_time"] == "2021-01-01 08:05:00"

    latest = (await async_client.get("/api/v1/records/", params={"limit": 1})).json()
    assert latest["items"][0]["device_serial"] == "B"
    assert latest["items"][0]["user_pin"] == "2"

    future = (await async_client.get("/api/v1/records/", params={"since": "2999-01-01T00:00:00"})).json()
    assert future["total"] == 0


@pytest.mark.asyncio
async def test_enqueue_command_for_one_device(async_client: AsyncClient) -> None:
    response = await async_client.post(
        "/api/v1/commands/",
        json={"serial": "ABC123", "kind": "set-user-pin", "payload": {"pin": 41038, "name": "Juan"}},
    )

    assert response.status_code == 202
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["status"] == "PENDING"
    assert data["items"][0]["id"] is None
    assert data["items"][0]["payload"] == {"pin": "41038", "name": "Juan"}

    poll = await async_client.get("/iclock/getrequest", params={"SN": "ABC123"})
    assert poll.text.endswith("PIN=41038 Name=Juan Pri=0 Passwd= Card= Grp=1 TZ=0000000000000000")


@pytest.mark.asyncio
async def test_set_pin_broadcast(async_client: AsyncClient, gateway: ProtocolHandler) -> None:
    empty = await async_client.post("/api/v1/commands/set-pin", json={"pin": "1", "name": "Ana"})
    assert empty.status_code == 404

    await register(async_client, "A")
    await register(async_client, "B")
    response = await async_client.post(
        "/api/v1/commands/set-pin", json={"serial": "any", "pin": "1", "name": "Ana"}
    )

    assert response.status_code == 202
    assert sorted(c["device_serial"] for c in response.json()["items"]) == ["A", "B"]
    assert len(gateway.list_commands()) == 2


@pytest.mark.asyncio
async def test_enqueue_rejects_bad_input(async_client: AsyncClient) -> None:
    missing = await async_client.post(
        "/api/v1/commands/", json={"serial": "S", "kind": "set-user-pin", "payload": {"pin": "1"}}
    )
    unknown = await async_client.post("/api/v1/commands/", json={"serial": "S", "kind": "format"})

    assert missing.status_code == 422
    assert unknown.status_code == 422


@pytest.mark.asyncio
async def test_list_commands_after_delivery(async_client: AsyncClient) -> None:
    await async_client.post("/api/v1/commands/", json={"serial": "S", "kind": "reboot"})
    await async_client.get("/iclock/getrequest", params={"SN": "S"})

    data = (await async_client.get("/api/v1/commands/", params={"serial": "S"})).json()
    assert data["total"] == 1
    assert data["items"][0]["status"] == "SENT"
    assert data["items"][0]["id"] == "1"


@pytest.mark.asyncio
async def test_stats_and_info(async_client: AsyncClient) -> None:
    await async_client.post("/iclock/cdata", params={"SN": "A", "table": "ATTLOG"}, content=ATTLOG)
    await async_client.post("/api/v1/commands/", json={"serial": "A", "kind": "info"})

    stats = (await async_client.get("/api/v1/stats/")).json()
    assert stats["devices"] == 1
    assert stats["records"] == 2
    assert stats["commands"]["PENDING"] == 1

    info = (await async_client.get("/info")).json()
    assert info["status"] == "ok"
    assert info["devices"] == 1
    assert info["records"] == 2


@pytest.mark.asyncio
async def test_root_pin_sets_and_delete_clears_fallback(
    async_client: AsyncClient, gateway: ProtocolHandler
) -> None:
    root = await async_client.get("/", params={"pin": "41038"})
    assert root.json()["tenant_id"] == "41038"
    assert gateway.tenants.fallback == "41038"

    cleared = await async_client.delete("/pin")
    assert cleared.json() == {"tenant_id": None}
    assert gateway.tenants.fallback is None
