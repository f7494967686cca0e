"""WebSocket fan-out: initial snapshot, broadcast, heartbeat, dropping bad clients."""
import asyncio

import pytest

from app.services.live.hub import BroadcastHub


class FakeSocket:
    def __init__(self):
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_text(self, data):
        self.sent.append(data)


class BrokenSocket(FakeSocket):
    async def send_text(self, data):
        raise RuntimeError("connection reset")


class StuckSocket(FakeSocket):
    async def send_text(self, data):
        await asyncio.sleep(10)


class CountingSnapshot:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return f"snapshot-{self.calls}"


@pytest.fixture
def snapshot():
    return CountingSnapshot()


@pytest.fixture
def hub(snapshot):
    return BroadcastHub(snapshot, send_timeout=0.05)


@pytest.mark.asyncio
async def test_connect_sends_snapshot_to_new_client_only(hub):
    first, second = FakeSocket(), FakeSocket()
    await hub.connect(first)
    await hub.connect(second)
    assert first.accepted and second.accepted
    assert first.sent == ["snapshot-1"]
    assert second.sent == ["snapshot-2"]
    assert hub.client_count == 2


@pytest.mark.asyncio
async def test_broadcast_computes_snapshot_once(hub, snapshot):
    clients = [FakeSocket() for _ in range(3)]
    for c in clients:
        await hub.connect(c)
    before = snapshot.calls
    assert await hub.broadcast() == 3
    assert snapshot.calls == before + 1
    assert all(c.sent[-1] == f"snapshot-{before + 1}" for c in clients)


@pytest.mark.asyncio
async def test_broadcast_without_clients_skips_snapshot(hub, snapshot):
    assert await hub.broadcast() == 0
    assert snapshot.calls == 0


@pytest.mark.asyncio
async def test_failing_client_is_dropped_others_still_receive(hub):
    good = FakeSocket()
    await hub.connect(good)
    broken = BrokenSocket()
    await hub.connect(broken)
    assert hub.client_count == 1  # dropped on the initial send

    stuck = StuckSocket()
    hub._clients.add(stuck)
    assert await hub.broadcast() == 1
    assert hub.client_count == 1
    assert len(good.sent) == 2


@pytest.mark.asyncio
async def test_heartbeat_pings_every_client(hub):
    a, b = FakeSocket(), FakeSocket()
    await hub.connect(a)
    await hub.connect(b)
    assert await hub.heartbeat() == 2
    assert a.sent[-1] == "ping"
    assert b.sent[-1] == "ping"


@pytest.mark.asyncio
async def test_disconnected_client_gets_nothing(hub):
    a, b = FakeSocket(), FakeSocket()
    await hub.connect(a)
    await hub.connect(b)
    hub.disconnect(a)
    await hub.broadcast()
    assert len(a.sent) == 1
    assert len(b.sent) == 2
