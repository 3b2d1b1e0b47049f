from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from sehra_realtime.client.realtime_client import RealtimeClient


class FakeServerSocket:
    """Stands in for a websockets client connection."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._inbox: asyncio.Queue[str | None] = asyncio.Queue()

    async def send(self, raw: str) -> None:
        self.sent.append(json.loads(raw))

    async def close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(None)

    def push(self, event: str, data: Any) -> None:
        self._inbox.put_nowait(json.dumps({"event": event, "data": data}))

    def push_raw(self, raw: str) -> None:
        self._inbox.put_nowait(raw)

    def hang_up(self) -> None:
        self._inbox.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        raw = await self._inbox.get()
        if raw is None:
            raise StopAsyncIteration
        return raw


@pytest.fixture
def socket() -> FakeServerSocket:
    return FakeServerSocket()


@pytest.fixture
def client(socket) -> RealtimeClient:
    async def _connect(url: str) -> FakeServerSocket:
        assert url == "ws://sehra.test/ws"
        return socket

    return RealtimeClient("ws://sehra.test/ws", connect=_connect)


async def _drain() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_helpers_emit_wire_frames(client, socket):
    async with client:
        await client.authenticate("bride@sehra.test", token="jwt")
        await client.send_message(2, "Hello", type="image")
        await client.mark_messages_read(2)
        await client.notify_supervisor_allocated(10, 2)

    assert socket.sent == [
        {"event": "authenticate", "data": {"email": "bride@sehra.test", "token": "jwt"}},
        {"event": "send_message", "data": {"toUserId": 2, "message": "Hello", "type": "image"}},
        {"event": "mark_messages_read", "data": {"fromUserId": 2}},
        {"event": "supervisor_allocated", "data": {"clientId": 10, "supervisorId": 2}},
    ]
    assert socket.closed is True
    assert client.connected is False


@pytest.mark.asyncio
async def test_handlers_receive_event_data(client, socket):
    seen: list[Any] = []
    seen_async: list[Any] = []

    async def _async_handler(data):
        seen_async.append(data)

    client.on("unread_count", seen.append)
    client.on("unread_count", _async_handler)
    await client.connect()

    socket.push("unread_count", {"count": 3})
    socket.push("receive_message", {"id": 1})
    await _drain()

    assert seen == [{"count": 3}]
    assert seen_async == [{"count": 3}]
    await client.disconnect()


@pytest.mark.asyncio
async def test_off_removes_handlers(client, socket):
    seen: list[Any] = []
    client.on("error", seen.append)
    client.off("error", seen.append)
    client.on("authenticated", seen.append)
    client.off("authenticated")
    await client.connect()

    socket.push("error", "boom")
    socket.push("authenticated", {"success": True})
    await _drain()

    assert seen == []
    await client.disconnect()


@pytest.mark.asyncio
async def test_bad_frames_and_failing_handlers_do_not_stop_reader(client, socket):
    seen: list[Any] = []

    def _broken(_data):
        raise ValueError("handler bug")

    client.on("unread_count", _broken)
    client.on("unread_count", seen.append)
    await client.connect()

    socket.push_raw("not json")
    socket.push("unread_count", {"count": 1})
    await _drain()

    assert seen == [{"count": 1}]
    await client.disconnect()


@pytest.mark.asyncio
async def test_server_hangup_fires_disconnect(client, socket):
    gone: list[Any] = []
    client.on("disconnect", gone.append)
    await client.connect()

    socket.hang_up()
    await _drain()

    assert gone == [None]
    assert client.connected is False


@pytest.mark.asyncio
async def test_emit_requires_connection(client):
    with pytest.raises(RuntimeError):
        await client.emit("authenticate", {"email": "x"})
