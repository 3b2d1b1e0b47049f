"""Python client for the realtime gateway.

One ``RealtimeClient`` per logical session; nothing is shared at module
level. Handlers may be plain callables or coroutine functions and receive the
event's ``data`` payload.
"""
from __future__ import annotations

import asyncio
import inspect
import json
import logging
from types import TracebackType
from typing import Any, Awaitable, Callable, Self

import websockets
from websockets.exceptions import ConnectionClosed

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[None] | None]

# Dispatched locally when the server side goes away.
DISCONNECT_EVENT = "disconnect"


class RealtimeClient:
    def __init__(
        self,
        url: str,
        *,
        connect: Callable[..., Awaitable[Any]] = websockets.connect,
    ) -> None:
        self._url = url
        self._connect = connect
        self._ws: Any = None
        self._reader: asyncio.Task[None] | None = None
        self._handlers: dict[str, list[Handler]] = {}

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        if self._ws is not None:
            return
        self._ws = await self._connect(self._url)
        self._reader = asyncio.create_task(self._read_loop(self._ws), name="realtime-client-reader")
        logger.info("Connected to %s", self._url)

    async def disconnect(self) -> None:
        ws, self._ws = self._ws, None
        reader, self._reader = self._reader, None
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass
        if ws is not None:
            await ws.close()
            logger.info("Disconnected from %s", self._url)

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    def on(self, event: str, handler: Handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Handler | None = None) -> None:
        """Remove one handler, or every handler for the event."""
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, event: str, data: Any = None) -> None:
        if self._ws is None:
            raise RuntimeError("Realtime client is not connected")
        await self._ws.send(json.dumps({"event": event, "data": data}))

    async def authenticate(self, email: str = "", token: str | None = None) -> None:
        await self.emit("authenticate", {"email": email, "token": token})

    async def send_message(self, to_user_id: int, message: str, type: str = "text") -> None:
        await self.emit("send_message", {"toUserId": to_user_id, "message": message, "type": type})

    async def mark_messages_read(self, from_user_id: int) -> None:
        await self.emit("mark_messages_read", {"fromUserId": from_user_id})

    async def notify_supervisor_allocated(self, client_id: int, supervisor_id: int) -> None:
        await self.emit(
            "supervisor_allocated",
            {"clientId": client_id, "supervisorId": supervisor_id},
        )

    async def _read_loop(self, ws: Any) -> None:
        try:
            async for raw in ws:
                try:
                    frame = json.loads(raw)
                    event = frame["event"]
                except (ValueError, KeyError, TypeError):
                    logger.warning("Dropping malformed frame: %r", raw)
                    continue
                await self._dispatch(event, frame.get("data"))
        except ConnectionClosed as exc:
            logger.info("Connection closed by server: %s", exc)

        if self._ws is ws:
            self._ws = None
            self._reader = None
            await self._dispatch(DISCONNECT_EVENT, None)

    async def _dispatch(self, event: str, data: Any) -> None:
        for handler in list(self._handlers.get(event, ())):
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Handler for %s failed", event)
