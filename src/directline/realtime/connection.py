"""Per-connection lifecycle: CONNECTED → REGISTERED → CLOSED.

Learn: Instead of mutating the registry from scattered socket callbacks,
each live connection is a small state machine fed explicit events:

    Opened             → CONNECTED
    Registered(uid)    → REGISTERED, registry.register(uid, self)
    Closed             → CLOSED,     registry.unregister(self)

A connection may register several times, possibly under different user
ids. Each registration only touches the entry for its own id, so the old
id keeps pointing here until the connection closes. CLOSED is terminal:
later events are ignored.
"""

import asyncio
import enum
from dataclasses import dataclass
from typing import Protocol

import structlog
from starlette.websockets import WebSocketDisconnect, WebSocketState

from directline.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()


class ConnectionState(str, enum.Enum):
    CONNECTED = "connected"
    REGISTERED = "registered"
    CLOSED = "closed"


@dataclass(frozen=True)
class Opened:
    pass


@dataclass(frozen=True)
class Registered:
    user_id: int


@dataclass(frozen=True)
class Closed:
    pass


ConnectionEvent = Opened | Registered | Closed


class Transport(Protocol):
    """The slice of a Starlette WebSocket a live connection needs."""

    client_state: WebSocketState
    application_state: WebSocketState

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class LiveConnection:
    """A client's open socket plus the user ids it has registered as."""

    def __init__(self, transport: Transport, registry: ConnectionRegistry):
        self.transport = transport
        self.registry = registry
        self.state = ConnectionState.CONNECTED
        self.user_ids: list[int] = []

    def apply(self, event: ConnectionEvent) -> ConnectionState:
        """Advance the state machine and mirror the change into the registry."""
        if self.state is ConnectionState.CLOSED:
            return self.state

        if isinstance(event, Opened):
            self.state = ConnectionState.CONNECTED
        elif isinstance(event, Registered):
            self.registry.register(event.user_id, self)
            if event.user_id not in self.user_ids:
                self.user_ids.append(event.user_id)
            self.state = ConnectionState.REGISTERED
            logger.info("connection.registered", user_id=event.user_id)
        elif isinstance(event, Closed):
            removed = self.registry.unregister(self)
            self.state = ConnectionState.CLOSED
            for user_id in removed:
                logger.info("connection.closed", user_id=user_id)
        else:
            raise TypeError(f"Unknown connection event: {event!r}")
        return self.state

    @property
    def writable(self) -> bool:
        """True while both ends still consider the socket open."""
        return (
            self.state is not ConnectionState.CLOSED
            and self.transport.client_state == WebSocketState.CONNECTED
            and self.transport.application_state == WebSocketState.CONNECTED
        )

    async def push(self, data: str) -> None:
        await self.transport.send_text(data)

    async def abort(self, timeout: float) -> None:
        """Drop the connection after a failed push.

        Learn: A push that timed out was cancelled mid-send, so the socket
        may hold half a frame. The connection is unregistered first, then
        closed with 1011 so the client knows to reconnect and reload.
        """
        self.apply(Closed())
        try:
            await asyncio.wait_for(self.transport.close(code=1011), timeout=timeout)
        except (asyncio.TimeoutError, WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.debug("connection.abort_close_failed", reason=type(e).__name__)
