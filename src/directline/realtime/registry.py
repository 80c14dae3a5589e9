"""Connection registry — which user is online, and on which connection.

Learn: This is the only shared mutable state in the process. Connection
tasks write to it (register on a "register" frame, unregister on close)
while request handlers read from it (dispatching a freshly sent message).
Every operation takes the same lock, so a registration can never interleave
with a disconnect scan and leave a stale entry behind.

The lock is a threading.Lock rather than an asyncio.Lock: nothing here
awaits, the critical sections are a dict access or a short scan, and the
registry stays safe when the app is driven from another thread (tests).

Nothing is persisted. After a restart every user is offline until their
client reconnects and registers again.
"""

import threading
from typing import Generic, Hashable, TypeVar

import structlog

logger = structlog.get_logger()

H = TypeVar("H")


class ConnectionRegistry(Generic[H]):
    """Maps user id → live connection handle, at most one handle per user.

    Handles are held by reference only; opening and closing the underlying
    transport is the connection's own business.
    """

    def __init__(self) -> None:
        self._entries: dict[int, H] = {}
        self._lock = threading.Lock()

    def register(self, user_id: int, handle: H) -> None:
        """Insert or replace the handle for `user_id`.

        A replaced handle is not closed; the registry simply stops
        pointing at it.
        """
        with self._lock:
            previous = self._entries.get(user_id)
            self._entries[user_id] = handle
        if previous is not None and previous is not handle:
            logger.info("registry.replaced", user_id=user_id)

    def lookup(self, user_id: int) -> H | None:
        with self._lock:
            return self._entries.get(user_id)

    def unregister(self, handle: H) -> list[int]:
        """Remove every entry pointing at `handle`. Returns the user ids removed."""
        with self._lock:
            removed = [uid for uid, h in self._entries.items() if h is handle]
            for uid in removed:
                del self._entries[uid]
        return removed

    def online_user_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, user_id: Hashable) -> bool:
        with self._lock:
            return user_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Singleton — one registry per process
connection_registry: ConnectionRegistry = ConnectionRegistry()
