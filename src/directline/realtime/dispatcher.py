"""Notification dispatcher — best-effort push of new messages.

Learn: Dispatch is fire-and-forget. If the recipient has no registered
connection, or the socket is no longer writable, nothing happens: no queue,
no retry, no error for the sender. The message is already in the database,
so the recipient's client catches up through GET /messages the next time
it loads the conversation.

A push is bounded by `push_timeout_seconds` so a stuck socket can never
hold up the request that sent the message. A push that fails or times out
drops the connection: it is unregistered and closed, and the client
reconnects and reloads the conversation.
"""

import asyncio

import structlog
from starlette.websockets import WebSocketDisconnect

from directline.config import settings
from directline.db.models import Message
from directline.realtime.registry import ConnectionRegistry, connection_registry
from directline.schemas.message import MessageRead

logger = structlog.get_logger()


def serialize_message(message: Message) -> str:
    """JSON frame for a message, identical to the POST /messages body."""
    return MessageRead.model_validate(message).model_dump_json(by_alias=True)


class NotificationDispatcher:
    """Pushes persisted messages to their recipient's live connection."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        timeout: float | None = None,
    ):
        self.registry = registry
        self.timeout = timeout if timeout is not None else settings.push_timeout_seconds

    async def notify(self, message: Message) -> bool:
        """Push `message` to its recipient. Returns True only if it was sent."""
        connection = self.registry.lookup(message.recipient_id)
        if connection is None or not connection.writable:
            logger.debug(
                "message.dispatch_skipped",
                message_id=message.id,
                recipient_id=message.recipient_id,
                reason="offline" if connection is None else "not_writable",
            )
            return False

        try:
            await asyncio.wait_for(
                connection.push(serialize_message(message)), timeout=self.timeout
            )
        except (asyncio.TimeoutError, WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.debug(
                "message.dispatch_skipped",
                message_id=message.id,
                recipient_id=message.recipient_id,
                reason=type(e).__name__,
            )
            await connection.abort(self.timeout)
            return False

        logger.info(
            "message.dispatched",
            message_id=message.id,
            recipient_id=message.recipient_id,
        )
        return True


# Singleton — shares the process-wide registry
dispatcher = NotificationDispatcher(connection_registry)
