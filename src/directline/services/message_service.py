"""Message service — sending, conversations, and per-contact summaries.

Learn: This is the read/write core of the store. Three queries matter:
1. Insert a message (after checking both users exist)
2. Load one conversation: every message between A and B, oldest first
3. Summarize a user's inbox: the latest message per counterparty,
   most recently contacted first

The summary is a "first row per group" query. PostgreSQL has DISTINCT ON
for this, but ROW_NUMBER() over a partition expresses the same thing,
lets us pin a tie-break on message id, and also runs on SQLite.
"""

from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from directline.db.models import ID_MAX, ID_MIN, Message, User
from directline.realtime.dispatcher import NotificationDispatcher
from directline.services.errors import StoreUnavailableError, ValidationError

logger = structlog.get_logger()


def _storable(user_id: int) -> bool:
    """Ids outside the column range cannot belong to any user."""
    return ID_MIN <= user_id <= ID_MAX


@dataclass(frozen=True)
class ConversationMessage:
    """A message with both participants' display names attached."""

    id: int
    sender_id: int
    recipient_id: int
    body: str
    sent_at: datetime
    sender_name: str
    recipient_name: str


@dataclass(frozen=True)
class ConversationSummary:
    """The latest exchange between a user and one counterparty."""

    counterparty_id: int
    counterparty_name: str
    last_message: str
    sent_at: datetime
    message_id: int


class MessageService:
    """Business logic for direct messages."""

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: NotificationDispatcher | None = None,
    ):
        self.db = db
        self.dispatcher = dispatcher

    async def create_message(
        self, sender_id: int, recipient_id: int, body: str
    ) -> Message:
        """Persist a message. Both users must exist and body must not be blank."""
        if not body or not body.strip():
            raise ValidationError("Message body must not be empty")

        wanted = {sender_id, recipient_id}
        found: set[int] = set()
        lookup = sorted(i for i in wanted if _storable(i))
        if lookup:
            try:
                result = await self.db.execute(
                    select(User.id).where(User.id.in_(lookup))
                )
            except SQLAlchemyError as e:
                logger.error("message.user_lookup_failed", error=str(e))
                raise StoreUnavailableError("Could not send message") from e
            found = set(result.scalars().all())
        missing = wanted - found
        if missing:
            raise ValidationError(
                f"Unknown user id(s): {', '.join(str(i) for i in sorted(missing))}"
            )

        msg = Message(sender_id=sender_id, recipient_id=recipient_id, body=body)
        self.db.add(msg)
        try:
            await self.db.flush()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ValidationError("Message references an unknown user") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("message.create_failed", error=str(e))
            raise StoreUnavailableError("Could not send message") from e

        logger.info(
            "message.created",
            message_id=msg.id,
            sender_id=sender_id,
            recipient_id=recipient_id,
        )
        return msg

    async def send_message(
        self, sender_id: int, recipient_id: int, body: str
    ) -> Message:
        """Persist a message, then push it to the recipient if they're online.

        Learn: Dispatch runs only after the commit succeeded, and its outcome
        never reaches the sender. The sender learns whether the message was
        stored, never whether it was delivered.
        """
        msg = await self.create_message(sender_id, recipient_id, body)
        if self.dispatcher is not None:
            await self.dispatcher.notify(msg)
        return msg

    async def get_conversation(
        self, user_a: int, user_b: int
    ) -> list[ConversationMessage]:
        """All messages between two users, oldest first.

        The result is the same whichever order the two ids are given in.
        """
        if not (_storable(user_a) and _storable(user_b)):
            return []
        sender = aliased(User)
        recipient = aliased(User)
        query = (
            select(
                Message,
                sender.name.label("sender_name"),
                recipient.name.label("recipient_name"),
            )
            .join(sender, Message.sender_id == sender.id)
            .join(recipient, Message.recipient_id == recipient.id)
            .where(
                or_(
                    and_(Message.sender_id == user_a, Message.recipient_id == user_b),
                    and_(Message.sender_id == user_b, Message.recipient_id == user_a),
                )
            )
            .order_by(Message.sent_at.asc(), Message.id.asc())
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error("conversation.load_failed", error=str(e))
            raise StoreUnavailableError("Could not load messages") from e

        return [
            ConversationMessage(
                id=msg.id,
                sender_id=msg.sender_id,
                recipient_id=msg.recipient_id,
                body=msg.body,
                sent_at=msg.sent_at,
                sender_name=sender_name,
                recipient_name=recipient_name,
            )
            for msg, sender_name, recipient_name in result.all()
        ]

    async def get_conversation_summaries(
        self, user_id: int
    ) -> list[ConversationSummary]:
        """Latest message per counterparty, most recently contacted first.

        Learn: For each message touching the user, the counterparty is
        whichever end isn't the user. Rows are ranked inside each
        counterparty group by (sent_at DESC, id DESC) and only rank 1 is
        kept. Equal timestamps resolve to the higher message id, both
        within a group and in the final ordering.
        """
        if not _storable(user_id):
            return []
        counterparty = case(
            (Message.sender_id == user_id, Message.recipient_id),
            else_=Message.sender_id,
        )
        ranked = (
            select(
                counterparty.label("counterparty_id"),
                Message.id.label("message_id"),
                Message.body.label("body"),
                Message.sent_at.label("sent_at"),
                func.row_number()
                .over(
                    partition_by=counterparty,
                    order_by=[Message.sent_at.desc(), Message.id.desc()],
                )
                .label("row_rank"),
            )
            .where(or_(Message.sender_id == user_id, Message.recipient_id == user_id))
            .subquery()
        )
        query = (
            select(
                ranked.c.counterparty_id,
                User.name.label("counterparty_name"),
                ranked.c.body,
                ranked.c.sent_at,
                ranked.c.message_id,
            )
            .select_from(ranked)
            .join(User, User.id == ranked.c.counterparty_id)
            .where(ranked.c.row_rank == 1)
            .order_by(ranked.c.sent_at.desc(), ranked.c.message_id.desc())
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error("conversation.summary_failed", user_id=user_id, error=str(e))
            raise StoreUnavailableError("Could not load conversations") from e

        return [
            ConversationSummary(
                counterparty_id=row.counterparty_id,
                counterparty_name=row.counterparty_name,
                last_message=row.body,
                sent_at=row.sent_at,
                message_id=row.message_id,
            )
            for row in result.all()
        ]
