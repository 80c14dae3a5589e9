"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Two tables: the user directory and the append-only message log.

Key concepts:
- Integer identity keys (the ids clients see and register with over WebSocket)
- A unique constraint on handle, so duplicate registration is rejected by
  the database itself, even between concurrent writers
- Foreign keys from messages to users for referential integrity
"""

from datetime import datetime, timezone

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# Range of the Integer id columns (int4 on PostgreSQL)
ID_MIN = -(2**31)
ID_MAX = 2**31 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A person who can send and receive messages.

    Learn: `handle` is the external identifier, such as a phone number.
    `id` is system-assigned and is what messages and WebSocket
    registrations reference.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    handle: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Message(Base):
    """A direct message from one user to another.

    Learn: Messages are immutable. There is no update or delete path.
    `sent_at` is assigned when the row is built for insert, with
    sub-second precision so ordering is meaningful within a conversation.
    """

    __tablename__ = "messages"
    __table_args__ = (
        Index("idx_messages_sender_recipient", "sender_id", "recipient_id"),
        Index("idx_messages_recipient_sender", "recipient_id", "sender_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    recipient_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Relationships
    sender: Mapped["User"] = relationship(foreign_keys=[sender_id])
    recipient: Mapped["User"] = relationship(foreign_keys=[recipient_id])
