"""Pydantic schemas for messages and conversation summaries.

Learn: MessageRead is used twice, as the POST /messages response and as
the WebSocket frame pushed to the recipient, so both carry exactly the
same id, body and timestamp.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_camel = ConfigDict(
    alias_generator=to_camel, populate_by_name=True, from_attributes=True
)


class MessageCreate(BaseModel):
    sender_id: int
    recipient_id: int
    body: str = Field(..., min_length=1)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageRead(BaseModel):
    id: int
    sender_id: int
    recipient_id: int
    body: str
    sent_at: datetime

    model_config = _camel


class ConversationMessageRead(MessageRead):
    """A message inside a conversation, with both display names."""
    sender_name: str
    recipient_name: str


class ConversationSummaryRead(BaseModel):
    counterparty_id: int
    counterparty_name: str
    last_message: str
    sent_at: datetime

    model_config = _camel
