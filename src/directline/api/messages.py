"""Message and conversation API routes.

Learn: POST /messages is the only write. It stores the message, then
hands it to the dispatcher; the response depends only on the store.
The two GET routes are read models over the same table.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from directline.db.engine import get_db
from directline.realtime.dispatcher import NotificationDispatcher, dispatcher
from directline.schemas.message import (
    ConversationMessageRead,
    ConversationSummaryRead,
    MessageCreate,
    MessageRead,
)
from directline.services.errors import StoreUnavailableError, ValidationError
from directline.services.message_service import MessageService

router = APIRouter()


def get_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency — the process-wide dispatcher."""
    return dispatcher


def _svc(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_dispatcher),
) -> MessageService:
    return MessageService(db, dispatcher=notifier)


@router.post("/messages", response_model=MessageRead)
async def send_message(body: MessageCreate, svc: MessageService = Depends(_svc)):
    """Store a message and push it to the recipient if they're online."""
    try:
        return await svc.send_message(
            sender_id=body.sender_id,
            recipient_id=body.recipient_id,
            body=body.body,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/messages/{user_a}/{user_b}", response_model=list[ConversationMessageRead])
async def get_conversation(user_a: int, user_b: int, svc: MessageService = Depends(_svc)):
    """Every message between two users, oldest first."""
    try:
        return await svc.get_conversation(user_a, user_b)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/conversations/{user_id}", response_model=list[ConversationSummaryRead])
async def list_conversations(user_id: int, svc: MessageService = Depends(_svc)):
    """Latest message with each contact, most recent contact first."""
    try:
        return await svc.get_conversation_summaries(user_id)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
