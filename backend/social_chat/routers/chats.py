"""Chat and chat message routes."""
from typing import List

from anyio import from_thread
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import chat_service, message_service, realtime
from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..schemas import ChatCreate, ChatRead, MessageCreate, MessageRead

router = APIRouter(prefix="/chats", tags=["chats"])


@router.get("", response_model=List[ChatRead])
def list_chats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return chat_service.get_user_chats(db, current_user.id)


@router.post("", response_model=ChatRead)
def create_chat(
    chat: ChatCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return chat_service.create_chat(db, current_user, chat.member_ids, chat.name)


@router.get("/{chat_id}", response_model=ChatRead)
def get_chat(
    chat_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return chat_service.require_member(db, chat_id, current_user.id)


# --- MESSAGES ---
@router.get("/{chat_id}/messages", response_model=List[MessageRead])
def read_messages(
    chat_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    chat_service.require_member(db, chat_id, current_user.id)
    return message_service.get_messages(db, chat_id, skip=skip, limit=limit)


@router.post("/{chat_id}/messages", response_model=MessageRead)
def send_message(
    chat_id: str,
    msg: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    message = message_service.create_message(db, chat_id, current_user.id, msg.content)
    # sync routes run in a worker thread; hand the emit back to the event loop
    from_thread.run(realtime.broadcast_message, message)
    return message


@router.get("/{chat_id}/messages/{message_id}", response_model=MessageRead)
def read_message(
    chat_id: str,
    message_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    chat_service.require_member(db, chat_id, current_user.id)
    message = message_service.get_message(db, message_id)
    if message.chat_id != chat_id:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Message not found")
    return message
