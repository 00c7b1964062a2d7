"""Message lookup and creation."""
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from . import chat_service
from .logging_config import get_logger
from .models import Message

MAX_MESSAGE_LENGTH = 2000

logger = get_logger("messages")


def get_message(db: Session, message_id: int) -> Message:
    message = db.get(Message, message_id)
    if not message:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Message not found")
    return message


def get_messages(db: Session, chat_id: str, skip: int = 0, limit: int = 100) -> list[Message]:
    return (
        db.query(Message)
        .filter(Message.chat_id == chat_id)
        .order_by(Message.timestamp, Message.id)
        .offset(skip)
        .limit(limit)
        .all()
    )


def create_message(db: Session, chat_id: str, sender_id: str, content: str) -> Message:
    chat_service.require_member(db, chat_id, sender_id)
    if content is not None and not isinstance(content, str):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Message content has to be text")
    content = (content or "").strip()
    if not content:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Message content is required")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            f"Message is too long ({len(content)} > {MAX_MESSAGE_LENGTH} characters)",
        )

    message = Message(chat_id=chat_id, sender_id=sender_id, content=content)
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info(
        "MESSAGE_SENT sender_id=%s chat_id=%s message_id=%s",
        sender_id,
        chat_id,
        message.id,
    )
    return message
