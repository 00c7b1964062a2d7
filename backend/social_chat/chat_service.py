"""Chat lookup, membership and creation."""
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from .config import get_settings
from .logging_config import get_logger
from .models import Chat, User

logger = get_logger("chats")


def ensure_global_chat(db: Session) -> Chat:
    """Return the global chat, creating it on first use. Does not commit."""
    chat_id = get_settings().GLOBAL_CHAT_ID
    chat = db.get(Chat, chat_id)
    if chat is None:
        chat = Chat(id=chat_id, name="Global", is_group=True)
        db.add(chat)
        db.flush()
        logger.info("GLOBAL_CHAT_CREATED chat_id=%s", chat_id)
    return chat


def get_chat(db: Session, chat_id: str) -> Chat:
    chat = db.get(Chat, chat_id)
    if not chat:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Chat not found")
    return chat


def is_member(chat: Chat, user_id: str) -> bool:
    return any(member.id == user_id for member in chat.members)


def require_member(db: Session, chat_id: str, user_id: str) -> Chat:
    chat = get_chat(db, chat_id)
    if not is_member(chat, user_id):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "You are not a member of this chat")
    return chat


def get_user_chats(db: Session, user_id: str) -> list[Chat]:
    return (
        db.query(Chat)
        .filter(Chat.members.any(User.id == user_id))
        .order_by(Chat.created_at)
        .all()
    )


def _find_direct_chat(db: Session, user_a: str, user_b: str) -> Chat | None:
    candidates = (
        db.query(Chat)
        .filter(Chat.is_group.is_(False))
        .filter(Chat.members.any(User.id == user_a))
        .filter(Chat.members.any(User.id == user_b))
        .all()
    )
    for chat in candidates:
        if {m.id for m in chat.members} == {user_a, user_b}:
            return chat
    return None


def create_chat(db: Session, creator: User, member_ids: list[str], name: str | None = None) -> Chat:
    """
    Create a chat containing ``creator`` and ``member_ids``.

    Two members and no name make a direct chat; an existing direct chat
    between the same pair is returned instead of a duplicate.
    """
    ids = [creator.id] + [m for m in dict.fromkeys(member_ids) if m != creator.id]
    members = db.query(User).filter(User.id.in_(ids)).all()
    found = {m.id for m in members}
    missing = [m for m in ids if m not in found]
    if missing:
        raise HTTPException(status.HTTP_404_NOT_FOUND, f"User not found: {missing[0]}")

    if len(ids) == 2 and not name:
        existing = _find_direct_chat(db, ids[0], ids[1])
        if existing:
            return existing
        chat = Chat(is_group=False, members=members)
    else:
        if len(ids) < 2:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "A chat needs at least one other member")
        chat = Chat(name=name, is_group=True, members=members)

    db.add(chat)
    db.commit()
    db.refresh(chat)
    logger.info("CHAT_CREATED chat_id=%s creator_id=%s members=%s", chat.id, creator.id, len(ids))
    return chat
