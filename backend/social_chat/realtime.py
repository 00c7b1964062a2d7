"""Socket.IO events: chat rooms and live message relay."""
import socketio
from fastapi import HTTPException
from pydantic import ValidationError

from . import auth as _auth_module
from . import chat_service, message_service
from .config import get_settings
from .database import SessionLocal
from .logging_config import get_logger
from .models import Message, User
from .schemas import MessageCreate, MessageRead

logger = get_logger("realtime")

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=get_settings().CORS_ORIGINS)


def _chat_id(data) -> str | None:
    if isinstance(data, dict):
        return data.get("chatid") or data.get("chatId")
    if isinstance(data, str):
        return data
    return None


def message_payload(message: Message) -> dict:
    return MessageRead.model_validate(message).model_dump(mode="json")


async def broadcast_message(message: Message) -> None:
    await sio.emit("message", message_payload(message), to=message.chat_id)


@sio.event
async def connect(sid, environ, auth_data=None):
    token = auth_data.get("token") if auth_data else None
    if not token:
        return False
    user_id = _auth_module.decode_access_token(token)
    if not user_id:
        return False

    db = SessionLocal()
    try:
        known = db.get(User, user_id) is not None
    finally:
        db.close()
    if not known:
        logger.warning("SOCKET_REJECTED sid=%s user_id=%s", sid, user_id)
        return False

    await sio.save_session(sid, {"user_id": user_id})
    logger.info("SOCKET_CONNECTED sid=%s user_id=%s", sid, user_id)
    return True


@sio.on("joinChat")
async def join_chat(sid, data):
    sess = await sio.get_session(sid)
    chat_id = _chat_id(data)
    if not chat_id:
        await sio.emit("error", "chatid is required", to=sid)
        return

    db = SessionLocal()
    try:
        chat_service.require_member(db, chat_id, sess["user_id"])
    except HTTPException as exc:
        await sio.emit("error", exc.detail, to=sid)
        return
    finally:
        db.close()

    await sio.enter_room(sid, chat_id)
    await sio.emit("joinedChat", {"chatid": chat_id}, to=sid)
    logger.info("CHAT_JOINED sid=%s user_id=%s chat_id=%s", sid, sess["user_id"], chat_id)


@sio.on("leaveChat")
async def leave_chat(sid, data):
    chat_id = _chat_id(data)
    if chat_id:
        await sio.leave_room(sid, chat_id)


@sio.on("sendMessage")
async def send_message(sid, data):
    sess = await sio.get_session(sid)
    chat_id = _chat_id(data)
    if not chat_id:
        await sio.emit("error", "chatid is required", to=sid)
        return
    try:
        content = MessageCreate.model_validate(data).content
    except ValidationError:
        await sio.emit("error", "Message content has to be text", to=sid)
        return

    db = SessionLocal()
    try:
        message = message_service.create_message(db, chat_id, sess["user_id"], content)
        payload = message_payload(message)
    except HTTPException as exc:
        await sio.emit("error", exc.detail, to=sid)
        return
    finally:
        db.close()

    await sio.emit("message", payload, to=chat_id)


@sio.event
async def disconnect(sid):
    logger.info("SOCKET_DISCONNECTED sid=%s", sid)
