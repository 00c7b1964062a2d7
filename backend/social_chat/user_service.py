"""
User operations: lookup, registration, friendships, settings and avatars.

Every function takes the request's SQLAlchemy session and commits at most
once, so a friendship change or a settings batch is a single transaction.
Failures are raised as ``HTTPException`` and surface unchanged to the client.
"""
import shutil
import uuid
from pathlib import Path
from typing import Any, BinaryIO, Literal

from fastapi import HTTPException, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, selectinload

from . import auth, chat_service
from .config import get_settings
from .logging_config import get_logger
from .models import Friend, FriendRequest, Settings, User
from .schemas import UserCreate

SEARCH_LIMIT = 30

DEFAULT_SETTINGS = {"language": "en", "theme": "light", "notifications": True}
PROTECTED_SETTINGS = {"id", "user_id"}

FriendState = Literal["none", "pending_sent", "pending_received", "friends"]

logger = get_logger("users")


# --- Lookup ---

def _relation_options(friends: bool, chats: bool, settings: bool) -> list:
    options = []
    if chats:
        options.append(selectinload(User.chats))
    if friends:
        options += [
            selectinload(User.friends),
            selectinload(User.friend_requests_sent),
            selectinload(User.friend_requests_received),
        ]
    if settings:
        options.append(selectinload(User.settings))
    return options


def get_user(
    db: Session,
    user_id: str | None,
    friends: bool = False,
    chats: bool = False,
    settings: bool = False,
) -> User:
    user = (
        db.query(User)
        .options(*_relation_options(friends, chats, settings))
        .filter(User.id == user_id)
        .first()
    )
    if not user:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return user


def get_users_like(
    db: Session,
    like: str | None,
    friends: bool = False,
    chats: bool = False,
    settings: bool = False,
) -> list[User]:
    """Case-insensitive substring search over name and username."""
    if not like:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Parameter 'like' is required")
    escaped = like.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return (
        db.query(User)
        .options(*_relation_options(friends, chats, settings))
        .filter(or_(User.name.ilike(pattern, escape="\\"), User.username.ilike(pattern, escape="\\")))
        .order_by(User.username)
        .limit(SEARCH_LIMIT)
        .all()
    )


# --- Registration ---

def is_data_already_used(db: Session, username: str, email: str) -> tuple[bool, str]:
    if db.query(User).filter(User.username == username).first():
        return True, "Username already exists"
    if db.query(User).filter(User.email == email).first():
        return True, "Email already exists"
    return False, ""


def create_user(db: Session, payload: UserCreate) -> User:
    username = payload.username.strip().lower()
    email = payload.email.strip().lower()
    if not username:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Username is required")
    already_used, msg = is_data_already_used(db, username, email)
    if already_used:
        raise HTTPException(status.HTTP_409_CONFLICT, msg)

    language = payload.settings.language if payload.settings else None
    user = User(
        username=username,
        name=payload.name,
        email=email,
        password=auth.get_password_hash(payload.password),
        image="",
    )
    user.settings = Settings(**{**DEFAULT_SETTINGS, "language": language or DEFAULT_SETTINGS["language"]})
    user.chats = [chat_service.ensure_global_chat(db)]
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("USER_REGISTERED user_id=%s username=%s", user.id, user.username)
    return user


# --- Friends ---

def _pending(db: Session, from_id: str, to_id: str) -> FriendRequest | None:
    return db.query(FriendRequest).filter_by(from_user_id=from_id, to_user_id=to_id).first()


def _are_friends(db: Session, a: str, b: str) -> bool:
    return db.query(Friend).filter_by(user_id=a, friend_id=b).first() is not None


def friendship_state(db: Session, user_id: str, other_id: str) -> FriendState:
    """State of the pair as seen from ``user_id``."""
    if _are_friends(db, user_id, other_id):
        return "friends"
    if _pending(db, user_id, other_id):
        return "pending_sent"
    if _pending(db, other_id, user_id):
        return "pending_received"
    return "none"


def _load_pair(db: Session, user_id: str, friend_id: str | None) -> tuple[User, User]:
    if friend_id is None:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "friendId is required")
    return get_user(db, user_id), get_user(db, friend_id)


def _make_friends(db: Session, request: FriendRequest) -> None:
    """Turn a pending request into a friendship in the current transaction."""
    a, b = request.from_user_id, request.to_user_id
    db.delete(request)
    reverse = _pending(db, b, a)
    if reverse:
        db.delete(reverse)
    db.add_all([Friend(user_id=a, friend_id=b), Friend(user_id=b, friend_id=a)])
    db.commit()
    logger.info("FRIENDSHIP_CREATED user_id=%s friend_id=%s", a, b)


def send_friend_request(db: Session, user_id: str, friend_id: str | None) -> FriendState:
    """
    Send a request from ``user_id`` to ``friend_id``.

    When the other side already asked, the two become friends right away.
    Returns the resulting state of the pair.
    """
    user, target = _load_pair(db, user_id, friend_id)
    if user.id == target.id:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "You cannot send a friend request to yourself")
    if _are_friends(db, user.id, target.id):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "You cannot send a friend request to a friend")
    if _pending(db, user.id, target.id):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Request already sent")

    received = _pending(db, target.id, user.id)
    if received:
        _make_friends(db, received)
        return "friends"

    db.add(FriendRequest(from_user_id=user.id, to_user_id=target.id))
    db.commit()
    logger.info("FRIEND_REQUEST_SENT from_user_id=%s to_user_id=%s", user.id, target.id)
    return "pending_sent"


def accept_friend_request(db: Session, user_id: str, requester_id: str) -> None:
    request = _pending(db, requester_id, user_id)
    if not request:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "No such pending request")
    _make_friends(db, request)


def reject_friend_request(db: Session, user_id: str, requester_id: str) -> None:
    request = _pending(db, requester_id, user_id)
    if not request:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "No such pending request")
    db.delete(request)
    db.commit()
    logger.info("FRIEND_REQUEST_REJECTED from_user_id=%s to_user_id=%s", requester_id, user_id)


def cancel_friend_request(db: Session, user_id: str, target_id: str) -> None:
    request = _pending(db, user_id, target_id)
    if not request:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "No such pending request")
    db.delete(request)
    db.commit()
    logger.info("FRIEND_REQUEST_CANCELLED from_user_id=%s to_user_id=%s", user_id, target_id)


def remove_friend(db: Session, user_id: str, friend_id: str | None) -> None:
    """Drop every friendship and pending edge between the two users."""
    user, other = _load_pair(db, user_id, friend_id)

    db.query(Friend).filter(
        or_(
            and_(Friend.user_id == user.id, Friend.friend_id == other.id),
            and_(Friend.user_id == other.id, Friend.friend_id == user.id),
        )
    ).delete(synchronize_session=False)

    db.query(FriendRequest).filter(
        or_(
            and_(FriendRequest.from_user_id == user.id, FriendRequest.to_user_id == other.id),
            and_(FriendRequest.from_user_id == other.id, FriendRequest.to_user_id == user.id),
        )
    ).delete(synchronize_session=False)

    db.commit()
    db.expire_all()
    logger.info("FRIEND_REMOVED user_id=%s friend_id=%s", user.id, other.id)


def list_friend_requests(db: Session, user_id: str) -> tuple[list[User], list[User]]:
    """Pending requests as ``(received, sent)``."""
    user = get_user(db, user_id, friends=True)
    return list(user.friend_requests_received), list(user.friend_requests_sent)


# --- Settings ---

def _settings_of(db: Session, user: User) -> Settings:
    if user.settings is None:
        user.settings = Settings(**DEFAULT_SETTINGS)
        db.flush()
    return user.settings


def _check_setting(record: Settings, key: str, value: Any) -> None:
    if key in PROTECTED_SETTINGS:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Changing '{key}' is not allowed")
    if key not in DEFAULT_SETTINGS:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Unknown setting '{key}'")
    current = getattr(record, key)
    # bool is a subclass of int, so compare exact types
    if type(value) is not type(current):
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            f"Datatype of '{key}' value is not the same as needed. "
            f"Is: '{type(value).__name__}' Has to be: '{type(current).__name__}'",
        )


def change_settings(db: Session, user_id: str, updates: dict[str, Any], atomic: bool = False) -> Settings:
    """
    Apply ``updates`` to the user's settings in one write.

    Each key is validated against the stored value's type. With ``atomic``
    the first invalid key rejects the whole batch; otherwise the valid keys
    are saved and the first error is raised afterwards.
    """
    if not updates:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "No settings given")
    user = get_user(db, user_id, settings=True)
    record = _settings_of(db, user)

    errors: list[HTTPException] = []
    valid: dict[str, Any] = {}
    for key, value in updates.items():
        try:
            _check_setting(record, key, value)
        except HTTPException as exc:
            errors.append(exc)
            if atomic:
                break
        else:
            valid[key] = value

    if errors and atomic:
        db.rollback()
        raise errors[0]

    for key, value in valid.items():
        setattr(record, key, value)
    db.commit()
    if valid:
        logger.info("SETTINGS_CHANGED user_id=%s keys=%s", user.id, ",".join(valid))
    if errors:
        raise errors[0]
    db.refresh(record)
    return record


def change_setting(db: Session, user_id: str, key: str, value: Any) -> Settings:
    return change_settings(db, user_id, {key: value}, atomic=True)


# --- Profile pictures ---

def _media_path(relative: str) -> Path:
    return get_settings().MEDIA_ROOT / relative


def get_profile_picture(db: Session, user_id: str) -> Path:
    """Path of the user's avatar on disk."""
    user = get_user(db, user_id)
    if not user.image:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "User has no profile picture")
    path = _media_path(user.image)
    if not path.is_file():
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "User has no profile picture")
    return path


def set_profile_picture(db: Session, user_id: str, relative_path: str) -> Path:
    user = get_user(db, user_id)
    user.image = relative_path
    db.commit()
    logger.info("PROFILE_PICTURE_SET user_id=%s path=%s", user.id, relative_path)
    return get_profile_picture(db, user_id)


def store_profile_picture(db: Session, user_id: str, filename: str | None, data: BinaryIO) -> Path:
    """Write an uploaded image below the upload dir and point the user at it."""
    get_user(db, user_id)
    suffix = Path(filename or "").suffix.lower()
    relative = Path(get_settings().UPLOAD_DIR) / f"{user_id}-{uuid.uuid4().hex}{suffix}"
    target = _media_path(str(relative))
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("wb") as out:
        shutil.copyfileobj(data, out)
    return set_profile_picture(db, user_id, relative.as_posix())


def delete_profile_picture(db: Session, user_id: str) -> None:
    """Forget the avatar; the file stays on disk."""
    user = get_user(db, user_id)
    user.image = ""
    db.commit()
    logger.info("PROFILE_PICTURE_DELETED user_id=%s", user.id)
