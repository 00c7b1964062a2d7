"""User, settings and profile picture routes."""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from .. import user_service
from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..schemas import SettingValue, SettingsRead, UserCreate, UserRead

router = APIRouter(prefix="/users", tags=["users"])

_TRUTHY = {"", "1", "true", "yes", "on"}


class Expand:
    """Relation flags from the query string; anything but a truthy word is off."""

    def __init__(
        self,
        chats: Optional[str] = None,
        friends: Optional[str] = None,
        settings: Optional[str] = None,
    ):
        self.chats = chats is not None and chats.lower() in _TRUTHY
        self.friends = friends is not None and friends.lower() in _TRUTHY
        self.settings = settings is not None and settings.lower() in _TRUTHY

    def as_kwargs(self) -> dict:
        return {"chats": self.chats, "friends": self.friends, "settings": self.settings}


def _resolve_id(user_id: str, current_user: User) -> str:
    return current_user.id if user_id == "me" else user_id


def _require_self(user_id: str, current_user: User) -> str:
    resolved = _resolve_id(user_id, current_user)
    if resolved != current_user.id:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "You can only change your own profile picture")
    return resolved


@router.post("", response_model=UserRead, response_model_exclude_none=True)
def create_user(user: UserCreate, db: Session = Depends(get_db)):
    db_user = user_service.create_user(db, user)
    return UserRead.expand(db_user)


@router.get("", response_model=List[UserRead], response_model_exclude_none=True)
def get_users_like(
    like: Optional[str] = None,
    expand: Expand = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    users = user_service.get_users_like(db, like, **expand.as_kwargs())
    return [UserRead.expand(u, **expand.as_kwargs()) for u in users]


@router.get("/{user_id}", response_model=UserRead, response_model_exclude_none=True)
def get_user(
    user_id: str,
    expand: Expand = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = user_service.get_user(db, _resolve_id(user_id, current_user), **expand.as_kwargs())
    return UserRead.expand(user, **expand.as_kwargs())


# --- SETTINGS ---
@router.post("/me/settings/{key}", response_model=SettingsRead)
def change_setting(
    key: str,
    body: SettingValue,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_service.change_setting(db, current_user.id, key, body.value)


@router.patch("/me/settings", response_model=SettingsRead)
def change_settings(
    updates: Dict[str, Any],
    atomic: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_service.change_settings(db, current_user.id, updates, atomic=atomic)


# --- PROFILE PICTURES ---
@router.get("/{user_id}/profilepicture")
def get_profile_picture(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    path = user_service.get_profile_picture(db, _resolve_id(user_id, current_user))
    return FileResponse(path)


@router.post("/{user_id}/profilepicture")
def set_profile_picture(
    user_id: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_id = _require_self(user_id, current_user)
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Profile picture has to be an image")
    path = user_service.store_profile_picture(db, user_id, file.filename, file.file)
    return FileResponse(path, media_type=file.content_type)


@router.delete("/{user_id}/profilepicture", status_code=204)
def delete_profile_picture(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_service.delete_profile_picture(db, _require_self(user_id, current_user))
    return Response(status_code=204)
