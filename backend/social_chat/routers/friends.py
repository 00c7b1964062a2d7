"""Friendship and friend request routes."""
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from .. import user_service
from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..schemas import FriendAction, FriendRequestResponse, FriendRequestsRead, FriendStateRead, UserSummary

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=List[UserSummary])
def list_friends(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_service.get_user(db, current_user.id, friends=True).friends


@router.post("", response_model=FriendStateRead)
def add_friend(
    req: FriendAction,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    state = user_service.send_friend_request(db, current_user.id, req.friendId)
    return {"user": user_service.get_user(db, req.friendId), "state": state}


@router.delete("", status_code=204)
def remove_friend(
    req: FriendAction,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_service.remove_friend(db, current_user.id, req.friendId)
    return Response(status_code=204)


@router.get("/requests", response_model=FriendRequestsRead)
def list_friend_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    received, sent = user_service.list_friend_requests(db, current_user.id)
    return {"received": received, "sent": sent}


@router.post("/requests/{user_id}/respond", response_model=FriendStateRead)
def respond_friend_request(
    user_id: str,
    resp: FriendRequestResponse,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if resp.action == "accept":
        user_service.accept_friend_request(db, current_user.id, user_id)
    else:
        user_service.reject_friend_request(db, current_user.id, user_id)
    return {
        "user": user_service.get_user(db, user_id),
        "state": user_service.friendship_state(db, current_user.id, user_id),
    }


@router.delete("/requests/{user_id}", status_code=204)
def cancel_friend_request(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_service.cancel_friend_request(db, current_user.id, user_id)
    return Response(status_code=204)
