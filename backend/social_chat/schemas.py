from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# Settings payloads
class SettingsCreate(BaseModel):
    language: Optional[str] = None

class SettingsRead(BaseModel):
    language: str
    theme: str
    notifications: bool

    model_config = ConfigDict(from_attributes=True)

class SettingValue(BaseModel):
    value: Any

# User registration payload
class UserCreate(BaseModel):
    id: Optional[str] = None  # accepted from clients, never stored
    username: str = Field(min_length=1, max_length=64)
    name: str = ""
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    settings: Optional[SettingsCreate] = None

class UserSummary(BaseModel):
    id: str
    username: str
    name: str
    image: str

    model_config = ConfigDict(from_attributes=True)

class ChatSummary(BaseModel):
    id: str
    name: Optional[str] = None
    is_group: bool

    model_config = ConfigDict(from_attributes=True)

# What we return when a user signs up or we fetch user info
class UserRead(UserSummary):
    email: str
    chats: Optional[List[ChatSummary]] = None
    friends: Optional[List[UserSummary]] = None
    friend_requests_sent: Optional[List[UserSummary]] = None
    friend_requests_received: Optional[List[UserSummary]] = None
    settings: Optional[SettingsRead] = None

    @classmethod
    def expand(cls, user, chats: bool = False, friends: bool = False, settings: bool = False) -> "UserRead":
        """Serialize ``user`` with only the requested relations filled in."""
        data = UserSummary.model_validate(user).model_dump()
        data["email"] = user.email
        if chats:
            data["chats"] = [ChatSummary.model_validate(c) for c in user.chats]
        if friends:
            data["friends"] = [UserSummary.model_validate(u) for u in user.friends]
            data["friend_requests_sent"] = [UserSummary.model_validate(u) for u in user.friend_requests_sent]
            data["friend_requests_received"] = [UserSummary.model_validate(u) for u in user.friend_requests_received]
        if settings and user.settings is not None:
            data["settings"] = SettingsRead.model_validate(user.settings)
        return cls(**data)

# JWT token response
class Token(BaseModel):
    access_token: str
    token_type: str

# Friends
class FriendAction(BaseModel):
    friendId: Optional[str] = None

class FriendRequestResponse(BaseModel):
    action: Literal["accept", "reject"]

class FriendRequestsRead(BaseModel):
    received: List[UserSummary]
    sent: List[UserSummary]

class FriendStateRead(BaseModel):
    user: UserSummary
    state: Literal["none", "pending_sent", "pending_received", "friends"]

# Chats
class ChatCreate(BaseModel):
    name: Optional[str] = None
    member_ids: List[str] = []

class ChatRead(ChatSummary):
    created_at: datetime
    members: List[UserSummary]

# Payload for sending a message (REST or WebSocket)
class MessageCreate(BaseModel):
    content: str

# What we return when reading messages (REST or WS)
class MessageRead(BaseModel):
    id: int
    chat_id: str
    sender_id: str
    content: str
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)
