import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from .database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


chat_members = Table(
    "chat_members",
    Base.metadata,
    Column("chat_id", String, ForeignKey("chats.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"
    id         = Column(String, primary_key=True, index=True, default=_new_id)
    username   = Column(String, unique=True, index=True, nullable=False)
    name       = Column(String, nullable=False, default="")
    email      = Column(String, unique=True, index=True, nullable=False)
    password   = Column(String, nullable=False)
    image      = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    settings = relationship("Settings", back_populates="user", uselist=False, cascade="all, delete-orphan")
    chats    = relationship("Chat", secondary=chat_members, back_populates="members")

    # both directions of a friendship are stored, so one join covers it
    friends = relationship(
        "User",
        secondary="friends",
        primaryjoin="User.id == Friend.user_id",
        secondaryjoin="User.id == Friend.friend_id",
        viewonly=True,
    )
    friend_requests_sent = relationship(
        "User",
        secondary="friend_requests",
        primaryjoin="User.id == FriendRequest.from_user_id",
        secondaryjoin="User.id == FriendRequest.to_user_id",
        viewonly=True,
    )
    friend_requests_received = relationship(
        "User",
        secondary="friend_requests",
        primaryjoin="User.id == FriendRequest.to_user_id",
        secondaryjoin="User.id == FriendRequest.from_user_id",
        viewonly=True,
    )


class Settings(Base):
    __tablename__ = "settings"
    id            = Column(Integer, primary_key=True, index=True)
    user_id       = Column(String, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    language      = Column(String, nullable=False, default="en")
    theme         = Column(String, nullable=False, default="light")
    notifications = Column(Boolean, nullable=False, default=True)

    user = relationship("User", back_populates="settings")


class Chat(Base):
    __tablename__ = "chats"
    id         = Column(String, primary_key=True, index=True, default=_new_id)
    name       = Column(String, nullable=True)
    is_group   = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    members  = relationship("User", secondary=chat_members, back_populates="chats")
    messages = relationship("Message", back_populates="chat", cascade="all, delete-orphan")


class Message(Base):
    __tablename__ = "messages"
    id        = Column(Integer, primary_key=True, index=True)
    chat_id   = Column(String, ForeignKey("chats.id", ondelete="CASCADE"), index=True, nullable=False)
    sender_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    content   = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)

    chat   = relationship("Chat", back_populates="messages")
    sender = relationship("User")


class Friend(Base):
    __tablename__ = "friends"
    id        = Column(Integer, primary_key=True, index=True)
    user_id   = Column(String, ForeignKey("users.id"), nullable=False)
    friend_id = Column(String, ForeignKey("users.id"), nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "friend_id", name="uniq_friendship"),)

    user   = relationship("User", foreign_keys=[user_id])
    friend = relationship("User", foreign_keys=[friend_id])


class FriendRequest(Base):
    """A pending friend request; the row is deleted once answered."""
    __tablename__ = "friend_requests"

    id            = Column(Integer, primary_key=True, index=True)
    from_user_id  = Column(String, ForeignKey("users.id"), nullable=False)
    to_user_id    = Column(String, ForeignKey("users.id"), nullable=False)
    created_at    = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (UniqueConstraint("from_user_id", "to_user_id", name="uq_friend_request"),)

    from_user = relationship("User", foreign_keys=[from_user_id])
    to_user   = relationship("User", foreign_keys=[to_user_id])
