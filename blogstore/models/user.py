from sqlmodel import SQLModel, Field, Relationship, Column, Text
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from enum import Enum

if TYPE_CHECKING:
    from blogstore.models.blog import Post


class UserRole(str, Enum):
    admin = "admin"
    editor = "editor"
    author = "author"
    subscriber = "subscriber"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(max_length=50, unique=True, index=True)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, sa_column=Column(Text))
    avatar_url: Optional[str] = Field(default=None, max_length=500)
    role: UserRole = Field(default=UserRole.subscriber, index=True)

    # Email verification
    email_verified: bool = Field(default=False)
    email_verification_token: Optional[str] = Field(default=None, max_length=255, index=True)
    email_verification_expires: Optional[datetime] = Field(default=None)

    # Password reset
    password_reset_token: Optional[str] = Field(default=None, max_length=255, index=True)
    password_reset_expires: Optional[datetime] = Field(default=None)

    # Account status (soft-disable instead of delete)
    is_active: bool = Field(default=True)

    # Timestamps
    last_login: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships (deletes are carried out by the database)
    posts: List["Post"] = Relationship(back_populates="author", passive_deletes="all")

    @property
    def display_name(self) -> str:
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.username


class UserSession(SQLModel, table=True):
    __tablename__ = "user_sessions"

    # Opaque session id issued at login
    id: str = Field(primary_key=True, max_length=255)
    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, sa_column=Column(Text))
    last_activity: datetime = Field(default_factory=datetime.utcnow, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
