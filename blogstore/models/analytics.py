# blogstore/models/analytics.py
"""
Engagement records: post views, post likes and comment likes.

Likes are unique per (entity, user) and per (entity, ip_address). A like stores
exactly one of the two, so a registered like never collides with a guest like
coming from the same address.
"""
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Column, Text
from typing import Optional
from datetime import datetime


class PostView(SQLModel, table=True):
    __tablename__ = "post_views"

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", ondelete="CASCADE", index=True)
    user_id: Optional[int] = Field(
        default=None, foreign_key="users.id", ondelete="SET NULL", index=True
    )
    ip_address: Optional[str] = Field(default=None, max_length=45, index=True)
    user_agent: Optional[str] = Field(default=None, sa_column=Column(Text))
    referer: Optional[str] = Field(default=None, max_length=500)
    viewed_at: datetime = Field(default_factory=datetime.utcnow, index=True)


class PostLike(SQLModel, table=True):
    __tablename__ = "post_likes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_likes_user"),
        UniqueConstraint("post_id", "ip_address", name="uq_post_likes_ip"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", ondelete="CASCADE", index=True)
    user_id: Optional[int] = Field(
        default=None, foreign_key="users.id", ondelete="CASCADE", index=True
    )
    ip_address: Optional[str] = Field(default=None, max_length=45)  # Guest likes
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)


class CommentLike(SQLModel, table=True):
    __tablename__ = "comment_likes"
    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_likes_user"),
        UniqueConstraint("comment_id", "ip_address", name="uq_comment_likes_ip"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    comment_id: int = Field(foreign_key="comments.id", ondelete="CASCADE", index=True)
    user_id: Optional[int] = Field(
        default=None, foreign_key="users.id", ondelete="CASCADE", index=True
    )
    ip_address: Optional[str] = Field(default=None, max_length=45)  # Guest likes
    created_at: datetime = Field(default_factory=datetime.utcnow)
