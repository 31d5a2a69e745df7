from sqlmodel import SQLModel, Field, Column, Text
from typing import Optional
from datetime import datetime
from enum import Enum


class SubscriptionStatus(str, Enum):
    subscribed = "subscribed"     # Confirmed
    unsubscribed = "unsubscribed" # User unsubscribed
    pending = "pending"           # Awaiting email confirmation


class ContactStatus(str, Enum):
    new = "new"
    read = "read"
    replied = "replied"
    archived = "archived"


class NewsletterSubscriber(SQLModel, table=True):
    __tablename__ = "newsletter_subscribers"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    name: Optional[str] = Field(default=None, max_length=100)
    status: SubscriptionStatus = Field(default=SubscriptionStatus.pending, index=True)

    # Double opt-in
    confirmation_token: Optional[str] = Field(default=None, max_length=255, index=True)
    confirmation_expires: Optional[datetime] = Field(default=None)

    subscribed_at: Optional[datetime] = Field(default=None)
    unsubscribed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ContactSubmission(SQLModel, table=True):
    __tablename__ = "contact_submissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(max_length=255, index=True)
    subject: Optional[str] = Field(default=None, max_length=255)
    message: str = Field(sa_column=Column(Text, nullable=False))
    ip_address: Optional[str] = Field(default=None, max_length=45)
    status: ContactStatus = Field(default=ContactStatus.new, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
