# blogstore/schemas/newsletter.py
from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Optional
from datetime import datetime

from blogstore.models.newsletter import SubscriptionStatus, ContactStatus


class SubscribeRequest(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(None, max_length=100)


class UnsubscribeRequest(BaseModel):
    email: EmailStr


class SubscriberRead(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    status: SubscriptionStatus
    subscribed_at: Optional[datetime] = None
    unsubscribed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContactFormCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    subject: Optional[str] = Field(None, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator('message')
    def validate_message(cls, v):
        if len(v.strip()) == 0:
            raise ValueError('Message cannot be empty')
        return v


class ContactSubmissionRead(BaseModel):
    id: int
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    status: ContactStatus
    created_at: datetime

    class Config:
        from_attributes = True
