# blogstore/schemas/identity.py
"""
Who performed an engagement action.

Comments, likes and views are made either by a registered user or by a guest
known only by name/email/IP. Modelling this as a tagged union keeps the
"exactly one identity source" rule checkable in one place instead of being
spread across nullable columns.
"""
from pydantic import BaseModel, Field, EmailStr
from typing import Annotated, Literal, Optional, Union

from blogstore.core.exceptions import ConstraintViolation
from blogstore.models.blog import Comment


class RegisteredIdentity(BaseModel):
    kind: Literal["registered"] = "registered"
    user_id: int
    ip_address: Optional[str] = Field(None, max_length=45)


class GuestIdentity(BaseModel):
    kind: Literal["guest"] = "guest"
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=500)
    ip_address: Optional[str] = Field(None, max_length=45)


Identity = Annotated[Union[RegisteredIdentity, GuestIdentity], Field(discriminator="kind")]


def require_commenter(identity: Identity) -> None:
    """A guest comment must carry a name or an email."""
    if isinstance(identity, GuestIdentity) and not (identity.name or identity.email):
        raise ConstraintViolation(
            "Guest comments require an author name or email",
            constraint="comment_identity",
        )


def require_liker(identity: Identity) -> None:
    """A guest like or view is identified by its IP address."""
    if isinstance(identity, GuestIdentity) and not identity.ip_address:
        raise ConstraintViolation(
            "Guest engagement requires an IP address",
            constraint="engagement_identity",
        )


def identity_of(row) -> Identity:
    """Recover the identity recorded on a comment, like or view row."""
    if isinstance(row, Comment):
        if row.author_id is not None:
            return RegisteredIdentity(user_id=row.author_id, ip_address=row.author_ip)
        return GuestIdentity(
            name=row.author_name,
            email=row.author_email,
            website=row.author_website,
            ip_address=row.author_ip,
        )

    if row.user_id is not None:
        return RegisteredIdentity(user_id=row.user_id, ip_address=row.ip_address)
    return GuestIdentity(ip_address=row.ip_address)
