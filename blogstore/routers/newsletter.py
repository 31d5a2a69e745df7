# blogstore/routers/newsletter.py
"""
Newsletter Router - Handles contact form and subscriptions.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from blogstore.crud.newsletter import newsletter_crud
from blogstore.database.engine import get_db
from blogstore.routers.posts import client_ip
from blogstore.schemas.newsletter import (
    ContactFormCreate, SubscribeRequest, SubscriberRead, UnsubscribeRequest
)

router = APIRouter(
    tags=["newsletter"],
    responses={404: {"description": "Not found"}},
)


# ========================================
# CONTACT FORM
# ========================================

@router.post("/contact", status_code=status.HTTP_201_CREATED)
def submit_contact_form(
    data: ContactFormCreate,
    request: Request,
    db: Session = Depends(get_db)
):
    submission = newsletter_crud.create_contact_submission(db, data, ip_address=client_ip(request))
    return {"message": "Thank you for your message. We'll get back to you soon!", "id": submission.id}


# ========================================
# SUBSCRIPTIONS
# ========================================

@router.post("/newsletter/subscribe", response_model=SubscriberRead, status_code=status.HTTP_202_ACCEPTED)
def subscribe(data: SubscribeRequest, db: Session = Depends(get_db)):
    """Start a double opt-in subscription; the address stays pending until confirmed."""
    return newsletter_crud.subscribe(db, data)


@router.get("/newsletter/confirm/{token}", response_model=SubscriberRead)
def confirm_subscription(token: str, db: Session = Depends(get_db)):
    return newsletter_crud.confirm(db, token)


@router.post("/newsletter/unsubscribe", response_model=SubscriberRead)
def unsubscribe(data: UnsubscribeRequest, db: Session = Depends(get_db)):
    return newsletter_crud.unsubscribe(db, data.email)
