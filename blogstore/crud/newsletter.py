# blogstore/crud/newsletter.py
from sqlmodel import Session, select, func
from typing import List, Optional
from datetime import datetime, timedelta
import logging

from blogstore.core.auth import generate_token
from blogstore.core.config import settings
from blogstore.core.exceptions import InvalidState, NotFound
from blogstore.crud.integrity import commit_or_raise, get_or_raise
from blogstore.models.newsletter import (
    ContactStatus, ContactSubmission, NewsletterSubscriber, SubscriptionStatus
)
from blogstore.schemas.newsletter import ContactFormCreate, SubscribeRequest

logger = logging.getLogger(__name__)


class NewsletterCRUD:
    # ============ Contact Submissions ============

    def create_contact_submission(
        self,
        db: Session,
        data: ContactFormCreate,
        ip_address: Optional[str] = None
    ) -> ContactSubmission:
        """Create a new contact form submission."""
        submission = ContactSubmission(
            name=data.name,
            email=data.email,
            subject=data.subject,
            message=data.message,
            ip_address=ip_address
        )
        db.add(submission)
        commit_or_raise(db, "contact submission")
        db.refresh(submission)
        logger.info(f"Contact form submission #{submission.id} created from {data.email}")
        return submission

    def get_contact_submission(self, db: Session, submission_id: int) -> ContactSubmission:
        return get_or_raise(db, ContactSubmission, submission_id)

    def get_contact_submissions(
        self,
        db: Session,
        skip: int = 0,
        limit: int = 50,
        status: Optional[ContactStatus] = None
    ) -> tuple[List[ContactSubmission], int]:
        """Get contact submissions with pagination, newest first."""
        query = select(ContactSubmission)
        count_query = select(func.count(ContactSubmission.id))

        if status:
            query = query.where(ContactSubmission.status == status)
            count_query = count_query.where(ContactSubmission.status == status)

        total = db.exec(count_query).one()
        submissions = db.exec(
            query.order_by(ContactSubmission.created_at.desc(), ContactSubmission.id.desc())
            .offset(skip).limit(limit)
        ).all()
        return submissions, total

    def set_contact_status(self, db: Session, submission_id: int, status: ContactStatus) -> ContactSubmission:
        """Move a submission along new -> read -> replied -> archived (staff action)."""
        submission = get_or_raise(db, ContactSubmission, submission_id)
        submission.status = status
        commit_or_raise(db, f"contact submission #{submission_id}")
        db.refresh(submission)
        return submission

    # ============ Subscribers ============

    def get_subscriber_by_email(self, db: Session, email: str) -> NewsletterSubscriber:
        subscriber = db.exec(
            select(NewsletterSubscriber).where(NewsletterSubscriber.email == email.lower())
        ).first()
        if subscriber is None:
            raise NotFound("NewsletterSubscriber", email)
        return subscriber

    def subscribe(self, db: Session, data: SubscribeRequest) -> NewsletterSubscriber:
        """
        Start a double opt-in subscription.

        New and previously unsubscribed addresses get a fresh confirmation
        token and go to pending; an active subscription is returned unchanged.
        """
        email = data.email.lower()
        subscriber = db.exec(
            select(NewsletterSubscriber).where(NewsletterSubscriber.email == email)
        ).first()

        if subscriber is not None and subscriber.status == SubscriptionStatus.subscribed:
            return subscriber

        token = generate_token()
        expires = datetime.utcnow() + timedelta(hours=settings.SUBSCRIPTION_CONFIRM_HOURS)

        if subscriber is None:
            subscriber = NewsletterSubscriber(
                email=email,
                name=data.name,
                confirmation_token=token,
                confirmation_expires=expires
            )
            db.add(subscriber)
        else:
            subscriber.status = SubscriptionStatus.pending
            subscriber.confirmation_token = token
            subscriber.confirmation_expires = expires
            if data.name:
                subscriber.name = data.name
            subscriber.updated_at = datetime.utcnow()

        commit_or_raise(db, f"subscriber {email!r}")
        db.refresh(subscriber)
        logger.info(f"Subscription pending confirmation for {email}")
        return subscriber

    def confirm(self, db: Session, token: str) -> NewsletterSubscriber:
        subscriber = db.exec(
            select(NewsletterSubscriber).where(NewsletterSubscriber.confirmation_token == token)
        ).first()
        if subscriber is None:
            raise NotFound("Confirmation token", token)
        if subscriber.status != SubscriptionStatus.pending:
            raise InvalidState(f"Subscription for {subscriber.email} is {subscriber.status.value}")
        if subscriber.confirmation_expires and subscriber.confirmation_expires < datetime.utcnow():
            raise InvalidState("Confirmation link has expired")

        now = datetime.utcnow()
        subscriber.status = SubscriptionStatus.subscribed
        subscriber.confirmation_token = None
        subscriber.confirmation_expires = None
        subscriber.subscribed_at = now
        subscriber.unsubscribed_at = None
        subscriber.updated_at = now

        commit_or_raise(db, f"subscriber #{subscriber.id}")
        db.refresh(subscriber)
        logger.info(f"Subscription confirmed for {subscriber.email}")
        return subscriber

    def unsubscribe(self, db: Session, email: str) -> NewsletterSubscriber:
        subscriber = self.get_subscriber_by_email(db, email)
        if subscriber.status == SubscriptionStatus.unsubscribed:
            return subscriber

        now = datetime.utcnow()
        subscriber.status = SubscriptionStatus.unsubscribed
        subscriber.confirmation_token = None
        subscriber.confirmation_expires = None
        subscriber.unsubscribed_at = now
        subscriber.updated_at = now

        commit_or_raise(db, f"subscriber #{subscriber.id}")
        db.refresh(subscriber)
        logger.info(f"{subscriber.email} unsubscribed")
        return subscriber

    def get_subscribers(
        self,
        db: Session,
        skip: int = 0,
        limit: int = 50,
        status: Optional[SubscriptionStatus] = None
    ) -> tuple[List[NewsletterSubscriber], int]:
        query = select(NewsletterSubscriber)
        count_query = select(func.count(NewsletterSubscriber.id))

        if status:
            query = query.where(NewsletterSubscriber.status == status)
            count_query = count_query.where(NewsletterSubscriber.status == status)

        total = db.exec(count_query).one()
        subscribers = db.exec(
            query.order_by(NewsletterSubscriber.created_at.desc(), NewsletterSubscriber.id.desc())
            .offset(skip).limit(limit)
        ).all()
        return subscribers, total

    def delete_subscriber(self, db: Session, subscriber_id: int) -> None:
        subscriber = get_or_raise(db, NewsletterSubscriber, subscriber_id)
        db.delete(subscriber)
        commit_or_raise(db, f"subscriber #{subscriber_id}")


# Create singleton instance
newsletter_crud = NewsletterCRUD()
