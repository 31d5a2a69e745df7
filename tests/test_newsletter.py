import pytest
from datetime import datetime, timedelta
from sqlmodel import Session

from blogstore.core.exceptions import ConstraintViolation, InvalidState, NotFound
from blogstore.crud.integrity import commit_or_raise
from blogstore.crud.newsletter import newsletter_crud
from blogstore.models.newsletter import ContactStatus, NewsletterSubscriber, SubscriptionStatus
from blogstore.schemas.newsletter import ContactFormCreate, SubscribeRequest


class TestSubscriptions:
    def test_subscribe_is_pending(self, session: Session):
        subscriber = newsletter_crud.subscribe(session, SubscribeRequest(email="Reader@Example.com", name="Reader"))

        assert subscriber.email == "reader@example.com"
        assert subscriber.status == SubscriptionStatus.pending
        assert subscriber.confirmation_token
        assert subscriber.confirmation_expires > datetime.utcnow()

    def test_confirm(self, session: Session):
        subscriber = newsletter_crud.subscribe(session, SubscribeRequest(email="reader@example.com"))

        confirmed = newsletter_crud.confirm(session, subscriber.confirmation_token)

        assert confirmed.status == SubscriptionStatus.subscribed
        assert confirmed.subscribed_at is not None
        assert confirmed.confirmation_token is None

    def test_confirm_unknown_token(self, session: Session):
        with pytest.raises(NotFound):
            newsletter_crud.confirm(session, "nope")

    def test_confirm_expired(self, session: Session):
        subscriber = newsletter_crud.subscribe(session, SubscribeRequest(email="reader@example.com"))
        subscriber.confirmation_expires = datetime.utcnow() - timedelta(minutes=1)
        session.commit()

        with pytest.raises(InvalidState):
            newsletter_crud.confirm(session, subscriber.confirmation_token)

    def test_subscribing_twice_keeps_one_row(self, session: Session):
        first = newsletter_crud.subscribe(session, SubscribeRequest(email="reader@example.com"))
        newsletter_crud.confirm(session, first.confirmation_token)

        again = newsletter_crud.subscribe(session, SubscribeRequest(email="reader@example.com"))

        assert again.id == first.id
        assert again.status == SubscriptionStatus.subscribed
        _, total = newsletter_crud.get_subscribers(session)
        assert total == 1

    def test_unsubscribe_and_come_back(self, session: Session):
        subscriber = newsletter_crud.subscribe(session, SubscribeRequest(email="reader@example.com"))
        newsletter_crud.confirm(session, subscriber.confirmation_token)

        gone = newsletter_crud.unsubscribe(session, "READER@example.com")
        assert gone.status == SubscriptionStatus.unsubscribed
        assert gone.unsubscribed_at is not None
        assert newsletter_crud.unsubscribe(session, "reader@example.com").status == SubscriptionStatus.unsubscribed

        back = newsletter_crud.subscribe(session, SubscribeRequest(email="reader@example.com"))
        assert back.id == subscriber.id
        assert back.status == SubscriptionStatus.pending

    def test_unsubscribe_unknown(self, session: Session):
        with pytest.raises(NotFound):
            newsletter_crud.unsubscribe(session, "ghost@example.com")

    def test_status_filter(self, session: Session):
        pending = newsletter_crud.subscribe(session, SubscribeRequest(email="a@example.com"))
        newsletter_crud.subscribe(session, SubscribeRequest(email="b@example.com"))
        newsletter_crud.confirm(session, pending.confirmation_token)

        subscribers, total = newsletter_crud.get_subscribers(session, status=SubscriptionStatus.subscribed)
        assert total == 1
        assert subscribers[0].email == "a@example.com"

    def test_email_is_unique(self, session: Session):
        newsletter_crud.subscribe(session, SubscribeRequest(email="reader@example.com"))
        session.add(NewsletterSubscriber(email="reader@example.com"))
        with pytest.raises(ConstraintViolation):
            commit_or_raise(session, "duplicate subscriber")


class TestContactSubmissions:
    def test_create_and_list(self, session: Session):
        submission = newsletter_crud.create_contact_submission(session, ContactFormCreate(
            name="Visitor", email="visitor@example.com", subject="Hi", message="Hello there"
        ), ip_address="10.0.0.9")

        assert submission.status == ContactStatus.new
        assert submission.ip_address == "10.0.0.9"

        submissions, total = newsletter_crud.get_contact_submissions(session, status=ContactStatus.new)
        assert total == 1
        assert submissions[0].id == submission.id

    def test_status_workflow(self, session: Session):
        submission = newsletter_crud.create_contact_submission(session, ContactFormCreate(
            name="Visitor", email="visitor@example.com", message="Hello"
        ))

        newsletter_crud.set_contact_status(session, submission.id, ContactStatus.replied)

        assert newsletter_crud.get_contact_submission(session, submission.id).status == ContactStatus.replied
        _, new_total = newsletter_crud.get_contact_submissions(session, status=ContactStatus.new)
        assert new_total == 0
