import pytest
from datetime import datetime, timedelta
from sqlmodel import Session

from blogstore.core.exceptions import ConstraintViolation, InvalidState, NotFound
from blogstore.crud.site import site_crud
from blogstore.crud.user import user_crud
from blogstore.models.user import UserRole
from blogstore.schemas.user import UserCreate, UserUpdate


def register(session: Session, username="bob", **fields):
    data = {"username": username, "email": f"{username}@example.com", "password": "correct-horse"}
    data.update(fields)
    return user_crud.create_user(session, UserCreate(**data))


class TestRegistration:
    def test_password_is_hashed(self, session: Session):
        user = register(session)
        assert user.password_hash != "correct-horse"
        assert user.email_verified is False
        assert user.email_verification_token

    def test_role_defaults_to_setting(self, session: Session, seeded):
        assert register(session).role == UserRole.subscriber

        site_crud.set_setting(session, "default_user_role", "editor")
        assert register(session, "carol").role == UserRole.editor

    def test_unknown_default_role_setting(self, session: Session):
        site_crud.set_setting(session, "default_user_role", "nobody")
        with pytest.raises(InvalidState):
            register(session)

    def test_explicit_role(self, session: Session):
        assert register(session, role=UserRole.editor).role == UserRole.editor

    def test_duplicate_username_and_email(self, session: Session):
        register(session)
        with pytest.raises(ConstraintViolation):
            register(session, email="other@example.com")
        with pytest.raises(ConstraintViolation):
            register(session, "bobby", email="bob@example.com")

    def test_lookups(self, session: Session):
        user = register(session)
        assert user_crud.get_user_by_username(session, "bob").id == user.id
        assert user_crud.get_user_by_email(session, "bob@example.com").id == user.id
        with pytest.raises(NotFound):
            user_crud.get_user(session, 404)

    def test_search(self, session: Session):
        register(session, first_name="Bob", last_name="Builder")
        register(session, "dave")
        users, total = user_crud.get_users(session, search="build")
        assert total == 1
        assert users[0].username == "bob"


class TestAuthentication:
    def test_authenticate(self, session: Session):
        user = register(session)
        assert user_crud.authenticate(session, "bob", "correct-horse").id == user.id
        assert user_crud.authenticate(session, "bob@example.com", "correct-horse").id == user.id
        assert user_crud.authenticate(session, "bob", "wrong-password") is None
        assert user_crud.authenticate(session, "nobody", "correct-horse") is None

    def test_deactivated_user_cannot_log_in(self, session: Session):
        user = register(session)
        user_crud.deactivate_user(session, user.id)
        assert user_crud.authenticate(session, "bob", "correct-horse") is None
        with pytest.raises(InvalidState):
            user_crud.create_session(session, user.id)

    def test_update(self, session: Session):
        user = register(session)
        updated = user_crud.update_user(session, user.id, UserUpdate(first_name="Robert"))
        assert updated.display_name == "Robert"


class TestTokens:
    def test_verify_email(self, session: Session):
        user = register(session)
        verified = user_crud.verify_email(session, user.email_verification_token)
        assert verified.email_verified is True
        assert verified.email_verification_token is None

    def test_expired_verification(self, session: Session):
        user = register(session)
        user.email_verification_expires = datetime.utcnow() - timedelta(minutes=1)
        session.commit()
        with pytest.raises(InvalidState):
            user_crud.verify_email(session, user.email_verification_token)

    def test_unknown_verification_token(self, session: Session):
        with pytest.raises(NotFound):
            user_crud.verify_email(session, "nope")

    def test_password_reset(self, session: Session):
        register(session)
        token = user_crud.request_password_reset(session, "bob@example.com")

        user_crud.reset_password(session, token, "new-password-1")

        assert user_crud.authenticate(session, "bob", "new-password-1") is not None
        assert user_crud.authenticate(session, "bob", "correct-horse") is None
        with pytest.raises(NotFound):
            user_crud.reset_password(session, token, "again-and-again")


class TestSessions:
    def test_create_touch_delete(self, session: Session, author):
        user_session = user_crud.create_session(session, author.id, ip_address="10.0.0.1", user_agent="pytest")
        session_id = user_session.id
        touched = user_crud.touch_session(session, session_id)
        assert touched.user_id == author.id

        user_crud.delete_session(session, session_id)
        with pytest.raises(NotFound):
            user_crud.get_session(session, session_id)

    def test_purge_idle_sessions(self, session: Session, author):
        idle = user_crud.create_session(session, author.id)
        fresh = user_crud.create_session(session, author.id)
        idle_id, fresh_id = idle.id, fresh.id
        idle.last_activity = datetime.utcnow() - timedelta(days=30)
        session.commit()

        assert user_crud.purge_idle_sessions(session) == 1
        assert user_crud.get_session(session, fresh_id).id == fresh_id
        with pytest.raises(NotFound):
            user_crud.get_session(session, idle_id)
