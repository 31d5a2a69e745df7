# blogstore/crud/user.py
"""User and session CRUD operations."""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import delete
from sqlmodel import Session, select, func, or_

from blogstore.core.auth import generate_token, get_password_hash, verify_password
from blogstore.core.config import settings
from blogstore.core.exceptions import InvalidState, NotFound
from blogstore.crud.integrity import commit_or_raise, get_or_raise
from blogstore.crud.site import site_crud
from blogstore.models.user import User, UserRole, UserSession
from blogstore.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserCRUD:
    """CRUD operations for User and UserSession models."""

    def create_user(self, db: Session, user_data: UserCreate) -> User:
        """Register a user with a hashed password and a pending email verification."""
        role = user_data.role
        if role is None:
            value = site_crud.get_setting(db, "default_user_role", UserRole.subscriber.value)
            try:
                role = UserRole(value)
            except ValueError:
                raise InvalidState(f"default_user_role {value!r} is not a role")

        user = User(
            **user_data.model_dump(exclude={'password', 'role'}),
            role=role,
            password_hash=get_password_hash(user_data.password),
            email_verification_token=generate_token(),
            email_verification_expires=datetime.utcnow() + timedelta(
                hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS
            )
        )
        db.add(user)
        commit_or_raise(db, f"user {user_data.username!r}")
        db.refresh(user)
        logger.info(f"User #{user.id} ({user.username}) registered as {user.role.value}")
        return user

    def get_user(self, db: Session, user_id: int) -> User:
        """Get user by ID."""
        return get_or_raise(db, User, user_id)

    def get_user_by_username(self, db: Session, username: str) -> User:
        user = db.exec(select(User).where(User.username == username)).first()
        if user is None:
            raise NotFound("User", username)
        return user

    def get_user_by_email(self, db: Session, email: str) -> User:
        user = db.exec(select(User).where(User.email == email)).first()
        if user is None:
            raise NotFound("User", email)
        return user

    def get_users(
        self,
        db: Session,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None
    ) -> tuple[List[User], int]:
        """
        Get users with optional filtering and search.

        Returns:
            Tuple of (users list, total count)
        """
        query = select(User)
        count_query = select(func.count(User.id))

        if search:
            search_pattern = f"%{search}%"
            search_filter = or_(
                User.username.ilike(search_pattern),
                User.email.ilike(search_pattern),
                User.first_name.ilike(search_pattern),
                User.last_name.ilike(search_pattern)
            )
            query = query.where(search_filter)
            count_query = count_query.where(search_filter)

        if role:
            query = query.where(User.role == role)
            count_query = count_query.where(User.role == role)

        if is_active is not None:
            query = query.where(User.is_active == is_active)
            count_query = count_query.where(User.is_active == is_active)

        total = db.exec(count_query).one()
        users = db.exec(query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit)).all()
        return users, total

    def update_user(self, db: Session, user_id: int, user_data: UserUpdate) -> User:
        user = get_or_raise(db, User, user_id)

        for field, value in user_data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        user.updated_at = datetime.utcnow()

        commit_or_raise(db, f"user #{user_id}")
        db.refresh(user)
        return user

    def deactivate_user(self, db: Session, user_id: int) -> User:
        """Soft-disable an account; owned content is kept."""
        user = get_or_raise(db, User, user_id)
        user.is_active = False
        user.updated_at = datetime.utcnow()
        commit_or_raise(db, f"user #{user_id}")
        db.refresh(user)
        logger.info(f"User #{user_id} deactivated")
        return user

    def delete_user(self, db: Session, user_id: int) -> None:
        """
        Delete a user.

        Posts, media, sessions and likes owned by the user are removed by the
        database; comments and views keep their rows with the user reference
        cleared.
        """
        user = get_or_raise(db, User, user_id)
        db.delete(user)
        commit_or_raise(db, f"user #{user_id}")
        logger.info(f"User #{user_id} deleted")

    def authenticate(self, db: Session, username_or_email: str, password: str) -> Optional[User]:
        user = db.exec(
            select(User).where(or_(User.username == username_or_email, User.email == username_or_email))
        ).first()
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            return None
        return user

    def record_login(self, db: Session, user_id: int) -> User:
        user = get_or_raise(db, User, user_id)
        user.last_login = datetime.utcnow()
        commit_or_raise(db, f"user #{user_id}")
        db.refresh(user)
        return user

    def verify_email(self, db: Session, token: str) -> User:
        user = db.exec(select(User).where(User.email_verification_token == token)).first()
        if user is None:
            raise NotFound("Verification token", token)
        if user.email_verification_expires and user.email_verification_expires < datetime.utcnow():
            raise InvalidState("Email verification token has expired")

        user.email_verified = True
        user.email_verification_token = None
        user.email_verification_expires = None
        user.updated_at = datetime.utcnow()
        commit_or_raise(db, f"user #{user.id}")
        db.refresh(user)
        return user

    def request_password_reset(self, db: Session, email: str) -> str:
        """Issue a password reset token and return it for delivery."""
        user = self.get_user_by_email(db, email)
        token = generate_token()
        user.password_reset_token = token
        user.password_reset_expires = datetime.utcnow() + timedelta(hours=settings.PASSWORD_RESET_EXPIRE_HOURS)
        commit_or_raise(db, f"user #{user.id}")
        return token

    def reset_password(self, db: Session, token: str, new_password: str) -> User:
        user = db.exec(select(User).where(User.password_reset_token == token)).first()
        if user is None:
            raise NotFound("Password reset token", token)
        if user.password_reset_expires is None or user.password_reset_expires < datetime.utcnow():
            raise InvalidState("Password reset token has expired")

        user.password_hash = get_password_hash(new_password)
        user.password_reset_token = None
        user.password_reset_expires = None
        user.updated_at = datetime.utcnow()
        commit_or_raise(db, f"user #{user.id}")
        db.refresh(user)
        return user

    # ============ Sessions ============

    def create_session(
        self,
        db: Session,
        user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> UserSession:
        user = get_or_raise(db, User, user_id)
        if not user.is_active:
            raise InvalidState(f"User #{user_id} is disabled")

        session = UserSession(
            id=generate_token(),
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent
        )
        db.add(session)
        commit_or_raise(db, f"session for user #{user_id}")
        db.refresh(session)
        return session

    def get_session(self, db: Session, session_id: str) -> UserSession:
        return get_or_raise(db, UserSession, session_id)

    def touch_session(self, db: Session, session_id: str) -> UserSession:
        session = get_or_raise(db, UserSession, session_id)
        session.last_activity = datetime.utcnow()
        commit_or_raise(db, "session")
        db.refresh(session)
        return session

    def delete_session(self, db: Session, session_id: str) -> None:
        session = get_or_raise(db, UserSession, session_id)
        db.delete(session)
        commit_or_raise(db, "session")

    def purge_idle_sessions(self, db: Session, before: Optional[datetime] = None) -> int:
        """Remove sessions idle since before; returns the number removed."""
        if before is None:
            before = datetime.utcnow() - timedelta(minutes=settings.SESSION_IDLE_MINUTES)
        result = db.exec(delete(UserSession).where(UserSession.last_activity < before))
        commit_or_raise(db, "idle sessions")
        logger.info(f"Purged {result.rowcount} idle sessions")
        return result.rowcount


# Create singleton instance
user_crud = UserCRUD()
