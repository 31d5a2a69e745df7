import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_ON_STARTUP", "false")

import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlmodel import Session
from sqlmodel.pool import StaticPool

from blogstore.database.engine import create_db_and_tables, get_db, make_engine
from blogstore.database.seed import seed_defaults
from blogstore.main import app
from blogstore.models.blog import Category, Post, PostStatus, Tag
from blogstore.models.user import User, UserRole


# Test database setup
@pytest.fixture(name="engine")
def engine_fixture():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_db] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="seeded")
def seeded_fixture(session: Session):
    return seed_defaults(session)


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session):
    counter = {"n": 0}

    def _make_user(username=None, role=UserRole.author, **fields):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            password_hash="not-a-real-hash",
            role=role,
            **fields
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture(name="author")
def author_fixture(make_user):
    return make_user("alice", first_name="Alice", last_name="Smith")


@pytest.fixture(name="category")
def category_fixture(session: Session):
    category = Category(name="Tech", slug="tech")
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture(name="make_tag")
def make_tag_fixture(session: Session):
    def _make_tag(name):
        tag = Tag(name=name, slug=name.lower())
        session.add(tag)
        session.commit()
        session.refresh(tag)
        return tag

    return _make_tag


@pytest.fixture(name="make_post")
def make_post_fixture(session: Session, author: User):
    counter = {"n": 0}

    def _make_post(
        title=None,
        status=PostStatus.published,
        published_at=None,
        author_id=None,
        **fields
    ):
        counter["n"] += 1
        title = title or f"Post {counter['n']}"
        if status == PostStatus.published and published_at is None:
            published_at = datetime.utcnow() - timedelta(minutes=counter["n"])
        post = Post(
            title=title,
            slug=fields.pop("slug", f"post-{counter['n']}"),
            content=fields.pop("content", "Some words to read."),
            status=status,
            published_at=published_at,
            author_id=author_id or author.id,
            **fields
        )
        session.add(post)
        session.commit()
        session.refresh(post)
        return post

    return _make_post
