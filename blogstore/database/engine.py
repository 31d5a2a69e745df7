from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import create_engine, SQLModel, Session
from typing import Generator

from blogstore.core.config import settings

# PostgreSQL unless DATABASE_URL points elsewhere
DATABASE_URL = settings.database_url


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite ignores ON DELETE actions unless foreign keys are switched on per connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(url, echo=settings.SQL_ECHO, **kwargs)
        enable_sqlite_foreign_keys(engine)
        return engine

    return create_engine(
        url,
        echo=settings.SQL_ECHO,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,
        **kwargs
    )


engine = make_engine(DATABASE_URL)


def create_db_and_tables(bind: Engine = engine):
    # Register every table on the metadata before create_all
    from blogstore.models import user, blog, media, analytics, newsletter, site  # noqa: F401
    from blogstore.database.views import create_views

    SQLModel.metadata.create_all(bind)
    create_views(bind)


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
