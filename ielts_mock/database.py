"""SQLAlchemy setup for the local attempt journal."""
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from ielts_mock.config import DATABASE_URL


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def make_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine; SQLite connections are shared with timer threads."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(url, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


engine = make_engine()
SessionLocal = make_session_factory(engine)


def init_db(bind: Engine | None = None) -> None:
    """Create the journal tables if they do not exist."""
    # Import models so they register on Base.metadata
    from ielts_mock.models import db as _models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
