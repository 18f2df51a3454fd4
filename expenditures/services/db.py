"""Database engine, session management and the atomic unit of work.

Every public mutating ledger operation runs inside `atomic()`: it commits
when the outermost block exits cleanly and rolls back everything otherwise,
so a failed call never leaves partial state behind. Nested blocks join the
outermost one, which lets composed operations reuse the primitives.
"""

from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from expenditures.models import Base

ATOMIC_DEPTH_KEY = "atomic_depth"


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for the given URL.

    SQLite uses StaticPool so an in-memory database survives across sessions.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory bound to engine."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all ledger tables."""
    Base.metadata.create_all(engine)


def create_session(database_url: str) -> Generator[Session, None, None]:
    """
    Create a database session context manager.

    Args:
        database_url: SQLAlchemy database URL (e.g., "sqlite:///./expenditures.db")

    Yields:
        SQLAlchemy Session for database operations

    Example:
        ```python
        for session in create_session("sqlite:///./expenditures.db"):
            count = ExpenditureService(ctx).get_count()
        ```
    """
    engine = create_db_engine(database_url)
    SessionLocal = make_session_factory(engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """All-or-nothing unit of work on `db`.

    Only the outermost block commits or rolls back.
    """
    depth = db.info.get(ATOMIC_DEPTH_KEY, 0)
    db.info[ATOMIC_DEPTH_KEY] = depth + 1
    try:
        yield db
        if depth == 0:
            db.commit()
    except BaseException:
        if depth == 0:
            db.rollback()
        raise
    finally:
        db.info[ATOMIC_DEPTH_KEY] = depth


__all__ = [
    "atomic",
    "create_db_engine",
    "create_session",
    "init_db",
    "make_session_factory",
]
