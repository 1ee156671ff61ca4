from typing import Generator, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from .config import settings

_engine: Optional[Engine] = None


def make_engine(url: str) -> Engine:
    """SQLite engine usable from the autosave timer thread as well."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


def get_engine() -> Engine:
    """Process-wide engine for settings.DATABASE_URL (created lazily)."""
    global _engine
    if _engine is None:
        _engine = make_engine(settings.DATABASE_URL)
    return _engine


def init_db(engine: Optional[Engine] = None) -> None:
    """Create the storage table if it does not exist yet."""
    # models must be imported so the table is registered on the metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(engine or get_engine())


def get_session(engine: Optional[Engine] = None) -> Generator[Session, None, None]:
    with Session(engine or get_engine()) as session:
        yield session
