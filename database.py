"""Engine and session handling for the cache, history and user tables."""
from contextlib import contextmanager

from sqlmodel import Session, create_engine

from config import DATABASE_URL
from models import SQLModel


def build_engine(url: str):
    """Create an engine; SQLite needs cross-thread access for the threadpool."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


# Looked up at call time, so tests can swap in an in-memory engine.
engine = build_engine(DATABASE_URL)


@contextmanager
def get_session():
    """Yield a session bound to the current module-level engine."""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Create any missing tables; run from the app lifespan and the CLIs."""
    SQLModel.metadata.create_all(engine)
