from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # pool_pre_ping: verify connections before using them
    return {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}


engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
    **_engine_options(settings.database_url),
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Iterator[Session]:
    """Context manager for short-lived database sessions.

    Realtime event handlers open one of these per event instead of holding a
    connection for the whole lifetime of the socket.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
