"""SQLAlchemy engine, session factory and declarative base."""
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from workout_map.config import settings

Base = declarative_base()


def _engine_options(database_url: str) -> dict[str, Any]:
    """Driver and pool options for the configured backend.

    Every statement carries the configured timeout so a stuck query surfaces
    as an OperationalError instead of blocking the request.
    """
    if database_url.startswith("sqlite"):
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.DB_STATEMENT_TIMEOUT_MS / 1000,
            },
        }
    return {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "connect_args": {"options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"},
    }


def build_engine(database_url: str = settings.DATABASE_URL) -> Engine:
    return create_engine(database_url, **_engine_options(database_url))


engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency — one session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
