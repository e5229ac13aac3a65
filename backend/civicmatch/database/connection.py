# backend/civicmatch/database/connection.py
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Generator, List

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from civicmatch.config import settings
from civicmatch.database.models import Base  # single source of truth

logger = logging.getLogger(__name__)


def _mask_db_url(url: str) -> str:
    if not url:
        return ""
    if "://" in url and "@" in url:
        left, right = url.split("@", 1)
        if ":" in left:
            scheme_and_user, _ = left.rsplit(":", 1)
            return f"{scheme_and_user}:***@{right}"
    return url


DATABASE_URL = (settings.DATABASE_URL or "").strip()
IS_SQLITE = DATABASE_URL.startswith("sqlite")
IS_MEMORY_SQLITE = IS_SQLITE and (DATABASE_URL in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in DATABASE_URL)


def create_database_engine() -> Engine:
    logger.info("Creating database engine: %s", _mask_db_url(DATABASE_URL))
    kwargs: Dict[str, Any] = {"echo": settings.DB_ECHO}

    if IS_SQLITE:
        kwargs["connect_args"] = {"check_same_thread": False}
        if IS_MEMORY_SQLITE:
            # one shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = settings.DB_POOL_PRE_PING

    try:
        eng = create_engine(DATABASE_URL, **kwargs)
    except Exception as e:
        logger.error("Failed to create database engine: %s", e, exc_info=True)
        raise
    return eng


engine = create_database_engine()

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error: %s", e, exc_info=True)
        raise
    finally:
        db.close()


def init_db() -> None:
    logger.info("Creating tables: %s", ", ".join(get_table_names()))
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready")


def drop_db() -> None:
    logger.warning("Dropping tables: %s", ", ".join(get_table_names()))
    Base.metadata.drop_all(bind=engine)


def check_database_health() -> Dict[str, Any]:
    started = time.perf_counter()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database ping failed: %s", e, exc_info=True)
        return {"status": "unhealthy", "error": str(e), "url": _mask_db_url(DATABASE_URL)}
    return {
        "status": "healthy",
        "dialect": engine.dialect.name,
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "url": _mask_db_url(DATABASE_URL),
    }


def get_table_names() -> List[str]:
    return [table.name for table in Base.metadata.sorted_tables]


def close_database_connections() -> None:
    engine.dispose()
    logger.info("Database connections closed")


__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "drop_db",
    "check_database_health",
    "get_table_names",
    "close_database_connections",
]
