from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from restlab.config import Settings
from restlab.db.models import Base

logger = logging.getLogger(__name__)


def create_engine_from_url(
    url: str,
    *,
    pool_size: int = 5,
    max_overflow: int = 20,
    pool_recycle: int = 300,
) -> Engine:
    connect_args: dict[str, object] = {}
    if url.startswith("sqlite"):
        # Needed for FastAPI + SQLite usage with multiple threads.
        connect_args = {"check_same_thread": False}
    # An in-memory SQLite database must reuse one connection, otherwise each
    # session gets a fresh empty DB.
    if url in {"sqlite://", "sqlite:///:memory:"} or ":memory:" in url:
        return create_engine(
            url,
            connect_args=connect_args,
            poolclass=StaticPool,
            pool_pre_ping=True,
        )
    return create_engine(
        url,
        connect_args=connect_args,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,
    )


@dataclass
class Database:
    engine: Engine
    SessionLocal: sessionmaker

    @classmethod
    def from_url(cls, url: str, **pool_options: int) -> "Database":
        engine = create_engine_from_url(url, **pool_options)
        SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
        return cls(engine=engine, SessionLocal=SessionLocal)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls.from_url(
            settings.resolved_database_url(),
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
        )

    def create_tables(self) -> None:
        # Create missing tables (first-time run)
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database ready (%s)", self.engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()
