import logging
import os
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


LOGGER = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./vocabulary.db"


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""


class CardRecord(Base):
    """Persisted vocabulary card with its spaced-repetition state.

    The integer primary key records insertion order; ``card_id`` is the card's
    public identity.
    """

    __tablename__ = "vocabulary_cards"
    __table_args__ = (
        UniqueConstraint("card_id", name="uq_vocabulary_cards_card_id"),
        CheckConstraint("ease_factor >= 1.3", name="ck_vocabulary_cards_ease_floor"),
        CheckConstraint("interval_days >= 0", name="ck_vocabulary_cards_interval"),
        Index("ix_vocabulary_cards_due_at", "due_at"),
        Index("ix_vocabulary_cards_source", "source"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    card_id: Mapped[str] = mapped_column(String(64), nullable=False)
    front: Mapped[str] = mapped_column(Text, nullable=False)
    back: Mapped[str] = mapped_column(Text, nullable=False)
    pronunciation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    source: Mapped[str] = mapped_column(String(64), nullable=False)
    topic: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    ease_factor: Mapped[float] = mapped_column(Float, nullable=False, default=2.5)
    interval_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    repetitions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lapses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    total_reviews: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    successful_reviews: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    mastered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        server_onupdate=func.now(),
    )


def _expand_database_url(raw_url: str) -> str:
    """Expand environment variables inside the configured database URL."""
    return os.path.expandvars(raw_url)


def get_database_url() -> str:
    """Return the configured database URL, falling back to a local SQLite file."""
    raw_url = os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    return _expand_database_url(raw_url)


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """Create (and cache) the async engine for the application's database."""
    echo = os.getenv("SQLALCHEMY_ECHO", "false").lower() in {"1", "true", "yes"}
    return create_async_engine(get_database_url(), echo=echo)


@lru_cache(maxsize=1)
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return a cached async session factory bound to the engine."""
    return async_sessionmaker(get_engine(), expire_on_commit=False)


def should_run_migrations() -> bool:
    """Determine whether migrations should be executed during startup."""
    flag = os.getenv("RUN_MIGRATIONS_ON_STARTUP", "true").lower()
    return flag in {"1", "true", "yes", "on"}


def _build_alembic_config() -> Config:
    project_root = Path(__file__).resolve().parents[2]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", get_database_url())
    return alembic_cfg


def run_migrations(target: str = "head") -> None:
    """Run Alembic migrations up to the specified target revision."""
    command.upgrade(_build_alembic_config(), target)


def run_migrations_if_needed(target: str = "head") -> None:
    """Run migrations when the startup flag is enabled."""
    if not should_run_migrations():
        LOGGER.info("Skipping migrations because RUN_MIGRATIONS_ON_STARTUP is disabled.")
        return

    LOGGER.info("Applying database migrations up to %s.", target)
    run_migrations(target)
    LOGGER.info("Database schema is up to date.")
