"""SQLAlchemy engine factory and the key-value blob table."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Engine, String, Text, create_engine, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


class BlobRow(Base):
    """One serialised record list (or streak) stored under a fixed key."""

    __tablename__ = "blobs"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


def build_engine(url: str, *, echo: bool = False) -> Engine:
    return create_engine(url, echo=echo)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables (idempotent)."""
    Base.metadata.create_all(engine)
