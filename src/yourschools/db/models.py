"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic auto-generates migrations by comparing these
models to the actual DB.

Key concepts:
- UUID primary keys for users (ids travel inside signed tokens)
- Generic Uuid/JSON types so the same models run on Postgres and SQLite
- Sessions reference users by id only, with no foreign key: deleting a user
  leaves its sessions behind, and they fail validation at the user stage
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class User(Base):
    """A registered user of the school directory.

    Learn: username and email are both globally unique. Admins are
    ordinary users with is_admin set; there is no separate role table.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=new_uuid
    )
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    zipcode: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    theme: Mapped[str] = mapped_column(String(50), nullable=False, default="lightTheme")
    favorite_ids: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )  # school ids
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )


class Session(Base):
    """Server-side proof that an issued token is still honored.

    Learn: A token is only accepted while a row with the same token string
    exists here and expires_at is in the future. Logout deletes the row;
    expiry is checked at lookup time, so stale rows behave as missing.
    A user may hold many sessions at once (one per device).
    """

    __tablename__ = "sessions"
    __table_args__ = (
        Index("idx_sessions_token", "token"),
        Index("idx_sessions_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token: Mapped[str] = mapped_column(String(1024), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
