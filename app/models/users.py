"""ORM model for platform users."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.expression import false, true

from .base import Base, Timestamps, UUIDPrimaryKey


class User(UUIDPrimaryKey, Timestamps, Base):
    """A person able to sign in; ``role`` is resolved against the RBAC tables."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(160))
    role: Mapped[str] = mapped_column(String(32), nullable=False, server_default="user")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    is_super: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    avatar_url: Mapped[str | None] = mapped_column(String(512))
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
