"""ORM models for system credentials and the provider catalog."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.expression import true

from .base import Base, Timestamps, UUIDPrimaryKey


class CredentialProvider(Base):
    """External provider whose credentials can be stored (OpenAI, S3, ...)."""

    __tablename__ = "credential_providers"

    code: Mapped[str] = mapped_column(String(40), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    auth_types: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    fields: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    help_url: Mapped[str | None] = mapped_column(String(512))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())


class SystemCredential(UUIDPrimaryKey, Timestamps, Base):
    """Opaque secret material shared by the whole platform."""

    __tablename__ = "system_credentials"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    provider: Mapped[str] = mapped_column(String(40), nullable=False)
    auth_type: Mapped[str] = mapped_column(String(40), nullable=False)
    credentials: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    test_status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="unknown")
