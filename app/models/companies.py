"""ORM model representing companies owned by a tenant."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.expression import false
from sqlalchemy.sql import func

from .base import Base, UUIDPrimaryKey


class Company(UUIDPrimaryKey, Base):
    """A business entity of a tenant, optionally a branch of a headquarters."""

    __tablename__ = "companies"

    tenant_id: Mapped[str] = mapped_column(String(36), ForeignKey("tenants.id"), nullable=False)
    cnpj: Mapped[str] = mapped_column(String(18), nullable=False)
    razao_social: Mapped[str] = mapped_column(String(200), nullable=False)
    nome_fantasia: Mapped[str] = mapped_column(String(200), nullable=False)
    is_headquarters: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    parent_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("companies.id"))
    logo: Mapped[str | None] = mapped_column(String(512))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )
