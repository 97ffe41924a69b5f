"""ORM models for tenants, their memberships and SaaS plans.

Tenant columns keep the names used by the hosted schema (``nome``,
``plano``, ``ativo``...) because they double as the entity catalog keys
exposed to the language model.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.expression import false, true
from sqlalchemy.sql import func

from .base import Base, Timestamps, UUIDPrimaryKey


class Tenant(UUIDPrimaryKey, Timestamps, Base):
    """Top-level isolation unit of the platform."""

    __tablename__ = "tenants"

    nome: Mapped[str] = mapped_column(String(160), nullable=False)
    plano: Mapped[str] = mapped_column(String(32), nullable=False, server_default="basic")
    status: Mapped[str] = mapped_column(String(32), nullable=False, server_default="ativo")
    ativo: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
    slug: Mapped[str | None] = mapped_column(String(80))
    logo: Mapped[str | None] = mapped_column(String(512))
    limiteusuarios: Mapped[int | None] = mapped_column(Integer)
    limitearmazenamento: Mapped[int | None] = mapped_column(Integer)


class TenantUser(UUIDPrimaryKey, Base):
    """Membership of a user in a tenant."""

    __tablename__ = "tenant_users"

    tenant_id: Mapped[str] = mapped_column(String(36), ForeignKey("tenants.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, server_default="user")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )


class SaasPlan(UUIDPrimaryKey, Timestamps, Base):
    """Subscription plan offered to tenants."""

    __tablename__ = "saas_plans"

    name: Mapped[str] = mapped_column(String(80), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, server_default="0")
    billing_cycle: Mapped[str] = mapped_column(String(16), nullable=False, server_default="monthly")
    user_limit: Mapped[int] = mapped_column(Integer, nullable=False, server_default="5")
    storage_limit: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1024")
    is_recommended: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true())
