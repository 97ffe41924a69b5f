"""ORM model for financial transactions."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, Timestamps, UUIDPrimaryKey


class TransactionType(str, Enum):
    """Direction of a financial transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Transaction(UUIDPrimaryKey, Timestamps, Base):
    """Financial record scoped to a company (and its tenant)."""

    __tablename__ = "transactions"

    tenant_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("tenants.id"))
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("companies.id"), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    category: Mapped[str] = mapped_column(String(80), nullable=False, server_default="geral")
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending")
    payment_method: Mapped[str | None] = mapped_column(String(40))
