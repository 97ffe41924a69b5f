"""Schemas for transaction and task payloads."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_serializer


class TransactionCreate(BaseModel):
    type: Literal["income", "expense"]
    category: str = Field(default="geral", min_length=1, max_length=80)
    amount: Decimal = Field(gt=0)
    date: dt.date
    description: str | None = None
    status: Literal["pending", "completed", "cancelled"] = "pending"
    payment_method: str | None = None


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    due_date: dt.date | None = None
    status: Literal["todo", "in_progress", "done"] = "todo"
    priority: Literal["low", "medium", "high"] = "medium"
    assigned_to: str | None = None


class FinancialSummary(BaseModel):
    """Totals of the selected company's non-cancelled transactions."""

    company_id: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    pending: Decimal = Decimal("0")
    transaction_count: int = 0

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense

    @field_serializer("income", "expense", "pending")
    def serialize_amount(self, value: Decimal) -> str:
        return str(value)

    def as_dict(self) -> dict:
        payload = self.model_dump()
        payload["balance"] = str(self.balance)
        return payload


__all__ = ["FinancialSummary", "TaskCreate", "TransactionCreate"]
