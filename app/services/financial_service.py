"""Transactions and tasks within the selected tenant/company."""
from __future__ import annotations

from decimal import Decimal
from typing import Any

from app.ai_agent.scope import UserScope
from app.backend import BackendClient, QueryResult
from app.core.logger import get_logger
from app.schemas.financial import FinancialSummary, TaskCreate, TransactionCreate

LOGGER = get_logger(__name__)


class FinancialServiceError(Exception):
    status_code = 400


class ScopeRequiredError(FinancialServiceError):
    status_code = 403


def _unwrap(result: QueryResult) -> list[dict[str, Any]]:
    if not result.ok:
        raise FinancialServiceError(result.error or "Erro desconhecido")
    return result.data


class FinancialService:
    """Scoped reads and writes of transactions and tasks."""

    def __init__(self, client: BackendClient, *, list_limit: int = 50) -> None:
        self._client = client
        self._list_limit = list_limit

    @staticmethod
    def _require_company(scope: UserScope) -> None:
        if scope.tenant_id is None or scope.company_id is None:
            raise ScopeRequiredError("Selecione um tenant e uma empresa")

    @staticmethod
    def _require_tenant(scope: UserScope) -> None:
        if scope.tenant_id is None:
            raise ScopeRequiredError("Selecione um tenant")

    def list_transactions(
        self,
        scope: UserScope,
        *,
        type: str | None = None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        self._require_company(scope)
        query = self._client.table("transactions").select().match(scope.context_filters("transactions"))
        if type:
            query = query.eq("type", type)
        if status:
            query = query.eq("status", status)
        query = query.order("date", desc=True).order("created_at", desc=True)
        return _unwrap(query.limit(limit or self._list_limit).execute())

    def create_transaction(self, scope: UserScope, payload: TransactionCreate) -> dict[str, Any]:
        self._require_company(scope)
        values = payload.model_dump() | scope.context_values("transactions")
        row = _unwrap(self._client.table("transactions").insert(values).execute())[0]
        LOGGER.info("Created transaction %s (%s)", row["id"], row["type"])
        return row

    def summary(self, scope: UserScope) -> FinancialSummary:
        """Income, expense and pending totals over the selected company."""

        self._require_company(scope)
        rows = _unwrap(
            self._client.table("transactions")
            .select("type", "amount", "status")
            .match(scope.context_filters("transactions"))
            .execute()
        )
        income = expense = pending = Decimal("0")
        counted = 0
        for row in rows:
            if row["status"] == "cancelled":
                continue
            amount = Decimal(str(row["amount"]))
            counted += 1
            if row["status"] == "pending":
                pending += amount
            if row["type"] == "income":
                income += amount
            elif row["type"] == "expense":
                expense += amount
        return FinancialSummary(
            company_id=scope.company_id,
            income=income,
            expense=expense,
            pending=pending,
            transaction_count=counted,
        )

    def list_tasks(self, scope: UserScope, *, status: str | None = None) -> list[dict[str, Any]]:
        self._require_tenant(scope)
        query = self._client.table("tasks").select().match(scope.context_filters("tasks"))
        if status:
            query = query.eq("status", status)
        return _unwrap(query.order("due_date").limit(self._list_limit).execute())

    def create_task(self, scope: UserScope, payload: TaskCreate) -> dict[str, Any]:
        self._require_tenant(scope)
        values = payload.model_dump() | scope.context_values("tasks") | {"created_by": scope.user_id}
        return _unwrap(self._client.table("tasks").insert(values).execute())[0]


__all__ = ["FinancialService", "FinancialServiceError", "ScopeRequiredError"]
