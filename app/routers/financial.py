"""Routes for transactions and tasks of the selected workspace."""
from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder

from app.ai_agent.scope import UserScope
from app.backend import BackendClient
from app.core.logger import get_logger
from app.core.security import require_permission
from app.schemas.financial import TaskCreate, TransactionCreate
from app.services.financial_service import FinancialService, FinancialServiceError
from app.web.dependencies import get_backend_client, get_user_scope

LOGGER = get_logger(__name__)
router = APIRouter(tags=["financial"])

T = TypeVar("T")


def get_financial_service(client: BackendClient = Depends(get_backend_client)) -> FinancialService:
    """Return a service instance per request."""

    return FinancialService(client)


def _call(operation: Callable[[], T]) -> T:
    try:
        return operation()
    except FinancialServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get(
    "/financial/transactions",
    dependencies=[Depends(require_permission("financial:transactions:read"))],
)
async def list_transactions(
    type: Literal["income", "expense"] | None = Query(default=None),
    status_filter: Literal["pending", "completed", "cancelled"] | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    scope: UserScope = Depends(get_user_scope),
    service: FinancialService = Depends(get_financial_service),
) -> list[dict[str, Any]]:
    rows = _call(lambda: service.list_transactions(scope, type=type, status=status_filter, limit=limit))
    return jsonable_encoder(rows)


@router.post(
    "/financial/transactions",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("financial:transactions:create"))],
)
async def create_transaction(
    payload: TransactionCreate,
    scope: UserScope = Depends(get_user_scope),
    service: FinancialService = Depends(get_financial_service),
) -> dict[str, Any]:
    return jsonable_encoder(_call(lambda: service.create_transaction(scope, payload)))


@router.get(
    "/financial/summary",
    dependencies=[Depends(require_permission("financial:transactions:read"))],
)
async def financial_summary(
    scope: UserScope = Depends(get_user_scope),
    service: FinancialService = Depends(get_financial_service),
) -> dict[str, Any]:
    return _call(lambda: service.summary(scope)).as_dict()


@router.get(
    "/tasks",
    dependencies=[Depends(require_permission("financial:transactions:read"))],
)
async def list_tasks(
    status_filter: Literal["todo", "in_progress", "done"] | None = Query(default=None, alias="status"),
    scope: UserScope = Depends(get_user_scope),
    service: FinancialService = Depends(get_financial_service),
) -> list[dict[str, Any]]:
    return jsonable_encoder(_call(lambda: service.list_tasks(scope, status=status_filter)))


@router.post(
    "/tasks",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("financial:transactions:create"))],
)
async def create_task(
    payload: TaskCreate,
    scope: UserScope = Depends(get_user_scope),
    service: FinancialService = Depends(get_financial_service),
) -> dict[str, Any]:
    return jsonable_encoder(_call(lambda: service.create_task(scope, payload)))


__all__ = ["router"]
