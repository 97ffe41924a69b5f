"""Routes selecting the active tenant and company for the signed-in user."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.ai_agent.scope import UserScope
from app.backend import BackendClient
from app.core.logger import get_logger
from app.core.security import AuthenticatedUser, get_authenticated_user
from app.schemas.session import SelectCompanyRequest, SelectTenantRequest, SessionView
from app.services.context_store import AppState, Login, SelectCompany, SelectTenant, reduce
from app.web.dependencies import (
    allowed_tenants,
    get_backend_client,
    get_user_scope,
    load_app_state,
    persist_app_state,
)

LOGGER = get_logger(__name__)
router = APIRouter(prefix="/session", tags=["session"])


def _view(state: AppState) -> dict[str, Any]:
    return SessionView(
        user=state.user,
        selected_tenant=state.selected_tenant,
        selected_company=state.selected_company,
        last_tenant_id=state.last_tenant_id,
        last_company_id=state.last_company_id,
    ).model_dump(mode="json")


def _respond(state: AppState) -> JSONResponse:
    response = JSONResponse(_view(state))
    persist_app_state(response, state)
    return response


def _current_state(request: Request, user: AuthenticatedUser) -> AppState:
    state = load_app_state(request)
    if state.user is None or state.user.get("id") != user.id:
        state = reduce(AppState(), Login(user.as_dict()))
    return state


@router.get("")
async def get_session(
    request: Request,
    user: AuthenticatedUser = Depends(get_authenticated_user),
) -> JSONResponse:
    return _respond(_current_state(request, user))


@router.get("/tenants")
async def list_tenants(
    user: AuthenticatedUser = Depends(get_authenticated_user),
    client: BackendClient = Depends(get_backend_client),
) -> list[dict[str, Any]]:
    """Tenants the signed-in user may select."""

    return allowed_tenants(client, user)


@router.get("/companies")
async def list_companies(
    scope: UserScope = Depends(get_user_scope),
    client: BackendClient = Depends(get_backend_client),
) -> list[dict[str, Any]]:
    """Companies of the selected tenant, headquarters first."""

    if scope.tenant_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selecione um tenant")
    result = (
        client.table("companies")
        .select()
        .eq("tenant_id", scope.tenant_id)
        .order("is_headquarters", desc=True)
        .order("razao_social")
        .execute()
    )
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return result.data


@router.post("/tenant")
async def select_tenant(
    payload: SelectTenantRequest,
    request: Request,
    user: AuthenticatedUser = Depends(get_authenticated_user),
    client: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    state = _current_state(request, user)
    tenant = None
    if payload.tenant_id is not None:
        tenant = next((row for row in allowed_tenants(client, user) if row["id"] == payload.tenant_id), None)
        if tenant is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant não encontrado")
    state = reduce(state, SelectTenant(tenant))
    LOGGER.info("Tenant selected", extra={"tenant_id": payload.tenant_id})
    return _respond(state)


@router.post("/company")
async def select_company(
    payload: SelectCompanyRequest,
    request: Request,
    user: AuthenticatedUser = Depends(get_authenticated_user),
    client: BackendClient = Depends(get_backend_client),
) -> JSONResponse:
    state = _current_state(request, user)
    company = None
    if payload.company_id is not None:
        result = client.table("companies").select().eq("id", payload.company_id).limit(1).execute()
        if not result.ok:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
        if not result.data:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Empresa não encontrada")
        company = result.data[0]
    try:
        state = reduce(state, SelectCompany(company))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _respond(state)


__all__ = ["router"]
