"""Admin API for tenants, organizations, users and credentials."""
from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import Response

from app.backend import BackendClient
from app.core.logger import get_logger
from app.core.security import require_permission
from app.schemas.admin import (
    CredentialCreate,
    OrganizationCreate,
    OrganizationUpdate,
    PlanCreate,
    PlanUpdate,
    PlanView,
    TenantCreate,
    TenantUpdate,
    UserCreate,
    UserUpdate,
)
from app.services.admin_service import AdminService, AdminServiceError
from app.web.dependencies import get_backend_client

LOGGER = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])

MANAGE_TENANTS = [Depends(require_permission("admin:tenants:manage"))]
MANAGE_USERS = [Depends(require_permission("admin:users:manage"))]
MANAGE_CREDENTIALS = [Depends(require_permission("admin:credentials:manage"))]

T = TypeVar("T")


def get_admin_service(client: BackendClient = Depends(get_backend_client)) -> AdminService:
    """Return a service instance per request."""

    return AdminService(client)


def _call(operation: Callable[[], T]) -> Any:
    try:
        return jsonable_encoder(operation())
    except AdminServiceError as exc:
        LOGGER.info("Admin operation failed: %s", exc)
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


def _no_content(operation: Callable[[], None]) -> Response:
    _call(operation)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _changes(payload: Any) -> dict[str, Any]:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nenhum campo para atualizar")
    return changes


# Tenants ---------------------------------------------------------------


@router.get("/tenants", dependencies=MANAGE_TENANTS)
async def list_tenants(service: AdminService = Depends(get_admin_service)):
    return _call(service.list_tenants)


@router.post("/tenants", status_code=status.HTTP_201_CREATED, dependencies=MANAGE_TENANTS)
async def create_tenant(payload: TenantCreate, service: AdminService = Depends(get_admin_service)):
    return _call(lambda: service.create_tenant(payload.model_dump()))


@router.get("/tenants/{tenant_id}", dependencies=MANAGE_TENANTS)
async def get_tenant(tenant_id: str, service: AdminService = Depends(get_admin_service)):
    return _call(lambda: service.get_tenant(tenant_id))


@router.patch("/tenants/{tenant_id}", dependencies=MANAGE_TENANTS)
async def update_tenant(tenant_id: str, payload: TenantUpdate, service: AdminService = Depends(get_admin_service)):
    return _call(lambda: service.update_tenant(tenant_id, _changes(payload)))


@router.delete("/tenants/{tenant_id}", dependencies=MANAGE_TENANTS)
async def delete_tenant(tenant_id: str, service: AdminService = Depends(get_admin_service)):
    return _no_content(lambda: service.delete_tenant(tenant_id))


@router.get("/plans", response_model=list[PlanView], dependencies=MANAGE_TENANTS)
async def list_plans(
    include_inactive: bool = Query(default=False),
    service: AdminService = Depends(get_admin_service),
):
    return _call(lambda: service.list_plans(active_only=not include_inactive))


@router.post("/plans", status_code=status.HTTP_201_CREATED, response_model=PlanView, dependencies=MANAGE_TENANTS)
async def create_plan(payload: PlanCreate, service: AdminService = Depends(get_admin_service)):
    return _call(lambda: service.create_plan(payload.model_dump()))


@router.patch("/plans/{plan_id}", response_model=PlanView, dependencies=MANAGE_TENANTS)
async def update_plan(plan_id: str, payload: PlanUpdate, service: AdminService = Depends(get_admin_service)):
    return _call(lambda: service.update_plan(plan_id, _changes(payload)))


# Organizations ---------------------------------------------------------


@router.get("/organizations", dependencies=MANAGE_TENANTS)
async def list_organizations(
    tenant_id: str | None = Query(default=None),
    service: AdminService = Depends(get_admin_service),
):
    return _call(lambda: service.list_organizations(tenant_id))


@router.post("/organizations", status_code=status.HTTP_201_CREATED, dependencies=MANAGE_TENANTS)
async def create_organization(payload: OrganizationCreate, service: AdminService = Depends(get_admin_service)):
    return _call(lambda: service.create_organization(payload.model_dump()))


@router.patch("/organizations/{organization_id}", dependencies=MANAGE_TENANTS)
async def update_organization(
    organization_id: str,
    payload: OrganizationUpdate,
    service: AdminService = Depends(get_admin_service),
):
    return _call(lambda: service.update_organization(organization_id, _changes(payload)))


@router.delete("/organizations/{organization_id}", dependencies=MANAGE_TENANTS)
async def delete_organization(organization_id: str, service: AdminService = Depends(get_admin_service)):
    return _no_content(lambda: service.delete_organization(organization_id))


# Users -----------------------------------------------------------------


@router.get("/users", dependencies=MANAGE_USERS)
async def list_users(service: AdminService = Depends(get_admin_service)):
    return _call(service.list_users)


@router.post("/users", status_code=status.HTTP_201_CREATED, dependencies=MANAGE_USERS)
async def create_user(payload: UserCreate, service: AdminService = Depends(get_admin_service)):
    return _call(
        lambda: service.create_user(
            payload.user_values(),
            tenant_ids=payload.tenant_ids,
            organization_ids=payload.organization_ids,
            membership_role=payload.role,
        )
    )


@router.get("/users/{user_id}", dependencies=MANAGE_USERS)
async def get_user(user_id: str, service: AdminService = Depends(get_admin_service)):
    return _call(lambda: service.get_user(user_id))


@router.patch("/users/{user_id}", dependencies=MANAGE_USERS)
async def update_user(user_id: str, payload: UserUpdate, service: AdminService = Depends(get_admin_service)):
    return _call(lambda: service.update_user(user_id, _changes(payload)))


@router.delete("/users/{user_id}", dependencies=MANAGE_USERS)
async def delete_user(user_id: str, service: AdminService = Depends(get_admin_service)):
    return _no_content(lambda: service.delete_user(user_id))


# Credentials -----------------------------------------------------------


@router.get("/credential-providers", dependencies=MANAGE_CREDENTIALS)
async def list_credential_providers(service: AdminService = Depends(get_admin_service)):
    return _call(service.list_credential_providers)


@router.get("/credentials", dependencies=MANAGE_CREDENTIALS)
async def list_credentials(
    reveal: bool = Query(default=False),
    service: AdminService = Depends(get_admin_service),
):
    return _call(lambda: service.list_credentials(reveal=reveal))


@router.post("/credentials", status_code=status.HTTP_201_CREATED, dependencies=MANAGE_CREDENTIALS)
async def create_credential(payload: CredentialCreate, service: AdminService = Depends(get_admin_service)):
    return _call(lambda: service.create_credential(payload.model_dump()))


@router.get("/credentials/{credential_id}", dependencies=MANAGE_CREDENTIALS)
async def get_credential(
    credential_id: str,
    reveal: bool = Query(default=False),
    service: AdminService = Depends(get_admin_service),
):
    return _call(lambda: service.get_credential(credential_id, reveal=reveal))


@router.delete("/credentials/{credential_id}", dependencies=MANAGE_CREDENTIALS)
async def delete_credential(credential_id: str, service: AdminService = Depends(get_admin_service)):
    return _no_content(lambda: service.delete_credential(credential_id))


__all__ = ["router"]
