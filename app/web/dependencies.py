"""Shared FastAPI dependency definitions."""
from __future__ import annotations

from functools import lru_cache
from typing import Any
from urllib.parse import quote, unquote

from fastapi import Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import sessionmaker

from app.ai_agent.scope import UserScope
from app.backend import BackendClient
from app.core.logger import get_logger
from app.core.security import AuthenticatedUser, get_authenticated_user
from app.db.session import get_sessionmaker
from app.services.context_store import STORAGE_KEYS, AppState, StatePersistence

LOGGER = get_logger(__name__)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    """Return the process-wide session factory.

    Built lazily so importing the application does not require a reachable
    database; the engine itself is shared by every session.
    """

    return get_sessionmaker()


def get_backend_client() -> BackendClient:
    """Return a backend client bound to the shared session factory."""

    return BackendClient(get_session_factory())


def load_app_state(request: Request) -> AppState:
    """Rebuild the workspace selection from the persisted cookies."""

    storage = {key: unquote(request.cookies[key]) for key in STORAGE_KEYS if key in request.cookies}
    return StatePersistence().load(storage)


def persist_app_state(response: Response, state: AppState) -> None:
    """Write ``state`` back to the cookies, deleting cleared keys."""

    for key, value in StatePersistence().dump(state).items():
        if value is None:
            response.delete_cookie(key)
        else:
            response.set_cookie(key, quote(value), httponly=True, samesite="lax")


def allowed_tenants(client: BackendClient, user: AuthenticatedUser) -> list[dict[str, Any]]:
    """Active tenants ``user`` may work in; superadmins see all of them."""

    result = client.table("tenants").select().eq("ativo", True).order("nome").execute()
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    if user.is_super:
        return result.data
    memberships = client.table("tenant_users").select("tenant_id").eq("user_id", user.id).execute()
    if not memberships.ok:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=memberships.error)
    allowed = {row["tenant_id"] for row in memberships.data}
    return [tenant for tenant in result.data if tenant["id"] in allowed]


def _company_in_tenant(client: BackendClient, company_id: str, tenant_id: str) -> bool:
    result = client.table("companies").select("id").eq("id", company_id).eq("tenant_id", tenant_id).limit(1).execute()
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return bool(result.data)


def get_user_scope(
    request: Request,
    user: AuthenticatedUser = Depends(get_authenticated_user),
    client: BackendClient = Depends(get_backend_client),
) -> UserScope:
    """Scope of the signed-in user within the selected tenant/company.

    The selection lives in client cookies, so it is checked again on every
    request: a selection saved for another user is ignored, the tenant must
    still be one the user may access, and the company must belong to it.
    """

    state = load_app_state(request)
    tenant_id = state.tenant_id
    company_id = state.company_id
    if state.user is None or state.user.get("id") != user.id:
        tenant_id = company_id = None
    if tenant_id is not None and tenant_id not in {tenant["id"] for tenant in allowed_tenants(client, user)}:
        LOGGER.warning("Ignoring tenant %s not accessible to user %s", tenant_id, user.id)
        tenant_id = company_id = None
    if company_id is not None and (tenant_id is None or not _company_in_tenant(client, company_id, tenant_id)):
        LOGGER.warning("Ignoring company %s outside tenant %s", company_id, tenant_id)
        company_id = None
    return UserScope(user_id=user.id, tenant_id=tenant_id, company_id=company_id)
