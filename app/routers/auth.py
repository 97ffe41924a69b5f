"""Authentication routes providing login, logout and profile actions."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response

from app.ai_agent.scope import UserScope
from app.core.logger import get_logger
from app.core.security import (
    AuthenticatedUser,
    SecurityProvider,
    get_authenticated_user,
)
from app.schemas.session import LoginRequest, TokenResponse
from app.services.context_store import AppState, Login, reduce
from app.web.dependencies import get_user_scope, persist_app_state

LOGGER = get_logger(__name__)
router = APIRouter(tags=["auth"])


def get_security(request: Request) -> SecurityProvider:
    return request.app.state.security


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    security: SecurityProvider = Depends(get_security),
) -> Response:
    """Validate demo credentials and issue a bearer token (also set as cookie)."""

    user = security.authenticate(payload.email, payload.password)
    if user is None:
        LOGGER.info("Invalid login attempt", extra={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Email ou senha inválidos")

    token = security.create_access_token(user)
    body = TokenResponse(access_token=token, expires_in=security.token_ttl_seconds, user=user.as_dict())
    response = JSONResponse(body.model_dump())
    response.set_cookie(
        security.cookie_name,
        token,
        max_age=security.token_ttl_seconds,
        httponly=True,
        samesite="lax",
    )
    persist_app_state(response, reduce(AppState(), Login(user.as_dict())))
    LOGGER.info("User logged in", extra={"email": user.email, "role": user.role})
    return response


@router.post("/logout")
async def logout(security: SecurityProvider = Depends(get_security)) -> Response:
    """Clear the access token and every persisted selection."""

    response = JSONResponse({"success": True})
    response.delete_cookie(security.cookie_name)
    persist_app_state(response, AppState())
    return response


@router.get("/me")
async def me(
    user: AuthenticatedUser = Depends(get_authenticated_user),
    scope: UserScope = Depends(get_user_scope),
) -> dict:
    """Profile of the signed-in user with roles and permissions for the selected tenant."""

    tenant_id = scope.tenant_id
    return {
        **user.as_dict(),
        "tenantId": tenant_id,
        "roles": user.roles(tenant_id),
        "permissions": user.permissions(tenant_id),
    }


__all__ = ["router"]
