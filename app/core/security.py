"""JWT-backed authentication helpers for the demo login flow."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Callable

import jwt
from fastapi import Depends, HTTPException, Request, status
from jwt import ExpiredSignatureError, InvalidTokenError

from app.backend import BackendClient
from app.core.config import AuthSettings, get_settings
from app.core.logger import get_logger
from app.core.rbac import rbac

LOGGER = get_logger(__name__)

SUPERADMIN_ID = "super-admin"


class AuthenticationError(Exception):
    """Raised when authentication or token validation fails."""


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    """Representation of the authenticated principal."""

    id: str
    email: str
    role: str
    name: str | None = None
    is_super: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "isSuper": self.is_super,
        }

    def roles(self, tenant_id: str | None = None) -> list[str]:
        return rbac.roles_for(
            self.id, role_code=self.role, is_super=self.is_super, tenant_id=tenant_id
        )

    def permissions(self, tenant_id: str | None = None) -> list[str]:
        return rbac.permissions_for(
            self.id, role_code=self.role, is_super=self.is_super, tenant_id=tenant_id
        )

    def has_permission(self, code: str, tenant_id: str | None = None) -> bool:
        return code in self.permissions(tenant_id)


class SecurityProvider:
    """Authenticate demo users and issue/verify JWT access tokens."""

    def __init__(self, settings: AuthSettings, backend: BackendClient | None = None) -> None:
        self._settings = settings
        self._backend = backend

    @property
    def cookie_name(self) -> str:
        """Return the cookie name used for the access token."""

        return self._settings.cookie_name

    @property
    def token_ttl_seconds(self) -> int:
        """Return the access token lifetime in seconds."""

        return int(self._settings.access_token_expire_minutes * 60)

    @property
    def is_enabled(self) -> bool:
        return self._settings.enabled

    def default_superadmin(self) -> AuthenticatedUser:
        return AuthenticatedUser(
            id=SUPERADMIN_ID,
            email=self._settings.superadmin_email,
            name="Super Admin",
            role="superadmin",
            is_super=True,
        )

    def authenticate(self, email: str, password: str) -> AuthenticatedUser | None:
        """Validate the supplied credentials and return an ``AuthenticatedUser``."""

        email = (email or "").strip().lower()
        if email == self._settings.superadmin_email.lower():
            if password == self._settings.superadmin_password:
                return self.default_superadmin()
            return None

        # Every other account shares the demo password.
        if password != self._settings.demo_user_password or self._backend is None:
            return None

        result = self._backend.table("users").select().eq("email", email).limit(1).execute()
        if not result.ok:
            LOGGER.warning("User lookup failed during login: %s", result.error)
            return None
        if not result.data:
            return None
        row = result.data[0]
        if not row.get("is_active", True):
            return None

        self._backend.table("users").update(
            {"last_login": datetime.now(tz=timezone.utc)}
        ).eq("id", row["id"]).execute()

        return AuthenticatedUser(
            id=str(row["id"]),
            email=row["email"],
            name=row.get("name"),
            role=row.get("role") or "user",
            is_super=bool(row.get("is_super")),
        )

    def create_access_token(self, user: AuthenticatedUser) -> str:
        """Create a signed JWT for the authenticated user."""

        now = datetime.now(tz=timezone.utc)
        expires = now + timedelta(minutes=self._settings.access_token_expire_minutes)
        payload: dict[str, object] = {
            "sub": user.id,
            "email": user.email,
            "role": user.role,
            "is_super": user.is_super,
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
        }
        if user.name:
            payload["name"] = user.name
        return jwt.encode(payload, self._settings.secret_key, algorithm=self._settings.algorithm)

    def decode_token(self, token: str) -> AuthenticatedUser:
        """Decode a JWT and return the corresponding ``AuthenticatedUser``."""

        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key,
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError as exc:
            raise AuthenticationError("Token expired") from exc
        except InvalidTokenError as exc:
            raise AuthenticationError("Invalid token") from exc

        user_id = payload.get("sub")
        email = payload.get("email")
        role = payload.get("role")
        if not isinstance(user_id, str) or not isinstance(email, str) or not isinstance(role, str):
            raise AuthenticationError("Token payload missing required claims")

        name = payload.get("name")
        return AuthenticatedUser(
            id=user_id,
            email=email,
            role=role,
            name=name if isinstance(name, str) else None,
            is_super=payload.get("is_super") is True,
        )


@lru_cache(maxsize=1)
def get_security_provider() -> SecurityProvider:
    """Return a cached security provider instance."""

    from app.web.dependencies import get_backend_client

    settings = get_settings()
    return SecurityProvider(settings.auth, get_backend_client())


def get_authenticated_user(request: Request) -> AuthenticatedUser:
    """Retrieve the authenticated user placed on the request by ``AuthMiddleware``."""

    user = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Autenticação necessária")
    return user


def require_permission(code: str) -> Callable[..., AuthenticatedUser]:
    """Build a dependency asserting the current user holds ``code``."""

    def _dependency(
        user: AuthenticatedUser = Depends(get_authenticated_user),
    ) -> AuthenticatedUser:
        if not user.has_permission(code):
            LOGGER.info("Permission %s denied for user %s", code, user.id)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Você não tem permissão para executar esta operação",
            )
        return user

    return _dependency


__all__ = [
    "AuthenticatedUser",
    "AuthenticationError",
    "SecurityProvider",
    "SUPERADMIN_ID",
    "get_security_provider",
    "get_authenticated_user",
    "require_permission",
]
