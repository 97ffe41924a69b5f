"""Application middleware to enforce authentication on API requests."""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Iterable, Mapping
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.logger import get_logger, log_context
from app.core.security import AuthenticationError, AuthenticatedUser, SecurityProvider

LOGGER = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def extract_token(request: Request, cookie_name: str) -> str | None:
    """Return the bearer token from the Authorization header or the cookie."""

    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(cookie_name)


class AuthMiddleware(BaseHTTPMiddleware):
    """Reject unauthenticated requests with a JSON 401 response."""

    def __init__(
        self,
        app,
        security_provider: SecurityProvider,
        *,
        exempt_paths: Iterable[str] | None = None,
        exempt_prefixes: Iterable[str] | None = None,
        extra_headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(app)
        self._security_provider = security_provider
        self._exempt_paths = set(exempt_paths or ()) | {"/login", "/logout", "/health"}
        self._exempt_prefixes = tuple(exempt_prefixes or ())
        self._extra_headers = dict(extra_headers or {})

    def _is_exempt(self, request: Request) -> bool:
        """Return ``True`` when the request should bypass authentication."""

        if request.method == "OPTIONS":
            return True
        path = request.url.path
        if path in self._exempt_paths:
            return True
        for prefix in self._exempt_prefixes:
            if path.startswith(prefix):
                return True
        return path in {"/openapi.json", "/docs", "/redoc", "/favicon.ico"}

    def _unauthorized(self, message: str, *, clear_cookie: bool) -> Response:
        response = JSONResponse({"error": message}, status_code=401, headers=self._extra_headers)
        response.headers["WWW-Authenticate"] = "Bearer"
        if clear_cookie:
            response.delete_cookie(self._security_provider.cookie_name)
        return response

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex[:12]
        with log_context.bound(request_id=request_id):
            response = await self._authenticate(request, call_next)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    async def _authenticate(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if not self._security_provider.is_enabled:
            request.state.user = self._security_provider.default_superadmin()
            return await call_next(request)

        token = extract_token(request, self._security_provider.cookie_name)
        user: AuthenticatedUser | None = None
        invalid_token = False

        if token:
            try:
                user = self._security_provider.decode_token(token)
            except AuthenticationError as exc:
                LOGGER.info("Failed to decode access token", extra={"reason": str(exc)})
                invalid_token = True

        request.state.user = user

        if self._is_exempt(request):
            return await call_next(request)

        if invalid_token:
            return self._unauthorized("Token inválido ou expirado", clear_cookie=True)
        if user is None:
            return self._unauthorized("Autenticação necessária", clear_cookie=False)

        with log_context.bound(user_id=user.id):
            return await call_next(request)


__all__ = ["AuthMiddleware", "REQUEST_ID_HEADER", "extract_token"]
