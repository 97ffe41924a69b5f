"""FastAPI application instance and startup hooks."""
from __future__ import annotations

from fastapi import Depends, FastAPI

from app.ai_agent.router import router as ai_agent_router
from app.backend import BackendClient
from app.core import get_logger
from app.core.config import Settings, get_settings
from app.core.logger import init_logging
from app.core.security import SecurityProvider, get_security_provider
from app.middleware.auth import AuthMiddleware
from app.routers import (
    admin_router,
    auth_router,
    commands_router,
    financial_router,
    session_router,
)
from app.web.dependencies import get_backend_client

LOGGER = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    security_provider: SecurityProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()
    init_logging(level=settings.log_level, log_dir=settings.log_dir, json_format=settings.log_json)

    app = FastAPI(title="FinanceIA", version="0.1.0")
    app.state.settings = settings
    app.state.security = security_provider or get_security_provider()
    app.add_middleware(
        AuthMiddleware,
        security_provider=app.state.security,
        extra_headers=settings.cors.as_headers(),
    )
    app.include_router(auth_router)
    app.include_router(session_router)
    app.include_router(commands_router)
    app.include_router(financial_router)
    app.include_router(admin_router)
    app.include_router(ai_agent_router)

    @app.get("/health", tags=["health"])
    async def health(client: BackendClient = Depends(get_backend_client)) -> dict:
        result = client.table("tenants").select("id").limit(1).execute()
        if not result.ok:
            LOGGER.warning("Health check could not reach the database: %s", result.error)
        return {"status": "ok", "database": "ok" if result.ok else "unavailable"}

    LOGGER.info("FastAPI application initialised (auth %s)", "enabled" if settings.auth.enabled else "disabled")
    return app
