"""FastAPI routers for the FinanceIA application."""

from .admin import router as admin_router
from .auth import router as auth_router
from .commands import router as commands_router
from .financial import router as financial_router
from .session import router as session_router

__all__ = [
    "admin_router",
    "auth_router",
    "commands_router",
    "financial_router",
    "session_router",
]
