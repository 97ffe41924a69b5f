"""Service layer entrypoints for domain logic."""

from .admin_service import AdminService
from .context_store import AppState, ContextStore, StatePersistence
from .financial_service import FinancialService

__all__ = [
    "AdminService",
    "AppState",
    "ContextStore",
    "FinancialService",
    "StatePersistence",
]
