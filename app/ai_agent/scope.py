"""Caller context shared by the command interpreter and the agent tools."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

WRITE_OPERATIONS = frozenset({"create", "update", "delete"})
TENANT_SCOPED_TABLES: tuple[str, ...] = ("transactions", "tasks", "organizations")
COMPANY_SCOPED_TABLES: tuple[str, ...] = ("transactions",)


@dataclass(frozen=True)
class UserScope:
    """Represents the caller's authorization context for table operations."""

    user_id: Optional[str] = None
    tenant_id: Optional[str] = None
    company_id: Optional[str] = None
    tenant_tables: Sequence[str] = TENANT_SCOPED_TABLES
    company_tables: Sequence[str] = COMPANY_SCOPED_TABLES

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def can(self, table: str, operation: str) -> bool:
        """
        Decide whether ``operation`` on ``table`` is allowed.

        Writes on tenant-scoped tables need a selected tenant, and writes on
        company-scoped tables also need a selected company.
        """
        if not self.is_authenticated:
            return False
        if operation not in WRITE_OPERATIONS:
            return True
        if table in self.tenant_tables and self.tenant_id is None:
            return False
        if table in self.company_tables and self.company_id is None:
            return False
        return True

    def context_filters(self, table: str) -> dict[str, str]:
        """Equality filters binding ``table`` to the selected tenant/company."""
        filters: dict[str, str] = {}
        if table in self.tenant_tables and self.tenant_id is not None:
            filters["tenant_id"] = self.tenant_id
        if table in self.company_tables and self.company_id is not None:
            filters["company_id"] = self.company_id
        return filters

    def context_values(self, table: str) -> dict[str, str]:
        """Column values stamped on rows created in ``table``."""
        return self.context_filters(table)


__all__ = ["UserScope", "WRITE_OPERATIONS", "TENANT_SCOPED_TABLES", "COMPANY_SCOPED_TABLES"]
