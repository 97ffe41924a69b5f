"""Database models for the multi-tenant finance domain."""
from __future__ import annotations

from .base import Base, new_id
from .companies import Company
from .credentials import CredentialProvider, SystemCredential
from .organizations import Organization, OrganizationUser
from .tasks import Task
from .tenants import SaasPlan, Tenant, TenantUser
from .transactions import Transaction, TransactionStatus, TransactionType
from .users import User

__all__ = [
    "Base",
    "new_id",
    "Company",
    "CredentialProvider",
    "SystemCredential",
    "Organization",
    "OrganizationUser",
    "Task",
    "SaasPlan",
    "Tenant",
    "TenantUser",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "User",
]
