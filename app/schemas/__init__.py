"""Pydantic schemas for request and response payloads."""

from .admin import (
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
from .agent import (
    AgentErrorBody,
    AgentRequest,
    AgentResponse,
    ConversationMessage,
    FunctionCallRecord,
)
from .financial import FinancialSummary, TaskCreate, TransactionCreate
from .session import (
    CommandRequest,
    LoginRequest,
    SelectCompanyRequest,
    SelectTenantRequest,
    SessionView,
    TokenResponse,
)

__all__ = [
    "CredentialCreate",
    "OrganizationCreate",
    "OrganizationUpdate",
    "PlanCreate",
    "PlanUpdate",
    "PlanView",
    "TenantCreate",
    "TenantUpdate",
    "UserCreate",
    "UserUpdate",
    "AgentErrorBody",
    "AgentRequest",
    "AgentResponse",
    "ConversationMessage",
    "FunctionCallRecord",
    "FinancialSummary",
    "TaskCreate",
    "TransactionCreate",
    "CommandRequest",
    "LoginRequest",
    "SelectCompanyRequest",
    "SelectTenantRequest",
    "SessionView",
    "TokenResponse",
]
