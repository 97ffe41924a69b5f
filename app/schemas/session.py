"""Schemas for authentication and workspace selection."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: dict[str, Any]


class SelectTenantRequest(BaseModel):
    tenant_id: str | None = None


class SelectCompanyRequest(BaseModel):
    company_id: str | None = None


class SessionView(BaseModel):
    user: dict[str, Any] | None = None
    selected_tenant: dict[str, Any] | None = None
    selected_company: dict[str, Any] | None = None
    last_tenant_id: str | None = None
    last_company_id: str | None = None


class CommandRequest(BaseModel):
    text: str = Field(min_length=1)


__all__ = [
    "CommandRequest",
    "LoginRequest",
    "SelectCompanyRequest",
    "SelectTenantRequest",
    "SessionView",
    "TokenResponse",
]
