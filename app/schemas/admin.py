"""Schemas for admin panel requests."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class TenantCreate(BaseModel):
    nome: str = Field(min_length=1, max_length=160)
    plano: str = "basic"
    status: str = "ativo"
    ativo: bool = True
    slug: str | None = None
    logo: str | None = None
    limiteusuarios: int | None = Field(default=None, ge=0)
    limitearmazenamento: int | None = Field(default=None, ge=0)


class TenantUpdate(BaseModel):
    nome: str | None = Field(default=None, min_length=1, max_length=160)
    plano: str | None = None
    status: str | None = None
    ativo: bool | None = None
    slug: str | None = None
    logo: str | None = None
    limiteusuarios: int | None = Field(default=None, ge=0)
    limitearmazenamento: int | None = Field(default=None, ge=0)


class PlanView(BaseModel):
    id: str
    name: str
    description: str | None = None
    price: Decimal
    billing_cycle: str
    user_limit: int
    storage_limit: int
    is_recommended: bool = False
    is_active: bool = True


class PlanCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    description: str | None = None
    price: Decimal = Field(default=Decimal("0"), ge=0)
    billing_cycle: Literal["monthly", "yearly"] = "monthly"
    user_limit: int = Field(default=5, ge=1)
    storage_limit: int = Field(default=1024, ge=0)
    is_recommended: bool = False
    is_active: bool = True


class PlanUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=80)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    billing_cycle: Literal["monthly", "yearly"] | None = None
    user_limit: int | None = Field(default=None, ge=1)
    storage_limit: int | None = Field(default=None, ge=0)
    is_recommended: bool | None = None
    is_active: bool | None = None


class OrganizationCreate(BaseModel):
    tenant_id: str
    name: str = Field(min_length=1, max_length=160)
    description: str | None = None
    is_active: bool = True
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None


class OrganizationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=160)
    description: str | None = None
    is_active: bool | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None


class UserCreate(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    name: str | None = None
    role: str = "user"
    is_active: bool = True
    tenant_ids: list[str] = Field(default_factory=list)
    organization_ids: list[str] = Field(default_factory=list)

    def user_values(self) -> dict[str, Any]:
        return self.model_dump(exclude={"tenant_ids", "organization_ids"}) | {"email": self.email.lower()}


class UserUpdate(BaseModel):
    name: str | None = None
    role: str | None = None
    is_active: bool | None = None
    avatar_url: str | None = None


class CredentialCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    description: str | None = None
    provider: str
    auth_type: str
    credentials: dict[str, Any]
    is_active: bool = True
    expires_at: datetime | None = None


__all__ = [
    "CredentialCreate",
    "OrganizationCreate",
    "OrganizationUpdate",
    "PlanView",
    "TenantCreate",
    "TenantUpdate",
    "UserCreate",
    "UserUpdate",
]
