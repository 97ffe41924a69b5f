"""Request and response payloads of the AI agent endpoint."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConversationMessage(BaseModel):
    """One prior chat turn supplied by the client."""

    model_config = ConfigDict(extra="ignore")

    role: str
    content: str | None = ""


class AgentRequest(BaseModel):
    """Chat message plus the caller's tenant/company context."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: str = Field(min_length=1)
    user_id: str = Field(alias="userId", min_length=1)
    tenant_id: str | None = Field(default=None, alias="tenantId")
    company_id: str | None = Field(default=None, alias="companyId")
    conversation_history: list[ConversationMessage] = Field(
        default_factory=list, alias="conversationHistory"
    )
    confirm_destructive: bool = Field(default=False, alias="confirmDestructive")


class FunctionCallRecord(BaseModel):
    """Function requested by the model together with its outcome."""

    name: str
    arguments: dict[str, Any]
    result: Any = None


class AgentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    function_call: FunctionCallRecord | None = Field(default=None, alias="functionCall")


class AgentErrorBody(BaseModel):
    error: str
    details: Any = None
    response: str


__all__ = [
    "AgentErrorBody",
    "AgentRequest",
    "AgentResponse",
    "ConversationMessage",
    "FunctionCallRecord",
]
