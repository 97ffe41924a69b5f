"""Typed errors raised by the agent and mapped to HTTP status codes."""
from __future__ import annotations

from typing import Any, Optional


class AgentError(Exception):
    """Base class for failures surfaced by the agent endpoint."""

    status_code = 500

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidRequestError(AgentError):
    status_code = 400


class PermissionDeniedError(AgentError):
    status_code = 403


class NotFoundError(AgentError):
    status_code = 404


class ProviderTimeoutError(AgentError):
    status_code = 408

    def __init__(self, message: str = "A solicitação excedeu o tempo limite", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class ConfigurationError(AgentError):
    status_code = 500


class FunctionArgumentsError(AgentError):
    status_code = 500

    def __init__(self, message: str = "Erro ao processar argumentos da função", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class LLMProviderError(AgentError):
    status_code = 500


__all__ = [
    "AgentError",
    "InvalidRequestError",
    "PermissionDeniedError",
    "NotFoundError",
    "ProviderTimeoutError",
    "ConfigurationError",
    "FunctionArgumentsError",
    "LLMProviderError",
]
