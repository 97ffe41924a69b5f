"""Backend query client used by services, routers and the AI agent."""

from .client import BackendClient, BackendError, QueryResult, TableQuery

__all__ = ["BackendClient", "BackendError", "QueryResult", "TableQuery"]
