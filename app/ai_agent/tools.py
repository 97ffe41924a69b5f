"""Backend operations the model can request through function calling."""
from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from app.backend import BackendClient, QueryResult
from app.core.logger import get_logger

from .catalog import ENTITIES, OPERATIONS
from .commands import NOT_FOUND, PERMISSION_DENIED
from .scope import UserScope

LOGGER = get_logger(__name__)

ToolResult = Dict[str, Any]


def _failure(error: str, message: Optional[str] = None) -> ToolResult:
    result: ToolResult = {"success": False, "error": error}
    if message:
        result["message"] = message
    return result


def _from_query(result: QueryResult, ok_message: str, error_message: str, *, with_data: bool = True) -> ToolResult:
    payload: ToolResult = {"success": result.ok}
    if with_data and result.ok:
        payload["data"] = result.data
    if result.error is not None:
        payload["error"] = result.error
    payload["message"] = ok_message if result.ok else error_message
    return payload


class AgentToolbox:
    """Dispatch ``query_database`` and ``get_schema_info`` calls."""

    def __init__(self, client: BackendClient, *, list_limit: int = 20) -> None:
        self._client = client
        self._list_limit = list_limit
        self._handlers: Dict[str, Callable[..., ToolResult]] = {
            "query_database": self.query_database,
            "get_schema_info": self.get_schema_info,
        }

    def execute(
        self,
        name: str,
        arguments: Mapping[str, Any],
        scope: UserScope,
        *,
        preview_writes: bool = False,
    ) -> ToolResult:
        handler = self._handlers.get(name)
        if handler is None:
            LOGGER.warning("Model requested unknown function %s", name)
            return _failure(f"Função desconhecida: {name}")
        return handler(arguments, scope, preview_writes=preview_writes)

    def get_schema_info(self, arguments: Mapping[str, Any], scope: UserScope, **_: Any) -> ToolResult:
        entity = arguments.get("entity")
        spec = ENTITIES.get(entity) if isinstance(entity, str) else None
        if spec is None:
            return _failure(f'Entidade "{entity}" não suportada')
        return spec.as_dict()

    def query_database(
        self,
        arguments: Mapping[str, Any],
        scope: UserScope,
        *,
        preview_writes: bool = False,
    ) -> ToolResult:
        entity = arguments.get("entity")
        operation = arguments.get("operation")
        filters = arguments.get("filters") or {}
        data = arguments.get("data") or {}
        record_id = arguments.get("id")
        record_id = str(record_id) if record_id not in (None, "") else None

        if not isinstance(entity, str) or entity not in ENTITIES:
            return _failure(f'Entidade "{entity}" não suportada')
        if operation not in OPERATIONS:
            return _failure("Operação não suportada")
        if not isinstance(filters, Mapping) or not isinstance(data, Mapping):
            return _failure("Os campos filters e data devem ser objetos")
        if not scope.can(entity, operation):
            return _failure(PERMISSION_DENIED)

        LOGGER.info("query_database %s on %s", operation, entity)
        scope_filters = scope.context_filters(entity)

        if operation == "create":
            values = {**data, **scope.context_values(entity)}
            result = self._client.table(entity).insert(values).execute()
            return _from_query(result, f"{entity} criado com sucesso", f"Erro ao criar {entity}")

        if operation in ("read", "list"):
            query = self._client.table(entity).select().match({**filters, **scope_filters})
            if operation == "read":
                if record_id is not None:
                    query = query.eq("id", record_id)
                result = query.execute()
                return _from_query(
                    result, f"Encontrado(s) {result.count} registro(s)", f"Erro ao buscar {entity}"
                )
            result = query.limit(self._list_limit).execute()
            return _from_query(result, f"Listando {result.count} {entity}", f"Erro ao listar {entity}")

        if record_id is None:
            verb = "atualização" if operation == "update" else "exclusão"
            return _failure(f"ID não fornecido para {verb}")

        if preview_writes:
            return self._preview(entity, operation, record_id, scope_filters, data)

        if operation == "update":
            result = (
                self._client.table(entity).update(data).eq("id", record_id).match(scope_filters).execute()
            )
            if result.ok and not result.data:
                return _failure(NOT_FOUND, f"Erro ao atualizar {entity}")
            return _from_query(result, f"{entity} atualizado com sucesso", f"Erro ao atualizar {entity}")

        result = self._client.table(entity).delete().eq("id", record_id).match(scope_filters).execute()
        if result.ok and not result.data:
            return _failure(NOT_FOUND, f"Erro ao excluir {entity}")
        return _from_query(
            result, f"{entity} excluído com sucesso", f"Erro ao excluir {entity}", with_data=False
        )

    def _preview(
        self,
        entity: str,
        operation: str,
        record_id: str,
        scope_filters: Mapping[str, Any],
        data: Mapping[str, Any],
    ) -> ToolResult:
        """Describe a write without issuing it."""

        result = self._client.table(entity).select().eq("id", record_id).match(scope_filters).execute()
        if not result.ok:
            return _failure(result.error or NOT_FOUND)
        if not result.data:
            return _failure(NOT_FOUND)
        action = "atualizado" if operation == "update" else "excluído"
        preview: ToolResult = {
            "success": True,
            "preview": True,
            "data": result.data,
            "message": (
                f"Pré-visualização: o registro {record_id} de {entity} seria {action}. "
                "Peça a confirmação do usuário antes de prosseguir."
            ),
        }
        if operation == "update":
            preview["changes"] = dict(data)
        return preview


__all__ = ["AgentToolbox", "ToolResult"]
