"""Keyword-driven CRUD command interpreter.

``process_command`` turns free Portuguese text into a ``ProcessedCommand`` by
substring matching against fixed keyword groups, and ``CommandExecutor`` runs
the command against the backend within the caller's ``UserScope``. The first
keyword group that appears anywhere in the text wins, and unrecognised input
classifies as ``unknown``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from app.backend import BackendClient, QueryResult
from app.core.logger import get_logger

from .scope import UserScope

LOGGER = get_logger(__name__)


class CommandType(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"
    HELP = "help"
    UNKNOWN = "unknown"


class EntityType(str, Enum):
    TRANSACTION = "transaction"
    TASK = "task"
    USER = "user"
    COMPANY = "company"
    TENANT = "tenant"
    ORGANIZATION = "organization"
    UNKNOWN = "unknown"


# Checked in order; the first group with a keyword inside the text wins.
COMMAND_KEYWORDS: tuple[tuple[CommandType, tuple[str, ...]], ...] = (
    (CommandType.CREATE, ("cria", "crie", "nova", "novo", "adiciona", "adicione", "cadastra", "cadastre")),
    (CommandType.READ, ("busca", "busque", "encontra", "encontre", "procura", "procure", "mostra", "mostre")),
    (CommandType.UPDATE, ("atualiza", "atualize", "altera", "altere", "modifica", "modifique", "edita", "edite")),
    (CommandType.DELETE, ("deleta", "delete", "remove", "remova", "exclui", "exclua", "apaga", "apague")),
    (CommandType.LIST, ("lista", "liste", "todos", "todas", "exibe", "exiba")),
    (CommandType.HELP, ("ajuda", "help", "como")),
)

ENTITY_KEYWORDS: tuple[tuple[EntityType, tuple[str, ...]], ...] = (
    (
        EntityType.TRANSACTION,
        ("transação", "transacao", "transações", "transacoes", "transaction", "pagamento", "recebimento"),
    ),
    (EntityType.TASK, ("tarefa", "task", "atividade")),
    (EntityType.USER, ("usuário", "usuario", "user")),
    (EntityType.COMPANY, ("empresa", "company")),
    (EntityType.TENANT, ("tenant", "cliente")),
    (EntityType.ORGANIZATION, ("organização", "organizacao", "organizações", "organizacoes", "organization")),
)

ENTITY_TABLES: dict[EntityType, str] = {
    EntityType.TRANSACTION: "transactions",
    EntityType.TASK: "tasks",
    EntityType.USER: "users",
    EntityType.COMPANY: "companies",
    EntityType.TENANT: "tenants",
    EntityType.ORGANIZATION: "organizations",
}

ID_PATTERNS = (
    re.compile(r"id\s*[=:]\s*(\w+)"),
    re.compile(r"com\s+id\s+(\w+)"),
)
FIELD_PATTERN = re.compile(r"""(\w+)\s*=\s*("[^"]*"|'[^']*'|[^\s,;]+)""")

PERMISSION_DENIED = "Você não tem permissão para executar esta operação"
NOT_FOUND = "Registro não encontrado"

HELP_TEXT = """Comandos disponíveis:
- Criar: "Crie uma nova [entidade] com [campo]=[valor]"
- Buscar: "Busque [entidade] com id [id]" ou "Encontre [entidade] com [campo]=[valor]"
- Atualizar: "Atualize [entidade] com id [id] definindo [campo]=[valor]"
- Excluir: "Exclua [entidade] com id [id]"
- Listar: "Liste todas as [entidades]"

Entidades disponíveis: transação, tarefa, usuário, empresa, tenant, organização"""


@dataclass(frozen=True)
class ProcessedCommand:
    type: CommandType
    entity: EntityType
    raw_text: str
    filters: dict[str, Any] = field(default_factory=dict)
    data: dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    @property
    def table(self) -> Optional[str]:
        return ENTITY_TABLES.get(self.entity)


@dataclass(frozen=True)
class CommandResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "CommandResult":
        return cls(success=False, error=error)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        if self.message is not None:
            payload["message"] = self.message
        return payload


def _first_match(text: str, groups):
    for value, keywords in groups:
        if any(keyword in text for keyword in keywords):
            return value
    return None


def extract_id(text: str) -> Optional[str]:
    """Return the record identifier mentioned in ``text``, if any."""
    lowered = text.lower()
    for pattern in ID_PATTERNS:
        match = pattern.search(lowered)
        if match:
            return match.group(1)
    return None


def extract_fields(text: str) -> dict[str, str]:
    """Collect ``campo=valor`` pairs, ignoring the identifier."""
    fields: dict[str, str] = {}
    for key, raw_value in FIELD_PATTERN.findall(text):
        if key.lower() == "id":
            continue
        if raw_value[:1] in {'"', "'"}:
            raw_value = raw_value[1:-1]
        fields[key] = raw_value
    return fields


def process_command(text: str) -> ProcessedCommand:
    """Classify ``text`` into an operation and entity. Never fails."""
    lowered = text.lower()
    command_type = _first_match(lowered, COMMAND_KEYWORDS) or CommandType.UNKNOWN
    entity = _first_match(lowered, ENTITY_KEYWORDS) or EntityType.UNKNOWN

    fields = extract_fields(text)
    data: dict[str, Any] = {}
    filters: dict[str, Any] = {}
    if command_type in (CommandType.CREATE, CommandType.UPDATE):
        data = fields
    elif command_type in (CommandType.READ, CommandType.LIST):
        filters = fields

    return ProcessedCommand(
        type=command_type,
        entity=entity,
        raw_text=text,
        filters=filters,
        data=data,
        id=extract_id(text),
    )


class CommandExecutor:
    """Run processed commands against the backend within a user scope."""

    def __init__(self, client: BackendClient, scope: UserScope, *, list_limit: int = 20) -> None:
        self._client = client
        self._scope = scope
        self._list_limit = list_limit

    def execute(self, command: ProcessedCommand) -> CommandResult:
        if not self._scope.is_authenticated:
            return CommandResult.failure(PERMISSION_DENIED)
        if command.type is CommandType.HELP:
            return CommandResult(success=True, message=HELP_TEXT)

        table = command.table
        if table is None:
            return CommandResult.failure(f'Entidade "{command.entity.value}" não suportada')
        if not self._scope.can(table, command.type.value):
            return CommandResult.failure(PERMISSION_DENIED)

        LOGGER.info("Executing %s on %s", command.type.value, table)
        handler = {
            CommandType.CREATE: self._create,
            CommandType.READ: self._read,
            CommandType.UPDATE: self._update,
            CommandType.DELETE: self._delete,
            CommandType.LIST: self._list,
        }.get(command.type)
        if handler is None:
            return CommandResult.failure("Tipo de comando não reconhecido")
        return handler(command, table)

    @staticmethod
    def _error(result: QueryResult) -> CommandResult:
        return CommandResult.failure(result.error or "Erro desconhecido ao executar comando")

    def _create(self, command: ProcessedCommand, table: str) -> CommandResult:
        values = {**command.data, **self._scope.context_values(table)}
        result = self._client.table(table).insert(values).execute()
        if not result.ok:
            return self._error(result)
        return CommandResult(
            success=True, data=result.data, message=f"{command.entity.value} criado(a) com sucesso"
        )

    def _read(self, command: ProcessedCommand, table: str) -> CommandResult:
        query = self._client.table(table).select().match(command.filters)
        if command.id:
            query = query.eq("id", command.id)
        query = query.match(self._scope.context_filters(table))
        result = query.execute()
        if not result.ok:
            return self._error(result)
        message = (
            f"Encontrado(s) {result.count} registro(s)" if result.count else "Nenhum registro encontrado"
        )
        return CommandResult(success=True, data=result.data, message=message)

    def _update(self, command: ProcessedCommand, table: str) -> CommandResult:
        if not command.id:
            return CommandResult.failure("ID não fornecido para atualização")
        result = (
            self._client.table(table)
            .update(command.data)
            .eq("id", command.id)
            .match(self._scope.context_filters(table))
            .execute()
        )
        if not result.ok:
            return self._error(result)
        if not result.data:
            return CommandResult.failure(NOT_FOUND)
        return CommandResult(
            success=True, data=result.data, message=f"{command.entity.value} atualizado(a) com sucesso"
        )

    def _delete(self, command: ProcessedCommand, table: str) -> CommandResult:
        if not command.id:
            return CommandResult.failure("ID não fornecido para exclusão")
        result = (
            self._client.table(table)
            .delete()
            .eq("id", command.id)
            .match(self._scope.context_filters(table))
            .execute()
        )
        if not result.ok:
            return self._error(result)
        if not result.data:
            return CommandResult.failure(NOT_FOUND)
        return CommandResult(success=True, message=f"{command.entity.value} excluído(a) com sucesso")

    def _list(self, command: ProcessedCommand, table: str) -> CommandResult:
        query = self._client.table(table).select().match(command.filters)
        result = query.match(self._scope.context_filters(table)).limit(self._list_limit).execute()
        if not result.ok:
            return self._error(result)
        return CommandResult(
            success=True,
            data=result.data,
            message=f"Listando {result.count} {command.entity.value}(s)",
        )


__all__ = [
    "CommandType",
    "EntityType",
    "ProcessedCommand",
    "CommandResult",
    "CommandExecutor",
    "ENTITY_TABLES",
    "HELP_TEXT",
    "process_command",
    "extract_id",
    "extract_fields",
]
