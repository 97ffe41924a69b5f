"""Entity catalog and function schema offered to the model.

Entity keys are table names of the backend; renaming a table means renaming
its key here as well.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

OPERATIONS: tuple[str, ...] = ("create", "read", "update", "delete", "list")


@dataclass(frozen=True)
class EntitySpec:
    """Model-facing description of one table."""

    key: str
    name: str
    description: str
    properties: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "properties": dict(self.properties),
        }


_SPECS = (
    EntitySpec(
        key="tenants",
        name="Tenant",
        description="Cliente da plataforma SaaS",
        properties={
            "id": "UUID do tenant",
            "nome": "Nome do tenant",
            "plano": "Plano de assinatura",
            "status": "Status do tenant (ativo, inativo, etc)",
            "limiteusuarios": "Número máximo de usuários permitidos",
            "limitearmazenamento": "Limite de armazenamento em MB",
            "ativo": "Se o tenant está ativo ou não",
        },
    ),
    EntitySpec(
        key="companies",
        name="Empresa",
        description="Empresa pertencente a um tenant",
        properties={
            "id": "UUID da empresa",
            "tenant_id": "ID do tenant ao qual a empresa pertence",
            "cnpj": "CNPJ da empresa",
            "razao_social": "Razão social da empresa",
            "nome_fantasia": "Nome fantasia da empresa",
            "is_headquarters": "Se é a matriz ou não",
            "parent_id": "ID da empresa matriz (se for filial)",
        },
    ),
    EntitySpec(
        key="transactions",
        name="Transação",
        description="Transação financeira",
        properties={
            "id": "UUID da transação",
            "company_id": "ID da empresa",
            "type": "Tipo (income ou expense)",
            "category": "Categoria da transação",
            "amount": "Valor da transação",
            "date": "Data da transação",
            "description": "Descrição da transação",
            "status": "Status (pending, completed, cancelled)",
        },
    ),
    EntitySpec(
        key="tasks",
        name="Tarefa",
        description="Tarefa ou atividade",
        properties={
            "id": "UUID da tarefa",
            "title": "Título da tarefa",
            "description": "Descrição da tarefa",
            "due_date": "Data de vencimento",
            "status": "Status (todo, in_progress, done)",
            "priority": "Prioridade (low, medium, high)",
            "assigned_to": "ID do usuário responsável",
            "created_by": "ID do usuário que criou",
        },
    ),
    EntitySpec(
        key="users",
        name="Usuário",
        description="Usuário do sistema",
        properties={
            "id": "UUID do usuário",
            "email": "Email do usuário",
            "name": "Nome do usuário",
            "role": "Papel do usuário (user, manager, admin, superadmin)",
            "is_active": "Se o usuário está ativo",
        },
    ),
    EntitySpec(
        key="organizations",
        name="Organização",
        description="Organização dentro de um tenant",
        properties={
            "id": "UUID da organização",
            "tenant_id": "ID do tenant",
            "name": "Nome da organização",
            "description": "Descrição da organização",
            "is_active": "Se a organização está ativa",
        },
    ),
)

ENTITIES: dict[str, EntitySpec] = {spec.key: spec for spec in _SPECS}

FUNCTIONS: list[dict[str, Any]] = [
    {
        "name": "query_database",
        "description": "Consulta o banco de dados para obter informações",
        "parameters": {
            "type": "object",
            "properties": {
                "entity": {
                    "type": "string",
                    "enum": list(ENTITIES),
                    "description": "A entidade a ser consultada",
                },
                "operation": {
                    "type": "string",
                    "enum": list(OPERATIONS),
                    "description": "A operação a ser realizada",
                },
                "filters": {
                    "type": "object",
                    "description": "Filtros para a consulta (pares chave-valor)",
                },
                "data": {
                    "type": "object",
                    "description": "Dados para criar ou atualizar registros",
                },
                "id": {
                    "type": "string",
                    "description": "ID do registro para operações específicas",
                },
            },
            "required": ["entity", "operation"],
        },
    },
    {
        "name": "get_schema_info",
        "description": "Obtém informações sobre o esquema do banco de dados",
        "parameters": {
            "type": "object",
            "properties": {
                "entity": {
                    "type": "string",
                    "enum": list(ENTITIES),
                    "description": "A entidade sobre a qual obter informações",
                },
            },
            "required": ["entity"],
        },
    },
]

__all__ = ["ENTITIES", "FUNCTIONS", "OPERATIONS", "EntitySpec"]
