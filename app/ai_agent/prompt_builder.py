"""Prompt assembly utilities for the AI agent.

The system prompt lists the entity catalog the model may operate on and the
caller's user/tenant/company context, so function calls can be grounded on
the selected workspace.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from .catalog import ENTITIES, EntitySpec
from .scope import UserScope

ALLOWED_HISTORY_ROLES = frozenset({"user", "assistant", "system"})


class PromptBuilder:
    """Construct the message list sent to the provider."""

    APP_HEADER = (
        "Você é um assistente AI especializado em operações CRUD para um sistema"
        " SaaS de gestão financeira."
    )

    INSTRUCTIONS = (
        "Quando o usuário solicitar operações no banco de dados, você deve:\n"
        "1. Interpretar a intenção do usuário\n"
        "2. Identificar a entidade e operação relevantes\n"
        "3. Extrair filtros, IDs ou dados necessários\n"
        "4. Chamar a função apropriada para executar a operação\n"
        "5. Apresentar os resultados de forma clara e concisa\n\n"
        "Seja útil, profissional e conciso em suas respostas."
    )

    def __init__(self, entities: Optional[Mapping[str, EntitySpec]] = None, max_history: int = 20):
        self.entities = entities if entities is not None else ENTITIES
        self.max_history = max_history

    def build_system_prompt(self, scope: UserScope) -> str:
        """Build the system prompt with catalog and caller context."""

        entity_lines = "\n".join(
            f"- {spec.name} ({key}): {spec.description}" for key, spec in self.entities.items()
        )
        return (
            f"{self.APP_HEADER}\n\n"
            "Você tem acesso às seguintes entidades:\n"
            f"{entity_lines}\n\n"
            f"{self._format_scope(scope)}\n\n"
            f"{self.INSTRUCTIONS}"
        )

    def build_messages(
        self,
        scope: UserScope,
        message: str,
        history: Optional[Sequence[Any]] = None,
    ) -> List[Dict[str, Any]]:
        return [
            {"role": "system", "content": self.build_system_prompt(scope)},
            *self.format_history(history),
            {"role": "user", "content": message},
        ]

    def format_history(self, history: Optional[Sequence[Any]]) -> List[Dict[str, str]]:
        """Reduce prior turns to role/content pairs, keeping the latest ones."""

        if not history or self.max_history == 0:
            return []

        formatted = []
        for item in history:
            role = item.get("role") if isinstance(item, Mapping) else getattr(item, "role", None)
            content = item.get("content") if isinstance(item, Mapping) else getattr(item, "content", None)
            if role not in ALLOWED_HISTORY_ROLES:
                continue
            formatted.append({"role": role, "content": content or ""})
        return formatted[-self.max_history:]

    @staticmethod
    def _format_scope(scope: UserScope) -> str:
        line = f"O usuário atual tem ID {scope.user_id}"
        if scope.tenant_id:
            line += f", está no tenant {scope.tenant_id}"
        if scope.company_id:
            line += f" e na empresa {scope.company_id}"
        return line + "."
