"""Local answers used when the model replies that it did not understand."""
from __future__ import annotations

import re
from typing import Optional, Sequence

from app.backend import BackendClient
from app.core.logger import get_logger

from .config import AgentConfig, agent_config

LOGGER = get_logger(__name__)

_WORD = re.compile(r"[\wÀ-ÿ]+")

STOPWORDS = frozenset(
    {
        "a", "o", "as", "os", "um", "uma", "de", "da", "do", "das", "dos", "e", "em",
        "no", "na", "nos", "nas", "por", "para", "com", "que", "qual", "quais", "me",
        "meu", "minha", "sobre", "existe", "tem", "há", "mostre", "mostrar", "busque",
        "buscar", "encontre", "procure", "liste", "listar", "informações", "dados",
        "tenant", "tenants", "cliente", "clientes", "chamado", "chamada", "nome",
    }
)


class FallbackResponder:
    """Replace unhelpful "I don't understand" replies with backend lookups."""

    def __init__(self, client: BackendClient, config: Optional[AgentConfig] = None) -> None:
        self._client = client
        self._config = config or agent_config

    def is_unclear(self, text: Optional[str]) -> bool:
        lowered = (text or "").lower()
        return any(phrase in lowered for phrase in self._config.unclear_phrases)

    def respond(self, message: str) -> str:
        lowered = message.lower()
        answer: Optional[str] = None
        if "plano" in lowered:
            answer = self._plans()
        elif "tenant" in lowered or "cliente" in lowered:
            answer = self._tenants(self.candidate_terms(message))
        return answer or self._config.fallback_message

    @staticmethod
    def candidate_terms(message: str, limit: int = 3) -> list[str]:
        terms = []
        for word in _WORD.findall(message.lower()):
            if len(word) < 3 or word in STOPWORDS or word in terms:
                continue
            terms.append(word)
        return terms[:limit]

    def _plans(self) -> Optional[str]:
        result = (
            self._client.table("saas_plans")
            .select("name", "price", "billing_cycle", "description")
            .eq("is_active", True)
            .order("price")
            .limit(self._config.list_limit)
            .execute()
        )
        if not result.ok:
            LOGGER.warning("Plan lookup failed: %s", result.error)
            return None
        if not result.data:
            return "No momento não há planos ativos cadastrados."
        lines = [
            f"- {row['name']}: R$ {row['price']:.2f}/{row.get('billing_cycle') or 'mensal'}"
            for row in result.data
        ]
        return "Estes são os planos disponíveis:\n" + "\n".join(lines)

    def _tenants(self, terms: Sequence[str]) -> Optional[str]:
        for term in terms:
            result = (
                self._client.table("tenants")
                .select("id", "nome", "plano", "status")
                .ilike("nome", f"%{term}%")
                .limit(5)
                .execute()
            )
            if not result.ok:
                LOGGER.warning("Tenant lookup failed: %s", result.error)
                return None
            if result.data:
                lines = [
                    f"- {row['nome']} (plano {row.get('plano') or '-'}, status {row.get('status') or '-'})"
                    for row in result.data
                ]
                return "Encontrei os seguintes tenants:\n" + "\n".join(lines)
        return None


__all__ = ["FallbackResponder", "STOPWORDS"]
