"""Tests for the two-turn function-calling agent."""
from __future__ import annotations

import asyncio
import json

import pytest

from app.ai_agent.agent import FinanceAgent
from app.ai_agent.config import AgentConfig
from app.ai_agent.errors import FunctionArgumentsError, NotFoundError
from app.ai_agent.llm_providers import ChatCompletion, FunctionCall
from app.schemas.agent import AgentRequest

from .conftest import insert_row


class ScriptedProvider:
    """Replays canned completions and records what it was sent."""

    provider_name = "scripted"

    def __init__(self, backend, *replies: ChatCompletion) -> None:
        self.backend = backend
        self.replies = list(replies)
        self.calls = []

    async def chat(self, messages, functions=None, temperature=None) -> ChatCompletion:
        self.calls.append(
            {
                "messages": [dict(message) for message in messages],
                "functions": functions,
                "queries_so_far": len(self.backend.queries),
            }
        )
        return self.replies.pop(0)


def _text(content):
    return ChatCompletion(content=content, model="scripted-1", provider="scripted")


def _call(name, **arguments):
    return ChatCompletion(
        content=None,
        model="scripted-1",
        provider="scripted",
        function_call=FunctionCall(name=name, arguments=json.dumps(arguments)),
    )


def _agent(backend, provider, **config) -> FinanceAgent:
    return FinanceAgent(lambda: provider, backend, config=AgentConfig(**config))


def _respond(agent, **payload):
    return asyncio.run(agent.respond(AgentRequest.model_validate({"userId": "super-admin", **payload})))


def test_function_call_reads_once_before_synthesis(backend, workspace) -> None:
    tenant_id = workspace.tenant["id"]
    provider = ScriptedProvider(
        backend,
        _call("query_database", entity="tenants", operation="read", id=tenant_id),
        _text("O tenant Acme Tecnologia está ativo no plano pro."),
    )

    reply = _respond(_agent(backend, provider), message="Mostre o tenant Acme")

    assert len(backend.queries) == 1
    query = backend.queries[0]
    assert (query.table_name, query.operation) == ("tenants", "select")
    assert [(flt.column, flt.value) for flt in query.filters] == [("id", tenant_id)]

    first, second = provider.calls
    assert first["queries_so_far"] == 0
    assert second["queries_so_far"] == 1
    assert [fn["name"] for fn in first["functions"]] == ["query_database", "get_schema_info"]
    assert second["functions"] is None

    function_message = second["messages"][-1]
    assert function_message["role"] == "function"
    assert function_message["name"] == "query_database"
    result = json.loads(function_message["content"])
    assert result["success"] is True
    assert result["data"][0]["nome"] == "Acme Tecnologia"
    assert second["messages"][-2]["function_call"]["name"] == "query_database"

    assert reply.response == "O tenant Acme Tecnologia está ativo no plano pro."
    assert reply.function_call.name == "query_database"
    assert reply.function_call.arguments["id"] == tenant_id
    assert reply.function_call.result["message"] == "Encontrado(s) 1 registro(s)"


def test_system_prompt_carries_caller_context(backend, workspace) -> None:
    provider = ScriptedProvider(backend, _text("Olá!"))

    reply = _respond(
        _agent(backend, provider),
        message="Oi",
        tenantId=workspace.tenant["id"],
        companyId=workspace.company["id"],
        conversationHistory=[
            {"role": "user", "content": "antes"},
            {"role": "tool", "content": "ignorado"},
            {"role": "assistant", "content": "resposta"},
        ],
    )

    messages = provider.calls[0]["messages"]
    assert reply.response == "Olá!"
    assert reply.function_call is None
    assert workspace.tenant["id"] in messages[0]["content"]
    assert workspace.company["id"] in messages[0]["content"]
    assert [message["role"] for message in messages] == ["system", "user", "assistant", "user"]
    assert messages[-1] == {"role": "user", "content": "Oi"}


def test_unknown_tenant_is_rejected_before_calling_the_model(backend) -> None:
    provider = ScriptedProvider(backend, _text("não deveria ser usado"))

    with pytest.raises(NotFoundError, match="Tenant não encontrado"):
        _respond(_agent(backend, provider), message="Oi", tenantId="nao-existe")

    assert provider.calls == []


def test_company_of_another_tenant_is_rejected(backend, workspace) -> None:
    provider = ScriptedProvider(backend, _text("não deveria ser usado"))

    with pytest.raises(NotFoundError, match="Empresa não encontrada"):
        _respond(
            _agent(backend, provider),
            message="Oi",
            tenantId=workspace.other_tenant["id"],
            companyId=workspace.company["id"],
        )


def test_malformed_function_arguments_raise(backend) -> None:
    broken = ChatCompletion(
        content=None,
        model="scripted-1",
        provider="scripted",
        function_call=FunctionCall(name="query_database", arguments="{entity: tenants"),
    )
    provider = ScriptedProvider(backend, broken)

    with pytest.raises(FunctionArgumentsError) as excinfo:
        _respond(_agent(backend, provider), message="Liste os tenants")

    assert excinfo.value.status_code == 500
    assert backend.queries == []


def test_unclear_reply_falls_back_to_plan_listing(backend) -> None:
    insert_row(backend, "saas_plans", {"name": "Pro", "price": "99.90", "billing_cycle": "monthly"})
    insert_row(backend, "saas_plans", {"name": "Básico", "price": "49.90", "billing_cycle": "monthly"})
    insert_row(backend, "saas_plans", {"name": "Legado", "price": "10.00", "is_active": False})
    provider = ScriptedProvider(backend, _text("Desculpe, não entendi. Pode reformular sua pergunta?"))

    reply = _respond(_agent(backend, provider), message="Quais planos existem?")

    assert reply.response == (
        "Estes são os planos disponíveis:\n- Básico: R$ 49.90/monthly\n- Pro: R$ 99.90/monthly"
    )


def test_unclear_reply_falls_back_to_tenant_search(backend, workspace) -> None:
    provider = ScriptedProvider(backend, _text("Não tenho certeza do que você precisa."))

    reply = _respond(_agent(backend, provider), message="Quais os dados do tenant acme?")

    assert reply.response == "Encontrei os seguintes tenants:\n- Acme Tecnologia (plano pro, status ativo)"


def test_unclear_reply_without_match_uses_generic_message(backend) -> None:
    config = AgentConfig()
    provider = ScriptedProvider(backend, _text("Não consegui entender."))

    reply = _respond(_agent(backend, provider), message="e aí?")

    assert reply.response == config.fallback_message


def test_get_schema_info_returns_catalog_entry(backend) -> None:
    provider = ScriptedProvider(
        backend,
        _call("get_schema_info", entity="tasks"),
        _text("Tarefas têm título, status e prioridade."),
    )

    reply = _respond(_agent(backend, provider), message="Quais campos uma tarefa tem?")

    assert reply.function_call.result["name"] == "Tarefa"
    assert "priority" in reply.function_call.result["properties"]
    assert backend.queries == []


def test_destructive_call_is_previewed_until_confirmed(backend, workspace) -> None:
    insert_row(backend, "tasks", {"id": "t1", "tenant_id": workspace.tenant["id"], "title": "Apagar"})
    arguments = {"entity": "tasks", "operation": "delete", "id": "t1"}
    provider = ScriptedProvider(
        backend,
        _call("query_database", **arguments),
        _text("Confirma a exclusão?"),
        _call("query_database", **arguments),
        _text("Tarefa excluída."),
    )
    agent = _agent(backend, provider, confirm_destructive=True)

    preview = _respond(agent, message="Apague a tarefa t1", tenantId=workspace.tenant["id"])

    assert preview.function_call.result["preview"] is True
    assert backend.table("tasks").select("id").eq("id", "t1").execute().data == [{"id": "t1"}]

    confirmed = _respond(
        agent, message="Sim, apague", tenantId=workspace.tenant["id"], confirmDestructive=True
    )

    assert confirmed.function_call.result == {"success": True, "message": "tasks excluído com sucesso"}
    assert backend.table("tasks").select().eq("id", "t1").execute().data == []


def test_empty_synthesis_uses_default_message(backend, workspace) -> None:
    provider = ScriptedProvider(
        backend,
        _call("query_database", entity="tenants", operation="list"),
        _text(None),
    )

    reply = _respond(_agent(backend, provider), message="Liste os tenants")

    assert reply.response == AgentConfig().empty_synthesis_message
    assert reply.function_call.result["message"] == "Listando 2 tenants"
