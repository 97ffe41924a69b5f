"""Provider payloads and reply normalization against mocked HTTP transports."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from app.ai_agent.catalog import FUNCTIONS
from app.ai_agent.config import LLMProviderConfig
from app.ai_agent.errors import ConfigurationError, FunctionArgumentsError, LLMProviderError
from app.ai_agent.llm_providers import (
    ANTHROPIC_URL,
    ChatGPTProvider,
    ClaudeProvider,
    FunctionCall,
    LLMProviderFactory,
)

CONFIG = LLMProviderConfig(
    openai_api_key="sk-test",
    openai_model="gpt-3.5-turbo",
    openai_base_url="https://api.openai.com/v1",
    claude_api_key="claude-test",
    claude_model="claude-test-model",
    request_timeout=5,
)


def _recording_transport(reply: dict, status_code: int = 200):
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(status_code, json=reply)

    return httpx.MockTransport(handler), sent


def test_openai_sends_functions_and_parses_function_call() -> None:
    transport, sent = _recording_transport(
        {
            "model": "gpt-3.5-turbo-0125",
            "choices": [
                {
                    "message": {
                        "role": "assistant",
                        "content": None,
                        "function_call": {
                            "name": "query_database",
                            "arguments": '{"entity": "tasks", "operation": "list"}',
                        },
                    }
                }
            ],
            "usage": {"total_tokens": 42},
        }
    )
    provider = ChatGPTProvider(config=CONFIG, transport=transport)

    completion = asyncio.run(provider.chat([{"role": "user", "content": "Liste as tarefas"}], functions=FUNCTIONS))

    request = sent[0]
    body = json.loads(request.content)
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer sk-test"
    assert body["function_call"] == "auto"
    assert [fn["name"] for fn in body["functions"]] == ["query_database", "get_schema_info"]
    assert body["max_tokens"] == 1000
    assert completion.function_call == FunctionCall(
        name="query_database", arguments='{"entity": "tasks", "operation": "list"}'
    )
    assert completion.function_call.parse_arguments() == {"entity": "tasks", "operation": "list"}
    assert completion.model == "gpt-3.5-turbo-0125"
    assert completion.usage == {"total_tokens": 42}


def test_openai_omits_functions_on_follow_up() -> None:
    transport, sent = _recording_transport({"choices": [{"message": {"content": "Pronto."}}]})
    provider = ChatGPTProvider(config=CONFIG, transport=transport)

    completion = asyncio.run(provider.chat([{"role": "user", "content": "Oi"}]))

    body = json.loads(sent[0].content)
    assert "functions" not in body and "function_call" not in body
    assert completion.content == "Pronto."
    assert completion.function_call is None


def test_http_error_is_wrapped() -> None:
    transport, _ = _recording_transport({"error": {"message": "boom"}}, status_code=502)
    provider = ChatGPTProvider(config=CONFIG, transport=transport)

    with pytest.raises(LLMProviderError) as excinfo:
        asyncio.run(provider.chat([{"role": "user", "content": "Oi"}]))

    assert excinfo.value.details == "HTTP 502"
    assert excinfo.value.status_code == 500


def test_claude_converts_messages_and_tools() -> None:
    transport, sent = _recording_transport(
        {
            "model": "claude-test-model",
            "content": [
                {"type": "text", "text": "Vou buscar."},
                {"type": "tool_use", "id": "toolu_1", "name": "query_database", "input": {"entity": "tenants", "operation": "list"}},
            ],
        }
    )
    provider = ClaudeProvider(config=CONFIG, transport=transport)
    messages = [
        {"role": "system", "content": "Sistema"},
        {"role": "user", "content": "Liste os tenants"},
        {
            "role": "assistant",
            "content": None,
            "function_call": {"name": "query_database", "arguments": '{"entity": "tenants"}'},
        },
        {"role": "function", "name": "query_database", "content": '{"success": true}'},
    ]

    completion = asyncio.run(provider.chat(messages, functions=FUNCTIONS))

    request = sent[0]
    body = json.loads(request.content)
    assert str(request.url) == ANTHROPIC_URL
    assert request.headers["x-api-key"] == "claude-test"
    assert body["system"] == "Sistema"
    assert body["messages"][0] == {"role": "user", "content": "Liste os tenants"}
    tool_use = body["messages"][1]["content"][0]
    assert tool_use["type"] == "tool_use"
    assert tool_use["input"] == {"entity": "tenants"}
    tool_result = body["messages"][2]["content"][0]
    assert tool_result == {"type": "tool_result", "tool_use_id": tool_use["id"], "content": '{"success": true}'}
    assert body["tools"][0]["input_schema"]["required"] == ["entity", "operation"]

    assert completion.content == "Vou buscar."
    assert completion.function_call.name == "query_database"
    assert completion.function_call.parse_arguments() == {"entity": "tenants", "operation": "list"}


@pytest.mark.parametrize(
    ("name", "expected", "model"),
    [
        (None, ChatGPTProvider, "gpt-3.5-turbo"),
        ("openai", ChatGPTProvider, "gpt-3.5-turbo"),
        ("anthropic", ClaudeProvider, "claude-test-model"),
        ("gpt-4o", ChatGPTProvider, "gpt-4o"),
        ("claude-3-opus-20240229", ClaudeProvider, "claude-3-opus-20240229"),
    ],
)
def test_factory_resolves_aliases_and_models(name, expected, model) -> None:
    provider = LLMProviderFactory.create(name, config=CONFIG)

    assert isinstance(provider, expected)
    assert provider.model == model


def test_factory_rejects_unknown_provider() -> None:
    with pytest.raises(ConfigurationError, match="Provedor de LLM desconhecido"):
        LLMProviderFactory.create("mistral", config=CONFIG)


def test_missing_api_key_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="Claude"):
        ClaudeProvider(config=LLMProviderConfig(claude_api_key=""))


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]"])
def test_function_arguments_must_be_a_json_object(raw) -> None:
    with pytest.raises(FunctionArgumentsError):
        FunctionCall(name="query_database", arguments=raw).parse_arguments()
