"""
LLM Provider Abstraction Layer
Supports OpenAI GPT and Anthropic Claude models with function calling
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from app.core.log.timing import timeit

from .config import LLMProviderConfig, llm_config
from .errors import (
    ConfigurationError,
    FunctionArgumentsError,
    LLMProviderError,
    ProviderTimeoutError,
)

logger = logging.getLogger(__name__)

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


@dataclass(frozen=True)
class FunctionCall:
    """Function requested by the model; ``arguments`` is the raw JSON text."""

    name: str
    arguments: str = "{}"

    def parse_arguments(self) -> Dict[str, Any]:
        try:
            parsed = json.loads(self.arguments or "{}")
        except (TypeError, ValueError) as exc:
            raise FunctionArgumentsError(details=str(exc)) from exc
        if not isinstance(parsed, dict):
            raise FunctionArgumentsError(details="Os argumentos devem ser um objeto JSON")
        return parsed


@dataclass(frozen=True)
class ChatCompletion:
    """Normalized reply of a chat-completion call."""

    content: Optional[str]
    model: str
    provider: str
    function_call: Optional[FunctionCall] = None
    usage: Dict[str, Any] = field(default_factory=dict)

    def as_message(self) -> Dict[str, Any]:
        """Assistant message to replay in a follow-up request."""
        message: Dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.function_call is not None:
            message["function_call"] = {
                "name": self.function_call.name,
                "arguments": self.function_call.arguments,
            }
        return message


class LLMProvider(ABC):
    """Base class for LLM providers"""

    provider_name = "base"

    def __init__(
        self,
        model: Optional[str] = None,
        *,
        config: Optional[LLMProviderConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or llm_config
        self.model = model
        self.timeout = self.config.request_timeout
        self._transport = transport

    @abstractmethod
    async def chat(
        self,
        messages: List[Dict[str, Any]],
        functions: Optional[List[Dict[str, Any]]] = None,
        temperature: Optional[float] = None,
    ) -> ChatCompletion:
        """Send ``messages`` and return the model reply"""
        raise NotImplementedError

    async def _post(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            with timeit(
                f"{self.provider_name} request ({self.model})",
                logger=logger,
                level=logging.DEBUG,
                slow_after=self.config.slow_request_seconds,
            ):
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.post(url, headers=headers, json=payload)
                    response.raise_for_status()
                    return response.json()
        except httpx.TimeoutException as e:
            logger.error(f"{self.provider_name} API timeout: {str(e)}")
            raise ProviderTimeoutError(details=type(e).__name__) from e
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.provider_name} API error: {e.response.status_code}")
            raise LLMProviderError(
                f"Falha na requisição ao provedor {self.provider_name}",
                details=f"HTTP {e.response.status_code}",
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"{self.provider_name} API error: {str(e)}")
            raise LLMProviderError(
                f"Falha na requisição ao provedor {self.provider_name}",
                details=type(e).__name__,
            ) from e


class ChatGPTProvider(LLMProvider):
    """OpenAI chat completions provider using legacy function calling"""

    provider_name = "chatgpt"

    def __init__(self, model: Optional[str] = None, **kwargs: Any):
        super().__init__(model, **kwargs)
        self.api_key = self.config.openai_api_key
        self.model = model or self.config.openai_model
        self.endpoint = self.config.openai_base_url.rstrip("/") + "/chat/completions"

        if not self.api_key:
            raise ConfigurationError("Chave de API do OpenAI não configurada")

    async def chat(
        self,
        messages: List[Dict[str, Any]],
        functions: Optional[List[Dict[str, Any]]] = None,
        temperature: Optional[float] = None,
    ) -> ChatCompletion:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": self.config.max_tokens,
        }
        if functions:
            payload["functions"] = functions
            payload["function_call"] = "auto"

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        data = await self._post(self.endpoint, headers, payload)

        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        function_call = None
        raw_call = message.get("function_call")
        if raw_call:
            function_call = FunctionCall(
                name=raw_call.get("name", ""),
                arguments=raw_call.get("arguments") or "{}",
            )

        return ChatCompletion(
            content=message.get("content"),
            function_call=function_call,
            model=data.get("model", self.model),
            provider=self.provider_name,
            usage=data.get("usage", {}),
        )


class ClaudeProvider(LLMProvider):
    """Anthropic Claude provider; functions are exposed as tools"""

    provider_name = "claude"

    def __init__(self, model: Optional[str] = None, **kwargs: Any):
        super().__init__(model, **kwargs)
        self.api_key = self.config.claude_api_key
        self.model = model or self.config.claude_model

        if not self.api_key:
            raise ConfigurationError("Chave de API do Claude não configurada")

    @staticmethod
    def _convert_messages(messages: List[Dict[str, Any]]) -> tuple[str, List[Dict[str, Any]]]:
        """Translate OpenAI-style messages into a system prompt and Claude messages."""
        system_parts: List[str] = []
        converted: List[Dict[str, Any]] = []
        pending_tool_id: Optional[str] = None

        for index, msg in enumerate(messages):
            role = msg.get("role")
            content = msg.get("content") or ""
            if role == "system":
                system_parts.append(content)
            elif role == "assistant" and msg.get("function_call"):
                call = msg["function_call"]
                pending_tool_id = f"call_{index}"
                try:
                    tool_input = json.loads(call.get("arguments") or "{}")
                except ValueError:
                    tool_input = {}
                blocks: List[Dict[str, Any]] = []
                if content:
                    blocks.append({"type": "text", "text": content})
                blocks.append(
                    {"type": "tool_use", "id": pending_tool_id, "name": call.get("name"), "input": tool_input}
                )
                converted.append({"role": "assistant", "content": blocks})
            elif role == "function":
                converted.append(
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "tool_result",
                                "tool_use_id": pending_tool_id or f"call_{index}",
                                "content": content,
                            }
                        ],
                    }
                )
                pending_tool_id = None
            elif role in {"user", "assistant"}:
                converted.append({"role": role, "content": content})

        return "\n\n".join(system_parts), converted

    async def chat(
        self,
        messages: List[Dict[str, Any]],
        functions: Optional[List[Dict[str, Any]]] = None,
        temperature: Optional[float] = None,
    ) -> ChatCompletion:
        system_prompt, converted = self._convert_messages(messages)
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.config.max_tokens,
            "messages": converted,
            "temperature": self.config.temperature if temperature is None else temperature,
        }
        if system_prompt:
            payload["system"] = system_prompt
        if functions:
            payload["tools"] = [
                {
                    "name": fn["name"],
                    "description": fn.get("description", ""),
                    "input_schema": fn.get("parameters", {"type": "object", "properties": {}}),
                }
                for fn in functions
            ]

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        data = await self._post(ANTHROPIC_URL, headers, payload)

        texts: List[str] = []
        function_call = None
        for block in data.get("content", []):
            if block.get("type") == "text":
                texts.append(block.get("text", ""))
            elif block.get("type") == "tool_use" and function_call is None:
                function_call = FunctionCall(
                    name=block.get("name", ""),
                    arguments=json.dumps(block.get("input") or {}),
                )

        return ChatCompletion(
            content="\n".join(texts).strip() or None,
            function_call=function_call,
            model=data.get("model", self.model),
            provider=self.provider_name,
            usage=data.get("usage", {}),
        )


class LLMProviderFactory:
    """Factory to create appropriate LLM provider"""

    ALIASES = {
        "": "chatgpt",
        "openai": "chatgpt",
        "chatgpt": "chatgpt",
        "claude": "claude",
        "anthropic": "claude",
    }

    @staticmethod
    def create(provider_name: Optional[str] = None, **kwargs: Any) -> LLMProvider:
        """
        Create LLM provider instance

        Args:
            provider_name: Provider alias or concrete model identifier
            **kwargs: Forwarded to the provider (``config``, ``transport``)

        Returns:
            Configured LLM provider instance
        """
        normalized = (provider_name or "").strip().lower()

        alias = LLMProviderFactory.ALIASES.get(normalized)
        if alias == "chatgpt":
            return ChatGPTProvider(**kwargs)
        if alias == "claude":
            return ClaudeProvider(**kwargs)

        if normalized.startswith("claude"):
            return ClaudeProvider(model=provider_name, **kwargs)
        if normalized.startswith(("gpt", "o1", "o3", "o4")):
            return ChatGPTProvider(model=provider_name, **kwargs)

        raise ConfigurationError(f"Provedor de LLM desconhecido: {provider_name}")
