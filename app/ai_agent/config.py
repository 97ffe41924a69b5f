"""
AI Agent Configuration Module
Centralized configuration for LLM providers and agent behaviour
"""
import os

from pydantic import BaseModel, Field, field_validator


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class LLMProviderConfig(BaseModel):
    """Configuration for LLM providers"""

    # Provider alias or model name resolved by LLMProviderFactory
    provider: str = Field(
        default_factory=lambda: os.getenv("LLM_PROVIDER", "")
    )

    # OpenAI Configuration
    openai_api_key: str = Field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY", "")
    )
    openai_model: str = Field(
        default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
    )
    openai_base_url: str = Field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    )

    # Claude Configuration
    claude_api_key: str = Field(
        default_factory=lambda: os.getenv("CLAUDE_API_KEY", "")
    )
    claude_model: str = Field(
        default_factory=lambda: os.getenv("CLAUDE_MODEL", "claude-haiku-4-5-20251001")
    )

    max_tokens: int = 1000
    temperature: float = 0.7
    request_timeout: float = Field(
        default_factory=lambda: float(os.getenv("LLM_REQUEST_TIMEOUT", "60"))
    )
    # Round trips slower than this are logged at WARNING
    slow_request_seconds: float = 15.0

    @field_validator("request_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("LLM_REQUEST_TIMEOUT must be positive")
        return value


class AgentConfig(BaseModel):
    """General agent configuration"""

    # Backend query settings
    list_limit: int = 20
    scoped_tables: tuple[str, ...] = ("transactions", "tasks", "organizations")
    company_scoped_tables: tuple[str, ...] = ("transactions",)

    # Conversation settings
    max_conversation_history: int = Field(
        default_factory=lambda: int(os.getenv("AGENT_MAX_HISTORY", "20"))
    )

    # Writes requested by the model run as previews unless confirmed
    confirm_destructive: bool = Field(
        default_factory=lambda: _env_bool("AGENT_CONFIRM_DESTRUCTIVE")
    )

    # Replies that trigger the local fallback heuristics
    unclear_phrases: tuple[str, ...] = (
        "desculpe, não entendi",
        "reformular sua pergunta",
        "não consegui entender",
        "não tenho certeza do que",
    )
    fallback_message: str = (
        "Estou processando sua solicitação. Por favor, forneça mais detalhes "
        "ou tente uma pergunta diferente."
    )
    empty_reply_message: str = "Desculpe, não consegui processar sua solicitação."
    empty_synthesis_message: str = "Não foi possível processar sua solicitação."

    # Reject tenant or company ids that do not exist before calling the model
    verify_context: bool = True

    @field_validator("list_limit", "max_conversation_history")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be non-negative")
        return value


# Global config instances
llm_config = LLMProviderConfig()
agent_config = AgentConfig()
