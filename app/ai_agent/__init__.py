"""
AI agent package: keyword command interpreter and the LLM function-calling
endpoint operating on the backend tables.
"""
from .agent import FinanceAgent
from .catalog import ENTITIES, FUNCTIONS
from .commands import CommandExecutor, CommandResult, ProcessedCommand, process_command
from .config import AgentConfig, LLMProviderConfig, agent_config, llm_config
from .errors import AgentError
from .llm_providers import ChatCompletion, FunctionCall, LLMProvider, LLMProviderFactory
from .scope import UserScope

__all__ = [
    "AgentConfig",
    "AgentError",
    "ChatCompletion",
    "CommandExecutor",
    "CommandResult",
    "ENTITIES",
    "FUNCTIONS",
    "FinanceAgent",
    "FunctionCall",
    "LLMProvider",
    "LLMProviderConfig",
    "LLMProviderFactory",
    "ProcessedCommand",
    "UserScope",
    "agent_config",
    "llm_config",
    "process_command",
]
