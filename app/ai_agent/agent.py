"""
Core Agent Orchestration Module
Two-turn function-calling loop between the LLM provider and the backend
"""
import json
from typing import Callable, Optional

from fastapi.encoders import jsonable_encoder

from app.backend import BackendClient
from app.core.logger import get_logger
from app.schemas.agent import AgentRequest, AgentResponse, FunctionCallRecord

from .catalog import FUNCTIONS
from .config import AgentConfig, agent_config
from .errors import AgentError, NotFoundError
from .fallbacks import FallbackResponder
from .llm_providers import ChatCompletion, LLMProvider
from .prompt_builder import PromptBuilder
from .scope import UserScope
from .tools import AgentToolbox

logger = get_logger(__name__)


class FinanceAgent:
    """Main agent class answering chat messages with backend access"""

    def __init__(
        self,
        provider_factory: Callable[[], LLMProvider],
        client: BackendClient,
        *,
        config: Optional[AgentConfig] = None,
        toolbox: Optional[AgentToolbox] = None,
        fallbacks: Optional[FallbackResponder] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ):
        self.config = config or agent_config
        self.client = client
        self._provider_factory = provider_factory
        self.toolbox = toolbox or AgentToolbox(client, list_limit=self.config.list_limit)
        self.fallbacks = fallbacks or FallbackResponder(client, self.config)
        self.prompts = prompt_builder or PromptBuilder(max_history=self.config.max_conversation_history)

    def scope_for(self, request: AgentRequest) -> UserScope:
        return UserScope(
            user_id=request.user_id,
            tenant_id=request.tenant_id or None,
            company_id=request.company_id or None,
            tenant_tables=self.config.scoped_tables,
            company_tables=self.config.company_scoped_tables,
        )

    async def respond(self, request: AgentRequest) -> AgentResponse:
        """
        Answer one chat message end-to-end

        Args:
            request: Validated request payload

        Returns:
            AgentResponse with the final text and, when the model called a
            function, the function-call record
        """
        scope = self.scope_for(request)
        if self.config.verify_context:
            self._verify_context(scope)

        provider = self._provider_factory()
        messages = self.prompts.build_messages(scope, request.message, request.conversation_history)

        first = await provider.chat(messages, functions=FUNCTIONS)
        self._log_llm_exchange(stage="dispatch", completion=first)

        if first.function_call is None:
            return AgentResponse(response=self._direct_reply(request.message, first.content))

        call = first.function_call
        arguments = call.parse_arguments()
        preview = self.config.confirm_destructive and not request.confirm_destructive
        result = jsonable_encoder(self.toolbox.execute(call.name, arguments, scope, preview_writes=preview))

        follow_up = [
            *messages,
            first.as_message(),
            {"role": "function", "name": call.name, "content": json.dumps(result, ensure_ascii=False)},
        ]
        second = await provider.chat(follow_up)
        self._log_llm_exchange(stage="synthesis", completion=second)

        return AgentResponse(
            response=second.content or self.config.empty_synthesis_message,
            function_call=FunctionCallRecord(name=call.name, arguments=arguments, result=result),
        )

    def _direct_reply(self, message: str, content: Optional[str]) -> str:
        text = content or self.config.empty_reply_message
        if self.fallbacks.is_unclear(text):
            logger.info("Model reply was unclear; using local fallback")
            return self.fallbacks.respond(message)
        return text

    def _verify_context(self, scope: UserScope) -> None:
        """Reject tenant/company ids that do not exist."""
        if scope.tenant_id is not None:
            self._require_row("tenants", {"id": scope.tenant_id}, "Tenant não encontrado")
        if scope.company_id is not None:
            criteria = {"id": scope.company_id}
            if scope.tenant_id is not None:
                criteria["tenant_id"] = scope.tenant_id
            self._require_row("companies", criteria, "Empresa não encontrada")

    def _require_row(self, table: str, criteria: dict, message: str) -> None:
        result = self.client.table(table).select("id").match(criteria).limit(1).execute()
        if not result.ok:
            raise AgentError("Erro ao consultar o banco de dados", details=result.error)
        if not result.data:
            raise NotFoundError(message)

    def _log_llm_exchange(self, *, stage: str, completion: ChatCompletion) -> None:
        """Log provider replies for observability/troubleshooting."""
        logger.info(
            "LLM exchange stage=%s provider=%s model=%s function=%s",
            stage,
            completion.provider,
            completion.model,
            completion.function_call.name if completion.function_call else None,
        )
        logger.debug("Response [%s]: %s", stage, completion.content)
