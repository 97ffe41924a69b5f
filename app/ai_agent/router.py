"""
FastAPI Router for the AI Agent
Serverless-style chat endpoint mounted at /functions/v1/ai-agent
"""
import json
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from app.backend import BackendClient
from app.core.config import Settings, get_settings
from app.core.logger import get_logger, log_context
from app.core.security import AuthenticatedUser
from app.schemas.agent import AgentErrorBody, AgentRequest
from app.web.dependencies import get_backend_client

from .agent import FinanceAgent
from .config import agent_config, llm_config
from .errors import AgentError, InvalidRequestError, PermissionDeniedError
from .llm_providers import LLMProviderFactory

logger = get_logger(__name__)

AGENT_PATH = "/functions/v1/ai-agent"
APOLOGY = (
    "Desculpe, ocorreu um erro ao processar sua solicitação. "
    "Por favor, tente novamente mais tarde."
)

router = APIRouter(tags=["AI Agent"])


def get_agent(client: BackendClient = Depends(get_backend_client)) -> FinanceAgent:
    """Build the agent for one request; the provider is resolved lazily."""
    return FinanceAgent(
        lambda: LLMProviderFactory.create(llm_config.provider, config=llm_config),
        client,
        config=agent_config,
    )


def get_cors_headers(request: Request) -> Dict[str, str]:
    settings: Settings = getattr(request.app.state, "settings", None) or get_settings()
    return settings.cors.as_headers()


async def _read_payload(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type")
    if content_type and "application/json" not in content_type:
        raise InvalidRequestError("Content-Type deve ser application/json")
    body = await request.body()
    try:
        payload = json.loads(body or b"")
    except ValueError:
        raise InvalidRequestError("Falha ao processar JSON da requisição") from None
    if not isinstance(payload, dict):
        raise InvalidRequestError("Falha ao processar JSON da requisição")
    return payload


def _parse_request(payload: Dict[str, Any]) -> AgentRequest:
    if not payload.get("message"):
        raise InvalidRequestError("Mensagem não fornecida")
    if not payload.get("userId"):
        raise InvalidRequestError("ID do usuário não fornecido")
    try:
        return AgentRequest.model_validate(payload)
    except ValidationError as exc:
        details = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        raise InvalidRequestError("Dados da requisição inválidos", details=details) from exc


def _check_caller(request: Request, agent_request: AgentRequest) -> None:
    """An authenticated caller may only act as itself unless it is a superadmin."""
    user: AuthenticatedUser | None = getattr(request.state, "user", None)
    if user is None or user.is_super:
        return
    if user.id != agent_request.user_id:
        raise PermissionDeniedError("Você não tem permissão para agir em nome de outro usuário")


def _error_response(exc: AgentError, headers: Dict[str, str]) -> JSONResponse:
    body = AgentErrorBody(error=exc.message, details=exc.details, response=APOLOGY)
    return JSONResponse(
        body.model_dump(exclude_none=True),
        status_code=exc.status_code,
        headers=headers,
    )


@router.options(AGENT_PATH, include_in_schema=False)
async def ai_agent_preflight(cors: Dict[str, str] = Depends(get_cors_headers)) -> Response:
    return Response(status_code=204, headers=cors)


@router.post(AGENT_PATH)
async def ai_agent(
    request: Request,
    agent: FinanceAgent = Depends(get_agent),
    cors: Dict[str, str] = Depends(get_cors_headers),
) -> JSONResponse:
    """Answer a chat message, possibly operating on the backend"""
    try:
        payload = await _read_payload(request)
        agent_request = _parse_request(payload)
        _check_caller(request, agent_request)
        with log_context.bound(
            user_id=agent_request.user_id,
            tenant_id=agent_request.tenant_id,
            company_id=agent_request.company_id,
        ):
            reply = await agent.respond(agent_request)
    except AgentError as exc:
        logger.warning("Agent request failed (%s): %s", exc.status_code, exc.message)
        return _error_response(exc, cors)
    except Exception as exc:
        logger.exception("Unhandled error while processing agent request")
        return _error_response(AgentError("Erro interno do servidor", details=type(exc).__name__), cors)

    return JSONResponse(reply.model_dump(by_alias=True, exclude_none=True), headers=cors)
