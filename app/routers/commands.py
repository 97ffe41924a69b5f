"""Route running the keyword command interpreter for the signed-in user."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder

from app.ai_agent.commands import CommandExecutor, process_command
from app.ai_agent.config import agent_config
from app.ai_agent.scope import UserScope
from app.backend import BackendClient
from app.core.logger import get_logger, log_context
from app.schemas.session import CommandRequest
from app.web.dependencies import get_backend_client, get_user_scope

LOGGER = get_logger(__name__)
router = APIRouter(prefix="/assistant", tags=["assistant"])


@router.post("/commands")
async def run_command(
    payload: CommandRequest,
    scope: UserScope = Depends(get_user_scope),
    client: BackendClient = Depends(get_backend_client),
) -> dict:
    command = process_command(payload.text)
    with log_context.bound(user_id=scope.user_id, tenant_id=scope.tenant_id, company_id=scope.company_id):
        LOGGER.info("Command classified as %s/%s", command.type.value, command.entity.value)
        result = CommandExecutor(client, scope, list_limit=agent_config.list_limit).execute(command)
    return jsonable_encoder(
        {
            "command": {
                "type": command.type.value,
                "entity": command.entity.value,
                "id": command.id,
                "filters": command.filters,
                "data": command.data,
            },
            "result": result.as_dict(),
        }
    )


__all__ = ["router"]
