from unittest.mock import create_autospec

import pytest

from app.ai_agent.commands import (
    HELP_TEXT,
    NOT_FOUND,
    PERMISSION_DENIED,
    CommandExecutor,
    CommandType,
    EntityType,
    extract_fields,
    extract_id,
    process_command,
)
from app.ai_agent.scope import UserScope
from app.backend import BackendClient

from .conftest import insert_row


@pytest.mark.parametrize(
    ("text", "entity"),
    [
        ("Crie uma nova tarefa", EntityType.TASK),
        ("tarefa: crie uma para amanhã", EntityType.TASK),
        ("por favor cadastre um usuário", EntityType.USER),
        ("Empresa nova chamada Acme", EntityType.COMPANY),
        ("Adicione uma transação de recebimento", EntityType.TRANSACTION),
    ],
)
def test_create_keyword_anywhere_classifies_as_create(text, entity) -> None:
    command = process_command(text)

    assert command.type is CommandType.CREATE
    assert command.entity is entity


@pytest.mark.parametrize(
    ("text", "entity"),
    [
        ("Liste todas as transações", EntityType.TRANSACTION),
        ("Liste todas as transacoes", EntityType.TRANSACTION),
        ("Liste todas as organizações", EntityType.ORGANIZATION),
        ("liste todas as organizacoes", EntityType.ORGANIZATION),
        ("Liste todos os usuários", EntityType.USER),
        ("Liste todas as empresas", EntityType.COMPANY),
    ],
)
def test_plural_entity_names_are_listed(text, entity) -> None:
    command = process_command(text)

    assert command.type is CommandType.LIST
    assert command.entity is entity


def test_unrecognised_text_classifies_as_unknown() -> None:
    command = process_command("bom dia")

    assert command.type is CommandType.UNKNOWN
    assert command.entity is EntityType.UNKNOWN
    assert command.table is None


def test_extract_id_and_fields() -> None:
    assert extract_id("Exclua transação com id 123") == "123"
    assert extract_id("Busque tarefa id=abc") == "abc"
    assert extract_id("Liste as tarefas") is None
    assert extract_fields('Crie tarefa com title="Pagar fornecedor" priority=high id=9') == {
        "title": "Pagar fornecedor",
        "priority": "high",
    }


def test_fields_become_data_or_filters_by_operation() -> None:
    create = process_command("Crie uma tarefa com title=Revisar")
    search = process_command("Busque tarefa com status=done")

    assert create.data == {"title": "Revisar"} and create.filters == {}
    assert search.filters == {"status": "done"} and search.data == {}


@pytest.mark.parametrize(
    ("text", "error"),
    [
        ("Atualize a tarefa definindo status=done", "ID não fornecido para atualização"),
        ("Exclua a tarefa", "ID não fornecido para exclusão"),
    ],
)
def test_update_and_delete_without_id_never_write(text, error) -> None:
    client = create_autospec(BackendClient, instance=True)
    scope = UserScope(user_id="user-1", tenant_id="tenant-1")

    result = CommandExecutor(client, scope).execute(process_command(text))

    assert result.success is False
    assert result.error == error
    client.table.assert_not_called()


@pytest.mark.parametrize(
    "text",
    [
        "Crie uma nova tarefa com title=Revisar",
        "Atualize a tarefa com id 7 definindo status=done",
        "Exclua a organização com id 3",
    ],
)
def test_writes_without_tenant_are_denied(text) -> None:
    client = create_autospec(BackendClient, instance=True)
    scope = UserScope(user_id="user-1")

    result = CommandExecutor(client, scope).execute(process_command(text))

    assert result.as_dict() == {"success": False, "error": PERMISSION_DENIED}
    client.table.assert_not_called()


def test_delete_transaction_without_workspace_is_denied() -> None:
    command = process_command("Exclua transação com id 123")
    client = create_autospec(BackendClient, instance=True)

    assert (command.type, command.entity, command.id) == (
        CommandType.DELETE,
        EntityType.TRANSACTION,
        "123",
    )
    result = CommandExecutor(client, UserScope(user_id="user-1", tenant_id="tenant-1")).execute(command)

    assert result.success is False
    assert result.error == PERMISSION_DENIED
    client.table.assert_not_called()


def test_unauthenticated_scope_is_denied_even_for_help() -> None:
    client = create_autospec(BackendClient, instance=True)

    result = CommandExecutor(client, UserScope()).execute(process_command("ajuda"))

    assert result.error == PERMISSION_DENIED


def test_help_returns_usage_text() -> None:
    client = create_autospec(BackendClient, instance=True)

    result = CommandExecutor(client, UserScope(user_id="user-1")).execute(process_command("ajuda"))

    assert result.success is True
    assert result.message == HELP_TEXT


def test_unknown_entity_is_rejected() -> None:
    client = create_autospec(BackendClient, instance=True)

    result = CommandExecutor(client, UserScope(user_id="user-1")).execute(
        process_command("Liste todos os produtos")
    )

    assert result.error == 'Entidade "unknown" não suportada'


def test_list_tasks_is_capped_at_twenty(backend, workspace) -> None:
    for index in range(25):
        insert_row(backend, "tasks", {"tenant_id": workspace.tenant["id"], "title": f"Tarefa {index}"})
    backend.queries.clear()
    scope = UserScope(user_id=workspace.user["id"], tenant_id=workspace.tenant["id"])

    command = process_command("Liste todas as tarefas")
    result = CommandExecutor(backend, scope).execute(command)

    assert (command.type, command.entity) == (CommandType.LIST, EntityType.TASK)
    assert result.success is True
    assert len(result.data) == 20
    assert result.message == "Listando 20 task(s)"
    assert [query.row_limit for query in backend.queries] == [20]


def test_list_message_counts_returned_rows(backend, workspace) -> None:
    for title in ("Conciliar extrato", "Emitir boletos", "Revisar contrato"):
        insert_row(backend, "tasks", {"tenant_id": workspace.tenant["id"], "title": title})
    insert_row(backend, "tasks", {"tenant_id": workspace.other_tenant["id"], "title": "Outra"})
    scope = UserScope(user_id=workspace.user["id"], tenant_id=workspace.tenant["id"])

    result = CommandExecutor(backend, scope).execute(process_command("Liste todas as tarefas"))

    assert result.message == "Listando 3 task(s)"
    assert {row["title"] for row in result.data} == {"Conciliar extrato", "Emitir boletos", "Revisar contrato"}


def test_create_stamps_tenant_of_scope(backend, workspace) -> None:
    scope = UserScope(user_id=workspace.user["id"], tenant_id=workspace.tenant["id"])

    result = CommandExecutor(backend, scope).execute(
        process_command('Crie uma nova tarefa com title="Fechar mês" priority=high')
    )

    assert result.success is True
    assert result.message == "task criado(a) com sucesso"
    row = result.data[0]
    assert row["title"] == "Fechar mês"
    assert row["tenant_id"] == workspace.tenant["id"]


def test_read_applies_filters_and_scope(backend, workspace) -> None:
    insert_row(backend, "tasks", {"tenant_id": workspace.tenant["id"], "title": "A", "status": "done"})
    insert_row(backend, "tasks", {"tenant_id": workspace.tenant["id"], "title": "B", "status": "todo"})
    insert_row(backend, "tasks", {"tenant_id": workspace.other_tenant["id"], "title": "C", "status": "done"})
    scope = UserScope(user_id=workspace.user["id"], tenant_id=workspace.tenant["id"])

    result = CommandExecutor(backend, scope).execute(process_command("Busque tarefa com status=done"))

    assert [row["title"] for row in result.data] == ["A"]
    assert result.message == "Encontrado(s) 1 registro(s)"


def test_update_outside_scope_reports_not_found(backend, workspace) -> None:
    insert_row(backend, "tasks", {"id": "t1", "tenant_id": workspace.tenant["id"], "title": "Minha"})
    insert_row(backend, "tasks", {"id": "t2", "tenant_id": workspace.other_tenant["id"], "title": "Alheia"})
    scope = UserScope(user_id=workspace.user["id"], tenant_id=workspace.tenant["id"])
    executor = CommandExecutor(backend, scope)

    updated = executor.execute(process_command("Atualize a tarefa com id t1 definindo status=done"))
    foreign = executor.execute(process_command("Atualize a tarefa com id t2 definindo status=done"))

    assert updated.success is True
    assert updated.data[0]["status"] == "done"
    assert foreign.as_dict() == {"success": False, "error": NOT_FOUND}
    untouched = backend.table("tasks").select("status").eq("id", "t2").execute().data
    assert untouched == [{"status": "todo"}]


def test_delete_removes_record(backend, workspace) -> None:
    insert_row(backend, "tasks", {"id": "t9", "tenant_id": workspace.tenant["id"], "title": "Descartar"})
    scope = UserScope(user_id=workspace.user["id"], tenant_id=workspace.tenant["id"])

    result = CommandExecutor(backend, scope).execute(process_command("Exclua a tarefa com id t9"))

    assert result.as_dict() == {"success": True, "message": "task excluído(a) com sucesso"}
    assert backend.table("tasks").select().eq("id", "t9").execute().data == []
