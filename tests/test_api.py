"""End-to-end flows through login, workspace selection and the scoped routes."""
from __future__ import annotations

import json
from decimal import Decimal
from urllib.parse import quote

from app.core.security import AuthenticatedUser

from .conftest import bearer, insert_row


def _login(api, email: str, password: str):
    return api.post("/login", json={"email": email, "password": password})


def test_login_sets_cookie_and_me_reports_permissions(api) -> None:
    response = _login(api, "super@financeia.com.br", "super123")

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["isSuper"] is True
    assert "access_token" in response.cookies

    me = api.get("/me")
    assert me.status_code == 200
    assert me.json()["roles"] == ["superadmin"]


def test_invalid_login_is_rejected(api) -> None:
    response = _login(api, "super@financeia.com.br", "errada")

    assert response.status_code == 401
    assert response.json()["detail"] == "Email ou senha inválidos"


def test_workspace_selection_scopes_commands(api, backend, workspace) -> None:
    insert_row(backend, "tasks", {"tenant_id": workspace.tenant["id"], "title": "Conciliar"})
    insert_row(backend, "tasks", {"tenant_id": workspace.tenant["id"], "title": "Emitir NF"})
    insert_row(backend, "tasks", {"tenant_id": workspace.other_tenant["id"], "title": "Alheia"})
    _login(api, "super@financeia.com.br", "super123")

    denied = api.post("/assistant/commands", json={"text": "Crie uma nova tarefa com title=X"})
    tenant = api.post("/session/tenant", json={"tenant_id": workspace.tenant["id"]})
    company = api.post("/session/company", json={"company_id": workspace.company["id"]})
    listed = api.post("/assistant/commands", json={"text": "Liste todas as tarefas"})

    assert denied.json()["result"] == {
        "success": False,
        "error": "Você não tem permissão para executar esta operação",
    }
    assert tenant.json()["selected_tenant"]["id"] == workspace.tenant["id"]
    assert company.json()["selected_company"]["id"] == workspace.company["id"]
    assert listed.json()["command"] == {
        "type": "list",
        "entity": "task",
        "id": None,
        "filters": {},
        "data": {},
    }
    assert listed.json()["result"]["message"] == "Listando 2 task(s)"


def test_company_must_belong_to_selected_tenant(api, workspace) -> None:
    _login(api, "super@financeia.com.br", "super123")
    api.post("/session/tenant", json={"tenant_id": workspace.other_tenant["id"]})

    response = api.post("/session/company", json={"company_id": workspace.company["id"]})

    assert response.status_code == 400


def test_member_only_sees_own_tenants(api, workspace) -> None:
    _login(api, "ana@acme.com.br", "senha123")

    tenants = api.get("/session/tenants")
    foreign = api.post("/session/tenant", json={"tenant_id": workspace.other_tenant["id"]})

    assert [tenant["id"] for tenant in tenants.json()] == [workspace.tenant["id"]]
    assert foreign.status_code == 404


def test_financial_routes_use_selected_company(api, workspace) -> None:
    _login(api, "ana@acme.com.br", "senha123")
    api.post("/session/tenant", json={"tenant_id": workspace.tenant["id"]})
    api.post("/session/company", json={"company_id": workspace.company["id"]})

    created = api.post(
        "/financial/transactions",
        json={"type": "income", "amount": "250.00", "date": "2024-05-02", "status": "completed"},
    )
    summary = api.get("/financial/summary")

    assert created.status_code == 201
    assert created.json()["company_id"] == workspace.company["id"]
    assert Decimal(summary.json()["income"]) == Decimal("250")
    assert Decimal(summary.json()["balance"]) == Decimal("250")


def test_admin_routes_require_permission(api, super_headers, user_headers) -> None:
    denied = api.get("/admin/tenants", headers=user_headers)
    allowed = api.get("/admin/tenants", headers=super_headers)

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert {tenant["nome"] for tenant in allowed.json()} == {"Acme Tecnologia", "Beta Serviços"}


def test_admin_patch_without_changes_is_rejected(api, super_headers, workspace) -> None:
    response = api.patch(f"/admin/tenants/{workspace.tenant['id']}", json={}, headers=super_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Nenhum campo para atualizar"


def test_logout_clears_session(api) -> None:
    _login(api, "super@financeia.com.br", "super123")

    api.post("/logout")

    assert api.get("/me").status_code == 401


def _forged_cookie(**values) -> str:
    return "; ".join(f"{key}={quote(json.dumps(value))}" for key, value in values.items())


def test_forged_tenant_cookie_is_not_trusted(api, backend, workspace, user_headers) -> None:
    foreign = workspace.other_tenant
    headers = user_headers | {
        "Cookie": _forged_cookie(user={"id": workspace.user["id"]}, selectedTenant={"id": foreign["id"]})
    }

    created = api.post("/assistant/commands", json={"text": "Crie uma nova tarefa com title=Intrusa"}, headers=headers)
    companies = api.get("/session/companies", headers=headers)
    me = api.get("/me", headers=headers)

    assert created.json()["result"]["success"] is False
    assert backend.table("tasks").select("title").eq("tenant_id", foreign["id"]).execute().data == []
    assert companies.status_code == 400
    assert me.json()["tenantId"] is None


def test_selection_stored_for_another_user_is_ignored(api, backend, workspace, user_headers) -> None:
    headers = user_headers | {
        "Cookie": _forged_cookie(
            user={"id": "super-admin"},
            selectedTenant={"id": workspace.tenant["id"]},
            selectedCompany={"id": workspace.company["id"], "tenant_id": workspace.tenant["id"]},
        )
    }

    response = api.post(
        "/financial/transactions",
        json={"type": "income", "amount": "10.00", "date": "2024-05-02"},
        headers=headers,
    )

    assert response.status_code == 403
    assert backend.table("transactions").select("id").execute().data == []


def test_tenant_scoped_role_assignment_grants_route_access(app, api) -> None:
    headers = bearer(app, AuthenticatedUser(id="admin-1", email="admin@acme.com.br", role="user"))

    assert api.get("/admin/users", headers=headers).status_code == 200
    assert api.get("/admin/tenants", headers=headers).status_code == 403


def test_admin_creates_and_updates_plans(api, super_headers) -> None:
    created = api.post(
        "/admin/plans",
        json={"name": "Essencial", "price": "29.90", "user_limit": 2},
        headers=super_headers,
    )
    plan_id = created.json()["id"]
    updated = api.patch(f"/admin/plans/{plan_id}", json={"is_active": False}, headers=super_headers)
    empty = api.patch(f"/admin/plans/{plan_id}", json={}, headers=super_headers)

    assert created.status_code == 201
    assert created.json()["billing_cycle"] == "monthly"
    assert updated.json()["is_active"] is False
    assert api.get("/admin/plans", headers=super_headers).json() == []
    assert empty.status_code == 400


def test_task_routes_require_permission(app, api, backend, workspace) -> None:
    insert_row(backend, "tasks", {"tenant_id": workspace.tenant["id"], "title": "Conciliar"})
    guest = bearer(app, AuthenticatedUser(id="visitante", email="visitante@acme.com.br", role="guest"))

    denied = api.get("/tasks", headers=guest)
    denied_create = api.post("/tasks", json={"title": "Nova"}, headers=guest)
    _login(api, "ana@acme.com.br", "senha123")
    api.post("/session/tenant", json={"tenant_id": workspace.tenant["id"]})
    listed = api.get("/tasks")

    assert denied.status_code == 403
    assert denied.json()["detail"] == "Você não tem permissão para executar esta operação"
    assert denied_create.status_code == 403
    assert [task["title"] for task in listed.json()] == ["Conciliar"]
