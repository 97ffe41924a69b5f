"""Shared fixtures: in-memory database, backend client and API client."""
from __future__ import annotations

import dataclasses
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.backend import BackendClient
from app.core.config import Settings
from app.core.security import AuthenticatedUser, SecurityProvider
from app.db import create_sync_engine, get_sessionmaker, init_schema
from app.main import create_app
from app.web.dependencies import get_backend_client


class RecordingClient(BackendClient):
    """Backend client remembering every statement it executed."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.queries = []

    def execute(self, query):
        self.queries.append(query)
        return super().execute(query)


@pytest.fixture()
def session_factory():
    """Provide a session factory over a fresh in-memory database."""

    engine = create_sync_engine("sqlite://")
    init_schema(engine)
    yield get_sessionmaker(engine=engine)
    engine.dispose()


@pytest.fixture()
def backend(session_factory) -> RecordingClient:
    return RecordingClient(session_factory)


def insert_row(client: BackendClient, table: str, values: dict) -> dict:
    result = client.table(table).insert(values).execute()
    assert result.ok, result.error
    return result.data[0]


@pytest.fixture()
def workspace(backend: RecordingClient) -> SimpleNamespace:
    """Two tenants, one company and one regular member of the first tenant."""

    tenant = insert_row(backend, "tenants", {"nome": "Acme Tecnologia", "plano": "pro"})
    other_tenant = insert_row(backend, "tenants", {"nome": "Beta Serviços", "plano": "basic"})
    company = insert_row(
        backend,
        "companies",
        {
            "tenant_id": tenant["id"],
            "cnpj": "12.345.678/0001-90",
            "razao_social": "Acme Tecnologia LTDA",
            "nome_fantasia": "Acme",
            "is_headquarters": True,
        },
    )
    user = insert_row(backend, "users", {"email": "ana@acme.com.br", "name": "Ana", "role": "user"})
    insert_row(backend, "tenant_users", {"tenant_id": tenant["id"], "user_id": user["id"], "role": "user"})
    backend.queries.clear()
    return SimpleNamespace(tenant=tenant, other_tenant=other_tenant, company=company, user=user)


@pytest.fixture()
def settings() -> Settings:
    base = Settings.from_env()
    auth = dataclasses.replace(
        base.auth,
        secret_key="test-secret",
        algorithm="HS256",
        access_token_expire_minutes=30,
        superadmin_email="super@financeia.com.br",
        superadmin_password="super123",
        demo_user_password="senha123",
        enabled=True,
    )
    return dataclasses.replace(base, auth=auth, log_dir=None, log_level="WARNING")


@pytest.fixture()
def app(settings: Settings, backend: RecordingClient):
    application = create_app(settings, security_provider=SecurityProvider(settings.auth, backend))
    application.dependency_overrides[get_backend_client] = lambda: backend
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def api(app) -> TestClient:
    with TestClient(app) as client:
        yield client


def bearer(app, user: AuthenticatedUser) -> dict[str, str]:
    token = app.state.security.create_access_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def super_headers(app) -> dict[str, str]:
    return bearer(app, app.state.security.default_superadmin())


@pytest.fixture()
def user_headers(app, workspace) -> dict[str, str]:
    user = AuthenticatedUser(id=workspace.user["id"], email=workspace.user["email"], role="user", name="Ana")
    return bearer(app, user)
