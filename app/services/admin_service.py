"""Service implementation for admin tooling."""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from app.backend import BackendClient, QueryResult
from app.core.logger import get_logger, timeit
from app.services.credentials import is_expired, mask_credentials

LOGGER = get_logger(__name__)


class AdminServiceError(Exception):
    """Raised when a backend operation requested by an admin fails."""

    status_code = 400


class RecordNotFoundError(AdminServiceError):
    status_code = 404


def _unwrap(result: QueryResult) -> list[dict[str, Any]]:
    if not result.ok:
        raise AdminServiceError(result.error or "Erro desconhecido")
    return result.data


class AdminService:
    """Service encapsulating tenant, organization, user and credential management."""

    def __init__(self, client: BackendClient, *, list_limit: int = 100) -> None:
        self._client = client
        self._list_limit = list_limit

    # Generic helpers -------------------------------------------------

    def _list(self, table: str, *, order_by: str | None = None, **criteria: Any) -> list[dict[str, Any]]:
        query = self._client.table(table).select().match(criteria)
        if order_by:
            query = query.order(order_by)
        return _unwrap(query.limit(self._list_limit).execute())

    def _get(self, table: str, record_id: str, label: str) -> dict[str, Any]:
        rows = _unwrap(self._client.table(table).select().eq("id", record_id).limit(1).execute())
        if not rows:
            raise RecordNotFoundError(f"{label} não encontrado(a)")
        return rows[0]

    def _create(self, table: str, values: Mapping[str, Any]) -> dict[str, Any]:
        return _unwrap(self._client.table(table).insert(values).execute())[0]

    def _update(self, table: str, record_id: str, values: Mapping[str, Any], label: str) -> dict[str, Any]:
        rows = _unwrap(self._client.table(table).update(values).eq("id", record_id).execute())
        if not rows:
            raise RecordNotFoundError(f"{label} não encontrado(a)")
        return rows[0]

    def _delete(self, table: str, record_id: str, label: str) -> None:
        rows = _unwrap(self._client.table(table).delete().eq("id", record_id).execute())
        if not rows:
            raise RecordNotFoundError(f"{label} não encontrado(a)")
        LOGGER.info("Deleted %s %s", table, record_id)

    # Tenants ---------------------------------------------------------

    def list_tenants(self) -> list[dict[str, Any]]:
        return self._list("tenants", order_by="nome")

    def get_tenant(self, tenant_id: str) -> dict[str, Any]:
        tenant = self._get("tenants", tenant_id, "Tenant")
        tenant["companies"] = self._list("companies", order_by="razao_social", tenant_id=tenant_id)
        return tenant

    def create_tenant(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return self._create("tenants", values)

    def update_tenant(self, tenant_id: str, values: Mapping[str, Any]) -> dict[str, Any]:
        return self._update("tenants", tenant_id, values, "Tenant")

    def delete_tenant(self, tenant_id: str) -> None:
        self._delete("tenants", tenant_id, "Tenant")

    def list_plans(self, *, active_only: bool = True) -> list[dict[str, Any]]:
        criteria = {"is_active": True} if active_only else {}
        return self._list("saas_plans", order_by="price", **criteria)

    def create_plan(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return self._create("saas_plans", values)

    def update_plan(self, plan_id: str, values: Mapping[str, Any]) -> dict[str, Any]:
        if not values:
            raise AdminServiceError("Nenhum campo para atualizar")
        return self._update("saas_plans", plan_id, values, "Plano")

    # Organizations ---------------------------------------------------

    def list_organizations(self, tenant_id: str | None = None) -> list[dict[str, Any]]:
        criteria = {"tenant_id": tenant_id} if tenant_id else {}
        return self._list("organizations", order_by="name", **criteria)

    def create_organization(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return self._create("organizations", values)

    def update_organization(self, organization_id: str, values: Mapping[str, Any]) -> dict[str, Any]:
        return self._update("organizations", organization_id, values, "Organização")

    def delete_organization(self, organization_id: str) -> None:
        with self._client.transaction() as tx:
            _unwrap(tx.table("organization_users").delete().eq("organization_id", organization_id).execute())
            rows = _unwrap(tx.table("organizations").delete().eq("id", organization_id).execute())
            if not rows:
                raise RecordNotFoundError("Organização não encontrado(a)")

    # Users -----------------------------------------------------------

    def list_users(self) -> list[dict[str, Any]]:
        return self._list("users", order_by="name")

    def get_user(self, user_id: str) -> dict[str, Any]:
        user = self._get("users", user_id, "Usuário")
        user["tenants"] = self._list("tenant_users", user_id=user_id)
        user["organizations"] = self._list("organization_users", user_id=user_id)
        return user

    def create_user(
        self,
        values: Mapping[str, Any],
        *,
        tenant_ids: Sequence[str] = (),
        organization_ids: Sequence[str] = (),
        membership_role: str = "user",
    ) -> dict[str, Any]:
        """Create a user and its tenant/organization memberships atomically."""

        with timeit("Create user with memberships", logger=LOGGER, unit="rows") as timer:
            with self._client.transaction() as tx:
                user = _unwrap(tx.table("users").insert(values).execute())[0]
                timer.add()
                for tenant_id in dict.fromkeys(tenant_ids):
                    _unwrap(
                        tx.table("tenant_users")
                        .insert({"tenant_id": tenant_id, "user_id": user["id"], "role": membership_role})
                        .execute()
                    )
                    timer.add()
                for organization_id in dict.fromkeys(organization_ids):
                    _unwrap(
                        tx.table("organization_users")
                        .insert({"organization_id": organization_id, "user_id": user["id"], "role": "member"})
                        .execute()
                    )
                    timer.add()
        return self.get_user(user["id"])

    def update_user(self, user_id: str, values: Mapping[str, Any]) -> dict[str, Any]:
        return self._update("users", user_id, values, "Usuário")

    def delete_user(self, user_id: str) -> None:
        with self._client.transaction() as tx:
            _unwrap(tx.table("tenant_users").delete().eq("user_id", user_id).execute())
            _unwrap(tx.table("organization_users").delete().eq("user_id", user_id).execute())
            rows = _unwrap(tx.table("users").delete().eq("id", user_id).execute())
            if not rows:
                raise RecordNotFoundError("Usuário não encontrado(a)")

    # Credentials -----------------------------------------------------

    @staticmethod
    def _present_credential(row: dict[str, Any], reveal: bool) -> dict[str, Any]:
        presented = dict(row)
        if not reveal:
            presented["credentials"] = mask_credentials(row.get("credentials") or {})
        presented["is_expired"] = is_expired(row)
        return presented

    def list_credentials(self, *, reveal: bool = False) -> list[dict[str, Any]]:
        rows = self._list("system_credentials", order_by="name")
        return [self._present_credential(row, reveal) for row in rows]

    def get_credential(self, credential_id: str, *, reveal: bool = False) -> dict[str, Any]:
        row = self._get("system_credentials", credential_id, "Credencial")
        if reveal:
            LOGGER.info("Credential %s revealed", credential_id)
        return self._present_credential(row, reveal)

    def create_credential(self, values: Mapping[str, Any]) -> dict[str, Any]:
        provider = values.get("provider")
        providers = {row["code"]: row for row in self.list_credential_providers()}
        if provider not in providers:
            raise AdminServiceError(f'Provedor "{provider}" não suportado')
        auth_types: Iterable[str] = providers[provider].get("auth_types") or ()
        if values.get("auth_type") not in auth_types:
            raise AdminServiceError(f'Tipo de autenticação "{values.get("auth_type")}" inválido para {provider}')
        return self._present_credential(self._create("system_credentials", values), reveal=False)

    def delete_credential(self, credential_id: str) -> None:
        self._delete("system_credentials", credential_id, "Credencial")

    def list_credential_providers(self) -> list[dict[str, Any]]:
        return self._list("credential_providers", order_by="name", is_active=True)


__all__ = ["AdminService", "AdminServiceError", "RecordNotFoundError"]
