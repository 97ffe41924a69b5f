"""Static role-based access control tables.

Permission codes follow ``<module>:<resource>:<action>``. A user's effective
permissions are the union of the permissions of every role assigned to them.
Elevated access comes only from the ``superadmin`` role, which is declared
here with every permission code.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence


@dataclass(frozen=True)
class Permission:
    id: str
    code: str
    name: str
    description: str
    module: str


@dataclass(frozen=True)
class Role:
    id: str
    name: str
    description: str
    permissions: tuple[str, ...]
    is_system: bool = True


@dataclass(frozen=True)
class UserRole:
    """Assignment of a role to a user, optionally limited to one tenant."""

    id: str
    user_id: str
    role_id: str
    tenant_id: str | None = None


PERMISSIONS: tuple[Permission, ...] = (
    Permission("1", "financial:transactions:create", "Criar transações", "Pode criar transações financeiras", "financial"),
    Permission("2", "financial:transactions:read", "Ver transações", "Pode visualizar transações financeiras", "financial"),
    Permission("3", "financial:transactions:update", "Editar transações", "Pode editar transações financeiras", "financial"),
    Permission("4", "financial:transactions:delete", "Excluir transações", "Pode excluir transações financeiras", "financial"),
    Permission("5", "admin:users:manage", "Gerenciar usuários", "Pode gerenciar usuários do sistema", "admin"),
    Permission("6", "documents:read", "Ver documentos", "Pode visualizar documentos", "documents"),
    Permission("7", "documents:upload", "Upload de documentos", "Pode enviar documentos", "documents"),
    Permission("8", "settings:edit", "Editar configurações", "Pode editar configurações do sistema", "settings"),
    Permission("9", "admin:tenants:manage", "Gerenciar tenants", "Pode gerenciar tenants, organizações e planos", "admin"),
    Permission("10", "admin:credentials:manage", "Gerenciar credenciais", "Pode gerenciar credenciais do sistema", "admin"),
)

ROLES: tuple[Role, ...] = (
    Role(
        id="superadmin",
        name="Super Admin",
        description="Acesso total ao sistema",
        permissions=tuple(permission.code for permission in PERMISSIONS),
    ),
    Role(
        id="admin",
        name="Administrador",
        description="Administra um tenant",
        permissions=(
            "financial:transactions:create",
            "financial:transactions:read",
            "financial:transactions:update",
            "financial:transactions:delete",
            "admin:users:manage",
            "documents:read",
            "documents:upload",
            "settings:edit",
        ),
    ),
    Role(
        id="manager",
        name="Gerente",
        description="Gerencia as finanças de um tenant",
        permissions=(
            "financial:transactions:create",
            "financial:transactions:read",
            "financial:transactions:update",
            "documents:read",
            "documents:upload",
        ),
    ),
    Role(
        id="user",
        name="Usuário",
        description="Usuário comum",
        permissions=(
            "financial:transactions:create",
            "financial:transactions:read",
            "documents:read",
            "documents:upload",
        ),
    ),
)

USER_ROLES: tuple[UserRole, ...] = (
    UserRole(id="ur1", user_id="super-admin", role_id="superadmin"),
    UserRole(id="ur2", user_id="admin-1", role_id="admin", tenant_id="tenant-1"),
    UserRole(id="ur3", user_id="user-1", role_id="user", tenant_id="tenant-1"),
)


@dataclass
class RBACResolver:
    """Resolve roles and permissions from the static tables."""

    permissions: Sequence[Permission] = PERMISSIONS
    roles: Sequence[Role] = ROLES
    user_roles: Sequence[UserRole] = USER_ROLES
    _roles_by_id: dict[str, Role] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._roles_by_id = {role.id: role for role in self.roles}

    def roles_for(
        self,
        user_id: str,
        *,
        role_code: str | None = None,
        is_super: bool = False,
        tenant_id: str | None = None,
    ) -> list[str]:
        """Return the role ids held by ``user_id``, in assignment order.

        Without ``tenant_id`` every assignment counts; with it, tenant-scoped
        assignments of other tenants are skipped. The user's own ``role_code``
        counts when it names a known role.
        """

        found: list[str] = []
        for assignment in self.user_roles:
            if assignment.user_id != user_id:
                continue
            if tenant_id is not None and assignment.tenant_id not in (None, tenant_id):
                continue
            found.append(assignment.role_id)
        if role_code and role_code in self._roles_by_id:
            found.append(role_code)
        if is_super:
            found.append("superadmin")
        return list(dict.fromkeys(found))

    def permissions_for_roles(self, role_ids: Iterable[str]) -> list[str]:
        codes: list[str] = []
        for role_id in role_ids:
            role = self._roles_by_id.get(role_id)
            if role is not None:
                codes.extend(role.permissions)
        return list(dict.fromkeys(codes))

    def permissions_for(
        self,
        user_id: str,
        *,
        role_code: str | None = None,
        is_super: bool = False,
        tenant_id: str | None = None,
    ) -> list[str]:
        roles = self.roles_for(user_id, role_code=role_code, is_super=is_super, tenant_id=tenant_id)
        return self.permissions_for_roles(roles)

    def has_permission(self, user_id: str, permission_code: str, **context) -> bool:
        """``context`` accepts the keyword arguments of ``roles_for``."""

        return permission_code in self.permissions_for(user_id, **context)

    def has_role(self, user_id: str, role_id: str, **context) -> bool:
        return role_id in self.roles_for(user_id, **context)


rbac = RBACResolver()

__all__ = [
    "PERMISSIONS",
    "ROLES",
    "USER_ROLES",
    "Permission",
    "Role",
    "UserRole",
    "RBACResolver",
    "rbac",
]
