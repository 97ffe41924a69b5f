from app.core.rbac import PERMISSIONS, ROLES, RBACResolver, rbac


def test_superadmin_holds_every_permission() -> None:
    permissions = rbac.permissions_for("super-admin")

    assert set(permissions) == {permission.code for permission in PERMISSIONS}
    assert rbac.has_role("super-admin", "superadmin")


def test_tenant_scoped_roles_only_apply_inside_their_tenant() -> None:
    assert rbac.has_permission("admin-1", "admin:users:manage", tenant_id="tenant-1")
    assert not rbac.has_permission("admin-1", "admin:users:manage", tenant_id="tenant-2")


def test_unscoped_lookup_is_the_union_of_every_assignment() -> None:
    assert rbac.roles_for("admin-1", role_code="user") == ["admin", "user"]
    assert "admin:users:manage" in rbac.permissions_for("admin-1")
    assert rbac.permissions_for("user-1") == list(ROLES[-1].permissions)


def test_permissions_are_the_union_of_roles() -> None:
    permissions = rbac.permissions_for("someone", role_code="manager")

    assert "financial:transactions:update" in permissions
    assert "financial:transactions:delete" not in permissions
    assert len(permissions) == len(set(permissions))


def test_unknown_role_code_grants_nothing() -> None:
    assert rbac.roles_for("someone", role_code="wizard") == []
    assert rbac.permissions_for("someone", role_code="wizard") == []


def test_is_super_flag_grants_superadmin_role() -> None:
    roles = rbac.roles_for("someone", role_code="user", is_super=True)

    assert roles == ["user", "superadmin"]
    assert rbac.has_permission("someone", "admin:credentials:manage", is_super=True)


def test_resolver_accepts_custom_tables() -> None:
    resolver = RBACResolver(user_roles=())

    assert resolver.roles_for("super-admin") == []
