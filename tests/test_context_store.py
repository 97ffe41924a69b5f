"""Tests for the reducer-driven session state and its persistence."""
from __future__ import annotations

import json

import pytest

from app.services.context_store import (
    LAST_TENANT_KEY,
    SELECTED_COMPANY_KEY,
    SELECTED_TENANT_KEY,
    USER_KEY,
    AppState,
    ContextStore,
    Login,
    Logout,
    SelectCompany,
    SelectTenant,
    StatePersistence,
    reduce,
)

TENANT = {"id": "tenant-1", "nome": "Acme"}
OTHER_TENANT = {"id": "tenant-2", "nome": "Beta"}
COMPANY = {"id": "company-1", "tenant_id": "tenant-1", "razao_social": "Acme LTDA"}


def _fixed_now() -> str:
    return "2024-06-01T12:00:00+00:00"


def _with_company() -> AppState:
    state = reduce(AppState(), Login({"id": "user-1"}), now=_fixed_now)
    state = reduce(state, SelectTenant(TENANT), now=_fixed_now)
    return reduce(state, SelectCompany(COMPANY), now=_fixed_now)


def test_selecting_tenant_stamps_last_access() -> None:
    state = reduce(AppState(), SelectTenant(TENANT), now=_fixed_now)

    assert state.selected_tenant == {**TENANT, "lastAccess": "2024-06-01T12:00:00+00:00"}
    assert state.last_tenant_id == "tenant-1"


def test_switching_tenant_clears_company() -> None:
    state = reduce(_with_company(), SelectTenant(OTHER_TENANT), now=_fixed_now)

    assert state.tenant_id == "tenant-2"
    assert state.selected_company is None
    assert state.last_company_id == "company-1"


def test_reselecting_same_tenant_keeps_company() -> None:
    state = reduce(_with_company(), SelectTenant(TENANT), now=_fixed_now)

    assert state.company_id == "company-1"


def test_company_requires_matching_tenant() -> None:
    with pytest.raises(ValueError):
        reduce(AppState(), SelectCompany(COMPANY))

    state = reduce(AppState(), SelectTenant(OTHER_TENANT))
    with pytest.raises(ValueError, match="não pertence ao tenant atual"):
        reduce(state, SelectCompany(COMPANY))


def test_logout_resets_everything() -> None:
    assert reduce(_with_company(), Logout()) == AppState()


def test_store_notifies_until_unsubscribed() -> None:
    store = ContextStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.dispatch(Login({"id": "user-1"}))
    unsubscribe()
    store.dispatch(Logout())

    assert len(seen) == 1
    assert seen[0].is_authenticated
    assert store.state == AppState()


def test_persistence_round_trip() -> None:
    persistence = StatePersistence()
    state = _with_company()

    stored = persistence.dump(state)

    assert json.loads(stored[SELECTED_TENANT_KEY])["id"] == "tenant-1"
    assert persistence.load(stored) == state


def test_persistence_discards_corrupt_and_orphan_values() -> None:
    persistence = StatePersistence()
    storage = {
        USER_KEY: "{not json",
        SELECTED_TENANT_KEY: json.dumps(OTHER_TENANT),
        SELECTED_COMPANY_KEY: json.dumps(COMPANY),
        LAST_TENANT_KEY: "tenant-2",
    }

    state = persistence.load(storage)

    assert state.user is None
    assert state.tenant_id == "tenant-2"
    assert state.selected_company is None
    assert state.last_tenant_id == "tenant-2"


def test_cleared_selections_dump_as_removals() -> None:
    stored = StatePersistence().dump(AppState())

    assert set(stored.values()) == {None}
