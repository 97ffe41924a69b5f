"""Explicit application state for the signed-in user and workspace selection.

State changes go through ``reduce`` so they can be reasoned about in
isolation; ``ContextStore`` serializes dispatches and notifies subscribers;
``StatePersistence`` is the only place that knows the storage keys.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Callable, Mapping, Optional, Union

from app.core.logger import get_logger

LOGGER = get_logger(__name__)

USER_KEY = "user"
SELECTED_TENANT_KEY = "selectedTenant"
SELECTED_COMPANY_KEY = "selectedCompany"
LAST_TENANT_KEY = "lastTenantId"
LAST_COMPANY_KEY = "lastCompanyId"
STORAGE_KEYS = (USER_KEY, SELECTED_TENANT_KEY, SELECTED_COMPANY_KEY, LAST_TENANT_KEY, LAST_COMPANY_KEY)


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


@dataclass(frozen=True)
class AppState:
    """Immutable snapshot of the session context."""

    user: Optional[dict[str, Any]] = None
    selected_tenant: Optional[dict[str, Any]] = None
    selected_company: Optional[dict[str, Any]] = None
    last_tenant_id: Optional[str] = None
    last_company_id: Optional[str] = None

    @property
    def tenant_id(self) -> Optional[str]:
        return self.selected_tenant.get("id") if self.selected_tenant else None

    @property
    def company_id(self) -> Optional[str]:
        return self.selected_company.get("id") if self.selected_company else None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


@dataclass(frozen=True)
class Login:
    user: dict[str, Any]


@dataclass(frozen=True)
class Logout:
    pass


@dataclass(frozen=True)
class SelectTenant:
    tenant: Optional[dict[str, Any]]


@dataclass(frozen=True)
class SelectCompany:
    company: Optional[dict[str, Any]]


Action = Union[Login, Logout, SelectTenant, SelectCompany]


def reduce(state: AppState, action: Action, *, now: Callable[[], str] = _now_iso) -> AppState:
    """Return the state that results from applying ``action`` to ``state``."""

    if isinstance(action, Login):
        return replace(state, user=dict(action.user))

    if isinstance(action, Logout):
        return AppState()

    if isinstance(action, SelectTenant):
        if action.tenant is None:
            return replace(state, selected_tenant=None, selected_company=None)
        tenant = {**action.tenant, "lastAccess": now()}
        company = state.selected_company
        if state.tenant_id != tenant.get("id"):
            company = None
        return replace(
            state,
            selected_tenant=tenant,
            selected_company=company,
            last_tenant_id=tenant.get("id"),
        )

    if isinstance(action, SelectCompany):
        if action.company is None:
            return replace(state, selected_company=None)
        company_tenant = action.company.get("tenant_id")
        if state.tenant_id is None or (company_tenant is not None and company_tenant != state.tenant_id):
            raise ValueError("A empresa selecionada não pertence ao tenant atual")
        company = {**action.company, "lastAccess": now()}
        return replace(state, selected_company=company, last_company_id=company.get("id"))

    raise TypeError(f"Unsupported action: {action!r}")


Listener = Callable[[AppState], None]


class ContextStore:
    """Reducer-driven store with subscriber notification."""

    def __init__(self, state: Optional[AppState] = None) -> None:
        self._state = state or AppState()
        self._listeners: list[Listener] = []
        self._lock = RLock()

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: Action) -> AppState:
        with self._lock:
            self._state = reduce(self._state, action)
            state = self._state
            listeners = list(self._listeners)
        for listener in listeners:
            listener(state)
        return state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe


@dataclass
class StatePersistence:
    """Serialize ``AppState`` to and from the string storage keys."""

    keys: tuple[str, ...] = field(default=STORAGE_KEYS)

    @staticmethod
    def _load_json(raw: Optional[str], key: str) -> Optional[dict[str, Any]]:
        if not raw:
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            LOGGER.warning("Discarding corrupt stored value for %s", key)
            return None
        return value if isinstance(value, dict) else None

    def load(self, storage: Mapping[str, str]) -> AppState:
        user = self._load_json(storage.get(USER_KEY), USER_KEY)
        tenant = self._load_json(storage.get(SELECTED_TENANT_KEY), SELECTED_TENANT_KEY)
        company = self._load_json(storage.get(SELECTED_COMPANY_KEY), SELECTED_COMPANY_KEY)
        if tenant is None:
            company = None
        elif company is not None and company.get("tenant_id") not in (None, tenant.get("id")):
            company = None
        return AppState(
            user=user,
            selected_tenant=tenant,
            selected_company=company,
            last_tenant_id=storage.get(LAST_TENANT_KEY) or None,
            last_company_id=storage.get(LAST_COMPANY_KEY) or None,
        )

    def dump(self, state: AppState) -> dict[str, Optional[str]]:
        """Return key to value; ``None`` means the key must be removed."""

        def encode(value: Optional[dict[str, Any]]) -> Optional[str]:
            return json.dumps(value, ensure_ascii=False, default=str) if value is not None else None

        return {
            USER_KEY: encode(state.user),
            SELECTED_TENANT_KEY: encode(state.selected_tenant),
            SELECTED_COMPANY_KEY: encode(state.selected_company),
            LAST_TENANT_KEY: state.last_tenant_id,
            LAST_COMPANY_KEY: state.last_company_id,
        }


__all__ = [
    "Action",
    "AppState",
    "ContextStore",
    "Login",
    "Logout",
    "SelectCompany",
    "SelectTenant",
    "StatePersistence",
    "STORAGE_KEYS",
    "reduce",
]
