"""Thin parameterized table-query client over SQLAlchemy Core.

Callers describe one statement with an immutable fluent builder::

    result = client.table("tasks").select().eq("tenant_id", tenant_id).limit(20).execute()

``execute`` never raises. Failures (unknown tables or columns, values that do
not fit the column type, database errors) are reported on
``QueryResult.error`` so that callers can surface the message verbatim.
"""
from __future__ import annotations

import datetime as dt
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Iterator, Literal, Mapping, Sequence

from sqlalchemy import Column, MetaData, Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.logger import get_logger
from app.models import Base, new_id

LOGGER = get_logger(__name__)

Operation = Literal["select", "insert", "update", "delete"]

_TRUE_STRINGS = {"true", "t", "1", "sim", "s", "yes", "y"}
_FALSE_STRINGS = {"false", "f", "0", "nao", "não", "n", "no"}


class BackendError(Exception):
    """Raised internally when a query cannot be built; reported on the result."""


@dataclass(frozen=True)
class QueryResult:
    """Outcome of a single table statement."""

    data: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def count(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class _Filter:
    column: str
    op: Literal["eq", "ilike"]
    value: Any


@dataclass(frozen=True)
class TableQuery:
    """Immutable description of one statement against ``table_name``."""

    client: "BackendClient"
    table_name: str
    operation: Operation = "select"
    columns: tuple[str, ...] = ()
    values: tuple[Mapping[str, Any], ...] = ()
    filters: tuple[_Filter, ...] = ()
    row_limit: int | None = None
    ordering: tuple[tuple[str, bool], ...] = ()

    def select(self, *columns: str) -> "TableQuery":
        return replace(self, operation="select", columns=tuple(columns))

    def insert(self, values: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> "TableQuery":
        rows = [values] if isinstance(values, Mapping) else list(values)
        return replace(self, operation="insert", values=tuple(dict(row) for row in rows))

    def update(self, values: Mapping[str, Any]) -> "TableQuery":
        return replace(self, operation="update", values=(dict(values),))

    def delete(self) -> "TableQuery":
        return replace(self, operation="delete")

    def eq(self, column: str, value: Any) -> "TableQuery":
        return replace(self, filters=self.filters + (_Filter(column, "eq", value),))

    def ilike(self, column: str, pattern: str) -> "TableQuery":
        return replace(self, filters=self.filters + (_Filter(column, "ilike", pattern),))

    def match(self, criteria: Mapping[str, Any]) -> "TableQuery":
        """Add one equality filter per key of ``criteria``."""

        query = self
        for column, value in criteria.items():
            query = query.eq(column, value)
        return query

    def limit(self, count: int) -> "TableQuery":
        if count < 0:
            raise ValueError("limit must be non-negative")
        return replace(self, row_limit=count)

    def order(self, column: str, *, desc: bool = False) -> "TableQuery":
        return replace(self, ordering=self.ordering + ((column, desc),))

    def execute(self) -> QueryResult:
        return self.client.execute(self)


class BackendClient:
    """Issue parameterized table queries against the relational store."""

    def __init__(
        self,
        session_factory: sessionmaker,
        metadata: MetaData | None = None,
        *,
        session: Session | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._metadata = metadata if metadata is not None else Base.metadata
        self._session = session
        self._failed = False

    def table(self, name: str) -> TableQuery:
        return TableQuery(client=self, table_name=name)

    @property
    def tables(self) -> list[str]:
        return sorted(self._metadata.tables)

    @contextmanager
    def transaction(self) -> Iterator["BackendClient"]:
        """Yield a client whose statements share one database transaction.

        The transaction commits when the block exits cleanly and every
        statement succeeded; otherwise it is rolled back.
        """

        if self._session is not None:
            yield self
            return

        session = self._session_factory()
        bound = BackendClient(self._session_factory, self._metadata, session=session)
        try:
            yield bound
            if bound._failed:
                session.rollback()
                LOGGER.warning("Backend transaction rolled back after a failed statement")
            else:
                session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def execute(self, query: TableQuery) -> QueryResult:
        if self._session is not None:
            result = self._run(self._session, query)
            if not result.ok:
                self._failed = True
            return result

        session = self._session_factory()
        try:
            result = self._run(session, query)
            if not result.ok:
                session.rollback()
                return result
            if query.operation != "select":
                try:
                    session.commit()
                except SQLAlchemyError as exc:
                    session.rollback()
                    return self._failure(query, exc)
            return result
        finally:
            session.close()

    def _run(self, session: Session, query: TableQuery) -> QueryResult:
        LOGGER.debug(
            "Backend %s on %s (filters=%s, limit=%s)",
            query.operation,
            query.table_name,
            [f"{flt.column}:{flt.op}" for flt in query.filters],
            query.row_limit,
        )
        try:
            table = self._resolve_table(query.table_name)
            if query.operation == "select":
                return QueryResult(data=self._select(session, table, query))
            if query.operation == "insert":
                return QueryResult(data=self._insert(session, table, query))
            if query.operation == "update":
                return QueryResult(data=self._update(session, table, query))
            if query.operation == "delete":
                return QueryResult(data=self._delete(session, table, query))
            raise BackendError(f"Operação não suportada: {query.operation}")
        except (BackendError, SQLAlchemyError) as exc:
            return self._failure(query, exc)

    @staticmethod
    def _failure(query: TableQuery, exc: Exception) -> QueryResult:
        message = str(getattr(exc, "orig", None) or exc)
        LOGGER.warning("Backend %s on %s failed: %s", query.operation, query.table_name, message)
        return QueryResult(error=message)

    def _resolve_table(self, name: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise BackendError(f'Tabela "{name}" não encontrada')
        return table

    @staticmethod
    def _column(table: Table, name: str) -> Column:
        try:
            return table.c[name]
        except KeyError:
            raise BackendError(f'Coluna "{name}" não existe em {table.name}') from None

    def _where(self, table: Table, query: TableQuery) -> list[Any]:
        clauses = []
        for flt in query.filters:
            column = self._column(table, flt.column)
            if flt.op == "ilike":
                clauses.append(column.ilike(str(flt.value)))
            elif flt.value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == _coerce(column, flt.value))
        return clauses

    def _rows_by_key(self, session: Session, table: Table, keys: list[Any]) -> list[dict[str, Any]]:
        if not keys:
            return []
        pk = self._primary_key(table)
        rows = session.execute(select(table).where(pk.in_(keys))).mappings().all()
        return [dict(row) for row in rows]

    @staticmethod
    def _primary_key(table: Table) -> Column:
        return list(table.primary_key.columns)[0]

    def _select(self, session: Session, table: Table, query: TableQuery) -> list[dict[str, Any]]:
        columns = [self._column(table, name) for name in query.columns] or [table]
        stmt = select(*columns).where(*self._where(table, query))
        for name, descending in query.ordering:
            column = self._column(table, name)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if query.row_limit is not None:
            stmt = stmt.limit(query.row_limit)
        return [dict(row) for row in session.execute(stmt).mappings().all()]

    def _prepare(self, table: Table, values: Mapping[str, Any]) -> dict[str, Any]:
        prepared: dict[str, Any] = {}
        for key, value in values.items():
            prepared[key] = _coerce(self._column(table, key), value)
        return prepared

    def _insert(self, session: Session, table: Table, query: TableQuery) -> list[dict[str, Any]]:
        if not query.values:
            raise BackendError("Nenhum dado informado para inserção")
        pk = self._primary_key(table)
        rows = []
        for values in query.values:
            prepared = self._prepare(table, values)
            if pk.name == "id" and prepared.get("id") is None:
                prepared["id"] = new_id()
            rows.append(prepared)
        for row in rows:
            session.execute(insert(table).values(**row))
        return self._rows_by_key(session, table, [row.get(pk.name) for row in rows])

    def _require_filters(self, query: TableQuery) -> None:
        if not query.filters:
            raise BackendError("Atualização e exclusão exigem ao menos um filtro")

    def _update(self, session: Session, table: Table, query: TableQuery) -> list[dict[str, Any]]:
        self._require_filters(query)
        values = self._prepare(table, query.values[0] if query.values else {})
        if not values:
            raise BackendError("Nenhum dado informado para atualização")
        pk = self._primary_key(table)
        where = self._where(table, query)
        keys = list(session.execute(select(pk).where(*where)).scalars())
        if not keys:
            return []
        session.execute(update(table).where(pk.in_(keys)).values(**values))
        if pk.name in values:
            keys = [values[pk.name]]
        return self._rows_by_key(session, table, keys)

    def _delete(self, session: Session, table: Table, query: TableQuery) -> list[dict[str, Any]]:
        self._require_filters(query)
        where = self._where(table, query)
        rows = [dict(row) for row in session.execute(select(table).where(*where)).mappings().all()]
        if rows:
            session.execute(delete(table).where(*where))
        return rows


def _coerce(column: Column, value: Any) -> Any:
    """Convert JSON-ish ``value`` to the Python type expected by ``column``."""

    if value is None:
        return None
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value

    try:
        if python_type is bool:
            if isinstance(value, bool):
                return value
            if isinstance(value, (int, float)):
                return bool(value)
            lowered = str(value).strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            raise ValueError(value)
        if python_type is dt.datetime:
            if isinstance(value, dt.datetime):
                return value
            if isinstance(value, dt.date):
                return dt.datetime(value.year, value.month, value.day)
            return dt.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        if python_type is dt.date:
            if isinstance(value, dt.datetime):
                return value.date()
            if isinstance(value, dt.date):
                return value
            return dt.date.fromisoformat(str(value)[:10])
        if python_type is Decimal:
            return value if isinstance(value, Decimal) else Decimal(str(value))
        if python_type is int:
            return value if isinstance(value, int) else int(str(value).strip())
        if python_type is str:
            return value if isinstance(value, str) else str(value)
    except (ValueError, TypeError, InvalidOperation):
        raise BackendError(f'Valor inválido para "{column.name}": {value!r}') from None
    return value
