"""Context helpers that enrich log records with request metadata."""
from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import Dict, Iterator


_context_var: contextvars.ContextVar[dict[str, object]] = contextvars.ContextVar(
    "log_context", default={}
)


class LogContext:
    """Bind tenant/user identifiers to subsequent log records."""

    def bind(self, **values: object) -> None:
        current = dict(_context_var.get())
        current.update({k: v for k, v in values.items() if v is not None})
        _context_var.set(current)

    def unbind(self, *keys: str) -> None:
        current = dict(_context_var.get())
        for key in keys:
            current.pop(key, None)
        _context_var.set(current)

    @contextmanager
    def bound(self, **values: object) -> Iterator[None]:
        """Bind ``values`` for the duration of the block and restore afterwards."""

        token = _context_var.set(
            {**_context_var.get(), **{k: v for k, v in values.items() if v is not None}}
        )
        try:
            yield
        finally:
            _context_var.reset(token)

    def clear(self) -> None:
        _context_var.set({})

    def as_dict(self) -> Dict[str, object]:
        return dict(_context_var.get())


class ContextFilter(logging.Filter):
    """Attach the bound identifiers to log records.

    The first filter to see a record resolves the context; records that cross
    to the queue listener thread keep what was bound where they were emitted.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if hasattr(record, "context_fields"):
            return True
        context = dict(_context_var.get())
        record.context_fields = context
        record.context = "".join(f"{k}={v} " for k, v in context.items())
        return True


log_context = LogContext()
