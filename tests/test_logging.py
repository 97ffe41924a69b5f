from __future__ import annotations

import json
import logging

import pytest

from app.core.log import JsonLineFormatter, log_context, timeit
from app.core.log.context import ContextFilter
from app.middleware.auth import REQUEST_ID_HEADER


def _record(message: str = "Backend select on tenants") -> logging.LogRecord:
    return logging.LogRecord("app.backend", logging.INFO, __file__, 1, message, None, None)


def test_context_filter_prefixes_bound_identifiers() -> None:
    record = _record()

    with log_context.bound(request_id="abc123", tenant_id="tenant-1", company_id=None):
        ContextFilter().filter(record)

    assert record.context == "request_id=abc123 tenant_id=tenant-1 "
    assert record.context_fields == {"request_id": "abc123", "tenant_id": "tenant-1"}


def test_context_is_resolved_once_per_record() -> None:
    record = _record()
    with log_context.bound(user_id="user-1"):
        ContextFilter().filter(record)

    # A second pass outside the block (the queue listener thread) keeps it.
    ContextFilter().filter(record)

    assert record.context_fields == {"user_id": "user-1"}


def test_bound_context_is_restored_after_the_block() -> None:
    with log_context.bound(request_id="r1"):
        with log_context.bound(user_id="u1"):
            assert log_context.as_dict() == {"request_id": "r1", "user_id": "u1"}
        assert log_context.as_dict() == {"request_id": "r1"}
    assert log_context.as_dict() == {}


def test_json_formatter_writes_context_fields() -> None:
    record = _record("Tenant selected")
    with log_context.bound(request_id="r9", user_id="admin-1"):
        ContextFilter().filter(record)

    line = json.loads(JsonLineFormatter().format(record))

    assert line["message"] == "Tenant selected"
    assert line["level"] == "INFO"
    assert line["logger"] == "app.backend"
    assert line["request_id"] == "r9"
    assert line["user_id"] == "admin-1"


def test_request_id_is_echoed_or_generated(api) -> None:
    echoed = api.get("/health", headers={REQUEST_ID_HEADER: "req-42"})
    generated = api.get("/me")

    assert echoed.headers[REQUEST_ID_HEADER] == "req-42"
    assert generated.status_code == 401
    assert len(generated.headers[REQUEST_ID_HEADER]) == 12


class _Capture(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def _isolated_logger(name: str) -> tuple[logging.Logger, _Capture]:
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    capture = _Capture()
    logger.handlers = [capture]
    return logger, capture


def test_timeit_reports_count_and_flags_slow_operations() -> None:
    logger, capture = _isolated_logger("tests.timing")

    with timeit("Seed", logger=logger) as timer:
        timer.add(3)
    with timeit("LLM request", logger=logger, level=logging.DEBUG, slow_after=0.0):
        pass

    fast, slow = capture.records
    assert fast.levelno == logging.INFO
    assert fast.getMessage().startswith("Seed completed in")
    assert fast.getMessage().endswith("(3 rows)")
    assert slow.levelno == logging.WARNING
    assert "slow, threshold 0.0s" in slow.getMessage()


def test_timeit_logs_failures() -> None:
    logger, capture = _isolated_logger("tests.timing.failure")

    with pytest.raises(RuntimeError):
        with timeit("Broken", logger=logger):
            raise RuntimeError("boom")

    assert capture.records[0].levelno == logging.ERROR
    assert capture.records[0].getMessage().startswith("Broken failed after")
