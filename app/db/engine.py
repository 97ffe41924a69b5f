"""Database engine factories."""
from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.core.logger import get_logger

LOGGER = get_logger(__name__)


def get_sqlalchemy_url() -> str:
    """Return the configured SQLAlchemy URL."""

    settings = get_settings()
    return settings.database.sqlalchemy_url


def create_sync_engine(url: str | None = None, **kwargs) -> Engine:
    """Create a synchronous SQLAlchemy engine using configured defaults."""

    settings = get_settings()
    resolved_url = url or settings.database.sqlalchemy_url

    options = dict(kwargs)
    options.setdefault("echo", settings.sqlalchemy_echo)

    parsed = make_url(resolved_url)
    if parsed.get_backend_name() == "sqlite":
        # Request handlers run in a threadpool; in-memory databases must share one connection.
        options.setdefault("connect_args", {"check_same_thread": False})
        if parsed.database in (None, "", ":memory:"):
            options.setdefault("poolclass", StaticPool)

    LOGGER.debug(
        "Creating SQLAlchemy engine",
        extra={"url": parsed.render_as_string(hide_password=True), "options": sorted(options)},
    )
    return create_engine(resolved_url, future=True, **options)


def init_schema(engine: Engine) -> None:
    """Create every table declared on the shared metadata."""

    from app.models import Base

    Base.metadata.create_all(engine)
    LOGGER.info("Database schema ensured (%d tables)", len(Base.metadata.tables))
