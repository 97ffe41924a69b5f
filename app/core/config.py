"""Configuration system for the FinanceIA backend."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

_FALSE_VALUES = {"0", "false", "False", "no"}


@dataclass(slots=True)
class DatabaseSettings:
    """Connection details for the relational store behind the backend client."""

    driver: str
    host: str
    port: int
    user: str
    password: str
    name: str
    url: str | None = None

    @property
    def sqlalchemy_url(self) -> str:
        """Build a SQLAlchemy compatible URL."""

        if self.url:
            return self.url
        if self.password:
            credentials = f"{self.user}:{self.password}"
        else:
            credentials = self.user
        return f"{self.driver}://{credentials}@{self.host}:{self.port}/{self.name}"

    @property
    def masked_url(self) -> str:
        if self.url:
            return self.url.split("@")[-1] if "@" in self.url else self.url
        pwd = "***" if self.password else ""
        return f"{self.driver}://{self.user}:{pwd}@{self.host}:{self.port}/{self.name}"


@dataclass(slots=True)
class AuthSettings:
    """Authentication settings loaded from environment variables."""

    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    superadmin_email: str
    superadmin_password: str
    demo_user_password: str
    cookie_name: str = "access_token"
    enabled: bool = True


@dataclass(slots=True)
class CorsSettings:
    """Headers returned to browsers calling the agent function."""

    allow_origin: str = "*"
    allow_headers: str = "authorization, x-client-info, apikey, content-type"
    allow_methods: str = "POST, OPTIONS"

    def as_headers(self) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.allow_origin,
            "Access-Control-Allow-Headers": self.allow_headers,
            "Access-Control-Allow-Methods": self.allow_methods,
        }


@dataclass(slots=True)
class Settings:
    """Top-level application configuration container."""

    database: DatabaseSettings
    auth: AuthSettings
    cors: CorsSettings
    sqlalchemy_echo: bool = False
    log_level: str = "INFO"
    log_dir: str | None = "logs"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Load configuration values from environment variables."""

        def _get_env(name: str, default: str) -> str:
            return os.getenv(name, default)

        def _get_int(name: str, default: str) -> int:
            raw = _get_env(name, default)
            try:
                return int(raw)
            except ValueError as exc:
                raise ValueError(f"{name} must be an integer, got {raw!r}") from exc

        db = DatabaseSettings(
            driver=_get_env("DB_DRIVER", "mysql+pymysql"),
            host=_get_env("DB_HOST", "127.0.0.1"),
            port=_get_int("DB_PORT", "3306"),
            user=_get_env("DB_USER", "finance"),
            password=_get_env("DB_PASSWORD", "finance"),
            name=_get_env("DB_NAME", "finance"),
            url=_get_env("DATABASE_URL", "") or None,
        )
        auth = AuthSettings(
            secret_key=_get_env("JWT_SECRET_KEY", "change-me"),
            algorithm=_get_env("JWT_ALGORITHM", "HS256"),
            access_token_expire_minutes=_get_int("JWT_EXPIRE_MINUTES", "120"),
            superadmin_email=_get_env("SUPERADMIN_EMAIL", "super@financeia.com.br"),
            superadmin_password=_get_env("SUPERADMIN_PASSWORD", "super123"),
            demo_user_password=_get_env("DEMO_USER_PASSWORD", "senha123"),
            enabled=_get_env("AUTH_ENABLED", "1") not in _FALSE_VALUES,
        )
        cors = CorsSettings(
            allow_origin=_get_env("CORS_ALLOW_ORIGIN", "*"),
        )
        log_dir = _get_env("LOG_DIR", "logs")
        return cls(
            database=db,
            auth=auth,
            cors=cors,
            sqlalchemy_echo=_get_env("SQLALCHEMY_ECHO", "0") not in _FALSE_VALUES,
            log_level=_get_env("LOG_LEVEL", "INFO"),
            log_dir=log_dir or None,
            log_json=_get_env("LOG_JSON", "0") not in _FALSE_VALUES,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance."""

    settings = Settings.from_env()

    # Import locally to avoid circular dependencies during module import time.
    from .logger import get_logger

    logger = get_logger(__name__)
    logger.debug(
        "Settings initialised",
        extra={
            "sqlalchemy_echo": settings.sqlalchemy_echo,
            "database": settings.database.masked_url,
            "auth": {
                "superadmin_email": settings.auth.superadmin_email,
                "token_ttl": settings.auth.access_token_expire_minutes,
                "enabled": settings.auth.enabled,
            },
        },
    )
    return settings
