"""Application configuration loaded via python-decouple with typed helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Final, Protocol, cast

from decouple import (
    Config as DecoupleConfig,
    RepositoryEmpty,
    RepositoryEnv,
)

_DOTENV_PATH: Final[Path] = Path(".env")


def _build_decouple_config() -> DecoupleConfig:
    # Missing .env (CI/tests) falls back to reading os.environ only.
    try:
        return DecoupleConfig(RepositoryEnv(str(_DOTENV_PATH)))
    except FileNotFoundError:
        return DecoupleConfig(RepositoryEmpty())


_decouple_config: Final[DecoupleConfig] = _build_decouple_config()


@dataclass(slots=True, frozen=True)
class HttpSettings:
    """HTTP transport related settings."""

    host: str
    port: int
    request_log_enabled: bool


@dataclass(slots=True, frozen=True)
class CorsSettings:
    """CORS configuration for the HTTP app."""

    enabled: bool
    origins: list[str]
    allow_credentials: bool
    allow_methods: list[str]
    allow_headers: list[str]


@dataclass(slots=True, frozen=True)
class MailSettings:
    """How the external ``gt`` mail tool is located and invoked."""

    gastown_path: str  # unexpanded, e.g. "~/gt"
    gt_bin: str
    bin_dir: str  # prepended to PATH for the subprocess
    command_timeout_ms: int

    @property
    def base_path(self) -> Path:
        return expand_path(self.gastown_path)

    @property
    def bin_path(self) -> Path:
        return expand_path(self.bin_dir)

    @property
    def timeout_seconds(self) -> float:
        return self.command_timeout_ms / 1000.0


@dataclass(slots=True, frozen=True)
class Settings:
    """Top-level application settings."""

    environment: str
    http: HttpSettings
    cors: CorsSettings
    mail: MailSettings
    # Logging
    log_rich_enabled: bool
    log_level: str
    log_json_enabled: bool


def expand_path(raw: str) -> Path:
    """Expand a leading ``~`` against ``$HOME``."""
    return Path(raw).expanduser()


def _bool(value: str, *, default: bool) -> bool:
    normalized = value.strip().lower()
    if normalized in {"1", "true", "t", "yes", "y"}:
        return True
    if normalized in {"0", "false", "f", "no", "n"}:
        return False
    return default


def _int(value: str, *, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""
    environment = _decouple_config("APP_ENVIRONMENT", default="development")

    def _csv(name: str, default: str) -> list[str]:
        raw = _decouple_config(name, default=default)
        items = [part.strip() for part in raw.split(",") if part.strip()]
        return items

    http_settings = HttpSettings(
        host=_decouple_config("HTTP_HOST", default="127.0.0.1"),
        port=_int(_decouple_config("HTTP_PORT", default="3001"), default=3001),
        request_log_enabled=_bool(_decouple_config("HTTP_REQUEST_LOG_ENABLED", default="false"), default=False),
    )

    cors_default = "true" if environment.lower() == "development" else "false"
    cors_settings = CorsSettings(
        enabled=_bool(_decouple_config("HTTP_CORS_ENABLED", default=cors_default), default=cors_default == "true"),
        origins=_csv("HTTP_CORS_ORIGINS", default=""),
        allow_credentials=_bool(_decouple_config("HTTP_CORS_ALLOW_CREDENTIALS", default="false"), default=False),
        allow_methods=_csv("HTTP_CORS_ALLOW_METHODS", default="*"),
        allow_headers=_csv("HTTP_CORS_ALLOW_HEADERS", default="*"),
    )

    mail_settings = MailSettings(
        gastown_path=_decouple_config("GASTOWN_PATH", default="~/gt") or "~/gt",
        gt_bin=_decouple_config("GT_BIN", default="gt").strip() or "gt",
        bin_dir=_decouple_config("GT_BIN_DIR", default="~/go/bin").strip() or "~/go/bin",
        command_timeout_ms=_int(_decouple_config("MAIL_COMMAND_TIMEOUT_MS", default="5000"), default=5000),
    )

    return Settings(
        environment=environment,
        http=http_settings,
        cors=cors_settings,
        mail=mail_settings,
        log_rich_enabled=_bool(_decouple_config("LOG_RICH_ENABLED", default="true"), default=True),
        log_level=_decouple_config("LOG_LEVEL", default="INFO"),
        log_json_enabled=_bool(_decouple_config("LOG_JSON_ENABLED", default="false"), default=False),
    )


class _CacheClearable(Protocol):
    def cache_clear(self) -> None: ...


def clear_settings_cache() -> None:
    """Clear the lru_cache for get_settings in a type-checker-friendly way."""
    cache_clear = getattr(cast(_CacheClearable, get_settings), "cache_clear", None)
    if callable(cache_clear):
        cache_clear()
