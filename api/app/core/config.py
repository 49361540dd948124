from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


def getenv(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name, default)
    return v


def _env_str(name: str, default: str) -> str:
    return getenv(name, default) or default


def _env_int(name: str, default: int) -> int:
    return int(getenv(name, str(default)) or str(default))


def _env_bool(name: str, default: bool) -> bool:
    return (getenv(name, "true" if default else "false") or "").lower() == "true"


def _env_timeout() -> float | None:
    raw = getenv("UPSTREAM_TIMEOUT")
    if not raw:
        # Unset means wait on the upstream indefinitely
        return None
    return float(raw)


@dataclass(frozen=True)
class Settings:
    # Service
    service_name: str = field(default_factory=lambda: _env_str("SERVICE_NAME", "win-brand-proxy"))
    service_env: str = field(default_factory=lambda: _env_str("SERVICE_ENV", "dev"))
    log_level: str = field(default_factory=lambda: _env_str("LOG_LEVEL", "INFO"))
    host: str = field(default_factory=lambda: _env_str("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PORT", 3001))

    # Upstream provider
    anthropic_api_key: str | None = field(default_factory=lambda: getenv("ANTHROPIC_API_KEY") or None)
    anthropic_base_url: str = field(default_factory=lambda: _env_str("ANTHROPIC_BASE_URL", "https://api.anthropic.com"))
    anthropic_version: str = field(default_factory=lambda: _env_str("ANTHROPIC_VERSION", "2023-06-01"))
    model: str = field(default_factory=lambda: _env_str("ANTHROPIC_MODEL", "claude-opus-4-1"))
    max_tokens: int = field(default_factory=lambda: _env_int("ANTHROPIC_MAX_TOKENS", 2048))
    upstream_timeout: float | None = field(default_factory=_env_timeout)

    # Result handling
    strict_result_validation: bool = field(default_factory=lambda: _env_bool("STRICT_RESULT_VALIDATION", False))

    @property
    def is_production(self) -> bool:
        return self.service_env in ["prod", "production"]

    @property
    def messages_url(self) -> str:
        return f"{self.anthropic_base_url.rstrip('/')}/v1/messages"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings are read from the environment once per process."""
    return Settings()


settings = get_settings()
