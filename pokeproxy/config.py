"""
Runtime configuration pulled from environment variables.

Values may come from the process environment or a ``.env`` file in the
working directory (see ``env.load_env``).
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Mapping, Optional, Tuple

from .env import load_env
from .errors import ConfigError

VALID_LOG_LEVELS = ("debug", "info", "warn", "error")
VALID_LOG_FORMATS = ("json", "console")

_DURATION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m)?\s*$")


def parse_duration(value: str) -> float:
    """Convert '30s', '500ms', '2m' or a plain number of seconds into seconds."""
    match = _DURATION.match(value or "")
    if not match:
        raise ConfigError(f"Invalid duration: {value!r}. Use e.g. '30s', '500ms', '2m'.")
    amount = float(match.group(1))
    unit = match.group(2) or "s"
    if unit == "ms":
        return amount / 1000.0
    if unit == "m":
        return amount * 60.0
    return amount


def _split_origins(value: str) -> Tuple[str, ...]:
    return tuple(o.strip() for o in value.split(",") if o.strip())


@dataclass(frozen=True)
class Settings:
    """Runtime configuration. Build with ``Settings.from_env()``."""

    server_host: str = "0.0.0.0"
    server_port: int = 8080
    request_timeout: float = 60.0

    pokeapi_base_url: str = "https://pokeapi.co/api/v2"
    pokeapi_timeout: float = 30.0

    log_level: str = "info"
    log_format: str = "json"

    cors_allowed_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        port_raw = env.get("SERVER_PORT", "8080")
        try:
            port = int(port_raw)
        except ValueError:
            raise ConfigError(f"SERVER_PORT must be an integer, got {port_raw!r}")

        settings = cls(
            server_host=env.get("SERVER_HOST", "0.0.0.0"),
            server_port=port,
            request_timeout=parse_duration(env.get("REQUEST_TIMEOUT", "60s")),
            pokeapi_base_url=env.get("POKEAPI_BASE_URL", "https://pokeapi.co/api/v2").strip(),
            pokeapi_timeout=parse_duration(env.get("POKEAPI_TIMEOUT", "30s")),
            log_level=env.get("LOG_LEVEL", "info").strip().lower(),
            log_format=env.get("LOG_FORMAT", "json").strip().lower(),
            cors_allowed_origins=_split_origins(env.get("CORS_ALLOWED_ORIGINS", "*")),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if not self.pokeapi_base_url:
            raise ConfigError("POKEAPI_BASE_URL is required")
        if not 0 < self.server_port < 65536:
            raise ConfigError(f"SERVER_PORT out of range: {self.server_port}")
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"invalid LOG_LEVEL: must be one of {', '.join(VALID_LOG_LEVELS)}"
            )
        if self.log_format not in VALID_LOG_FORMATS:
            raise ConfigError(
                f"invalid LOG_FORMAT: must be one of {', '.join(VALID_LOG_FORMATS)}"
            )
        if self.pokeapi_timeout <= 0 or self.request_timeout <= 0:
            raise ConfigError("timeouts must be positive")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings instance, computed once per process."""
    load_env()
    return Settings.from_env()
