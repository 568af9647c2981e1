"""Application settings and environment loading utilities."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _load_dotenv() -> None:
    env_path = Path(".env")
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


_load_dotenv()


def _positive_int(value: Optional[str], name: str, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {value!r}") from exc
    if parsed <= 0:
        raise RuntimeError(f"Environment variable {name} must be positive, got {parsed}")
    return parsed


def _flag(value: Optional[str], name: str, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise RuntimeError(f"Environment variable {name} must be a boolean flag, got {value!r}")


def _log_level(value: Optional[str], name: str, default: str) -> str:
    if value is None or not value.strip():
        return default
    level = value.strip().upper()
    if level not in _LOG_LEVELS:
        raise RuntimeError(f"Environment variable {name} must be one of {sorted(_LOG_LEVELS)}, got {value!r}")
    return level


@dataclass(frozen=True)
class Settings:
    """Runtime configuration derived from environment variables."""

    rate_limit_requests: int = 10
    rate_limit_window_seconds: int = 60
    trust_forwarded_for: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        rate_limit_requests = _positive_int(
            os.getenv("RATE_LIMIT_REQUESTS"), "RATE_LIMIT_REQUESTS", cls.rate_limit_requests
        )
        rate_limit_window = _positive_int(
            os.getenv("RATE_LIMIT_WINDOW_SECONDS"),
            "RATE_LIMIT_WINDOW_SECONDS",
            cls.rate_limit_window_seconds,
        )

        return cls(
            rate_limit_requests=rate_limit_requests,
            rate_limit_window_seconds=rate_limit_window,
            trust_forwarded_for=_flag(
                os.getenv("RATE_LIMIT_TRUST_FORWARDED_FOR"),
                "RATE_LIMIT_TRUST_FORWARDED_FOR",
                cls.trust_forwarded_for,
            ),
            log_level=_log_level(os.getenv("LOG_LEVEL"), "LOG_LEVEL", cls.log_level),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings.from_env()
