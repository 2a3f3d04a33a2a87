"""Environment configuration for the record manager."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0


def _parse_timeout(raw: str | None) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid USER_MANAGER_TIMEOUT '%s'; using %ss.", raw, DEFAULT_TIMEOUT)
        return DEFAULT_TIMEOUT
    if value <= 0:
        logger.warning("USER_MANAGER_TIMEOUT must be positive, got %s; using %ss.", raw, DEFAULT_TIMEOUT)
        return DEFAULT_TIMEOUT
    return value


@dataclass
class ManagerConfig:
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> "ManagerConfig":
        api_url = (os.getenv("USER_MANAGER_API_URL") or DEFAULT_API_URL).strip().rstrip("/")
        return cls(
            api_url=api_url or DEFAULT_API_URL,
            timeout=_parse_timeout(os.getenv("USER_MANAGER_TIMEOUT")),
        )
