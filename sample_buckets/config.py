from __future__ import annotations

import logging
import os
from dataclasses import dataclass

_DEFAULT_CLUSTER_URL = "http://localhost:8091"
_DEFAULT_READ_TIMEOUT = 30.0
# Sample loading is bulk data ingestion; the cluster answers only once it is queued.
_DEFAULT_INSTALL_TIMEOUT = 140.0


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _level_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"{name} must be a logging level name, got {raw!r}")
    return level


@dataclass(frozen=True)
class Settings:
    cluster_url: str = _DEFAULT_CLUSTER_URL
    username: str | None = None
    password: str | None = None
    read_timeout: float = _DEFAULT_READ_TIMEOUT
    install_timeout: float = _DEFAULT_INSTALL_TIMEOUT
    log_level: int = logging.INFO

    @property
    def auth(self) -> tuple[str, str] | None:
        if self.username is None:
            return None
        return self.username, self.password or ""


def load_settings() -> Settings:
    return Settings(
        cluster_url=os.getenv("SAMPLE_BUCKETS_CLUSTER_URL", _DEFAULT_CLUSTER_URL).rstrip("/"),
        username=os.getenv("SAMPLE_BUCKETS_USERNAME") or None,
        password=os.getenv("SAMPLE_BUCKETS_PASSWORD") or None,
        read_timeout=_float_env("SAMPLE_BUCKETS_READ_TIMEOUT", _DEFAULT_READ_TIMEOUT),
        install_timeout=_float_env("SAMPLE_BUCKETS_INSTALL_TIMEOUT", _DEFAULT_INSTALL_TIMEOUT),
        log_level=_level_env("SAMPLE_BUCKETS_LOG_LEVEL", logging.INFO),
    )
