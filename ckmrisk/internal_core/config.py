from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ckmrisk.utils.paths import resolve_configured_path


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _getenv_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _getenv_list(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class AppConfig:
    CKMRISK_SESSION_TTL_SECONDS: int
    CKMRISK_CONTENT_PATH: str
    CKMRISK_LOG_LEVEL: str
    CKMRISK_CORS_ORIGINS: list[str]
    CKMRISK_DEFAULT_APPLY_TREATMENT: bool

    def content_path(self) -> Optional[Path]:
        # Empty means the document packaged with ckmrisk.content.
        if not self.CKMRISK_CONTENT_PATH:
            return None
        return resolve_configured_path(self.CKMRISK_CONTENT_PATH)


def load_config() -> AppConfig:
    ttl_seconds = _getenv_int("CKMRISK_SESSION_TTL_SECONDS", 14400)
    if ttl_seconds <= 0:
        raise ValueError("CKMRISK_SESSION_TTL_SECONDS must be a positive integer.")

    return AppConfig(
        CKMRISK_SESSION_TTL_SECONDS=ttl_seconds,
        CKMRISK_CONTENT_PATH=_getenv_str("CKMRISK_CONTENT_PATH", "").strip(),
        CKMRISK_LOG_LEVEL=_getenv_str("CKMRISK_LOG_LEVEL", "INFO").upper(),
        CKMRISK_CORS_ORIGINS=_getenv_list("CKMRISK_CORS_ORIGINS", ["*"]),
        CKMRISK_DEFAULT_APPLY_TREATMENT=_getenv_bool("CKMRISK_DEFAULT_APPLY_TREATMENT", False),
    )
