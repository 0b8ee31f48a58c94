"""Application configuration helpers.

Settings come from environment variables (optionally seeded from a `.env`
file) and are exposed through the frozen `AppConfig` dataclass. Per-run
optimizer knobs live in `allocopt.optimizer.OptimizerSettings` instead.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .services.http import HttpSettings


def _getenv_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _getenv_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _load_dotenv(base_dir: Path) -> None:
    env_path = base_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path)


@dataclass(frozen=True)
class AppConfig:
    """Strongly typed configuration container."""

    base_dir: Path
    network_url: str
    management_url: str
    network_id: int = 1
    min_signal: float = 1000.0  # GRT
    page_size: int = 1000
    http_timeout: float = 60.0
    http_connect_timeout: float = 10.0
    http_retries: int = 0
    http_backoff_factor: float = 0.0
    optimizer_workers: int = 4
    action_source: str = "allocopt"
    action_reason: str = "allocopt"
    action_priority: int = 0
    log_level: str = "INFO"
    log_file_path: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError("page_size must be positive")
        if self.optimizer_workers <= 0:
            raise ValueError("optimizer_workers must be positive")
        if self.min_signal < 0:
            raise ValueError("min_signal must not be negative")

    @classmethod
    def load(cls, base_dir: Optional[Path] = None) -> "AppConfig":
        base_dir = base_dir or Path.cwd()
        _load_dotenv(base_dir)

        log_file = (os.getenv("ALLOCOPT_LOG_FILE") or "").strip()
        return cls(
            base_dir=base_dir,
            network_url=os.getenv("ALLOCOPT_NETWORK_URL", "http://localhost:7600/network"),
            management_url=os.getenv("ALLOCOPT_MANAGEMENT_URL", "http://localhost:18000"),
            network_id=_getenv_int("ALLOCOPT_NETWORK_ID", 1),
            min_signal=_getenv_float("ALLOCOPT_MIN_SIGNAL", 1000.0),
            page_size=_getenv_int("ALLOCOPT_PAGE_SIZE", 1000),
            http_timeout=_getenv_float("ALLOCOPT_HTTP_TIMEOUT", 60.0),
            http_connect_timeout=_getenv_float("ALLOCOPT_HTTP_CONNECT_TIMEOUT", 10.0),
            http_retries=_getenv_int("ALLOCOPT_HTTP_RETRIES", 0),
            http_backoff_factor=_getenv_float("ALLOCOPT_HTTP_BACKOFF", 0.0),
            optimizer_workers=max(1, _getenv_int("ALLOCOPT_OPTIMIZER_WORKERS", 4)),
            action_source=(os.getenv("ALLOCOPT_ACTION_SOURCE") or "allocopt").strip() or "allocopt",
            action_reason=(os.getenv("ALLOCOPT_ACTION_REASON") or "allocopt").strip() or "allocopt",
            action_priority=_getenv_int("ALLOCOPT_ACTION_PRIORITY", 0),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file_path=(base_dir / log_file) if log_file else None,
        )

    def with_overrides(self, **changes: Any) -> "AppConfig":
        """Return a copy with ``changes`` applied; ``None`` values are ignored."""
        effective = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **effective) if effective else self

    def http_settings(self) -> HttpSettings:
        return HttpSettings(
            timeout=self.http_timeout,
            connect_timeout=self.http_connect_timeout,
            retries=self.http_retries,
            backoff_factor=self.http_backoff_factor,
        )


def load_app_config(base_dir: Optional[Path] = None) -> AppConfig:
    """Convenience shortcut."""
    return AppConfig.load(base_dir=base_dir)
