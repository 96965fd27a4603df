"""Environment-driven settings.

Values are read once at app creation; tests build `Settings` directly.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

__all__ = ["Settings", "load_settings"]


@dataclass(frozen=True)
class Settings:
    storage_root: Path = Path("uploads")
    token_db: Optional[str] = None  # None -> in-memory token store
    signing_secret: Optional[str] = None  # None -> signed tokens disabled
    admin_key: Optional[str] = None  # None -> admin routes disabled
    default_ttl_hours: int = 24
    sweep_interval_s: float = 3600.0
    public_base_url: Optional[str] = None
    app_version: str = "0.1.0"

    @property
    def default_ttl_ms(self) -> int:
        return self.default_ttl_hours * 60 * 60 * 1000


def _env_str(name: str) -> Optional[str]:
    val = os.getenv(name, "").strip()
    return val or None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        val = int(raw, 10)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer") from e
    if val < 0:
        raise ValueError(f"{name} must be >= 0")
    return val


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        val = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number") from e
    if val <= 0:
        raise ValueError(f"{name} must be > 0")
    return val


def load_settings() -> Settings:
    """Build Settings from STORAGE_ROOT, TOKEN_DB, SIGNING_SECRET, ADMIN_KEY, etc."""
    return Settings(
        storage_root=Path(os.getenv("STORAGE_ROOT", "uploads")),
        token_db=_env_str("TOKEN_DB"),
        signing_secret=_env_str("SIGNING_SECRET"),
        admin_key=_env_str("ADMIN_KEY"),
        default_ttl_hours=_env_int("DEFAULT_TOKEN_TTL_HOURS", 24),
        sweep_interval_s=_env_float("SWEEP_INTERVAL_SECONDS", 3600.0),
        public_base_url=_env_str("PUBLIC_BASE_URL"),
        app_version=os.getenv("APP_VERSION", "0.1.0"),
    )
