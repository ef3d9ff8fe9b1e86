# src/diagtask/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole process.
- Nothing privileged happens at import time (paths are only computed, not created).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "DIAGTASK"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_dir: Path

    # ---- Task records / workers ----
    working_dir: Path
    scripts_dir: Path
    artifact_suffix: str
    worker_log_path: Path
    guard_stale_after: int

    # ---- Behaviour switches ----
    reserve_on_store: bool
    clean_on_start: bool

    # ---- Console driver ----
    console_session: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "diagtask").strip() or "diagtask"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        log_dir = _env_path(_k("LOG_DIR"), Path(".local/diagtask"))

        working_dir = _env_path(_k("WORKING_DIR"), Path("/var/log/pcp/vector"))
        scripts_dir = _env_path(_k("SCRIPTS_DIR"), Path("/var/lib/pcp/pmdas/vector"))
        artifact_suffix = _env(_k("ARTIFACT_SUFFIX"), ".svg")
        worker_log_path = _env_path(_k("WORKER_LOG"), log_dir / "workers.log")
        guard_stale_after = _env_int(_k("GUARD_STALE_SECONDS"), 30)

        reserve_on_store = _env_bool(_k("RESERVE_ON_STORE"), True)
        clean_on_start = _env_bool(_k("CLEAN_ON_START"), True)

        console_session = _env_int(_k("CONSOLE_SESSION"), 0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_dir=log_dir,
            working_dir=working_dir,
            scripts_dir=scripts_dir,
            artifact_suffix=artifact_suffix,
            worker_log_path=worker_log_path,
            guard_stale_after=guard_stale_after,
            reserve_on_store=reserve_on_store,
            clean_on_start=clean_on_start,
            console_session=console_session,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
