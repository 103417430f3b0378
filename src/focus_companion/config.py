# src/focus_companion/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Timer policy (duration bounds, tick cadence, break length) lives here, not in the core.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "FOCUS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


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


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


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

    # ---- Connector flags ----
    console_enabled: bool
    console_user_id: str
    matrix_enabled: bool

    # ---- Matrix ----
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_rooms: list[str]

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    matrix_store_path: Path

    # ---- Timer policy ----
    min_duration_minutes: int
    max_duration_minutes: int
    tick_interval_seconds: float
    break_reminder_minutes: int
    commit_threshold_minutes: float
    reconcile_interval_minutes: float
    notify_timeout_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="focus") or "focus"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        console_user_id = _env(_k("CONSOLE_USER_ID"), "console").strip() or "console"
        matrix_enabled = _env_bool(_k("MATRIX_ENABLED"), False)

        matrix_homeserver = (_first_env(_k("MATRIX_HOMESERVER"), "MATRIX_HOMESERVER", default="") or "").strip()
        matrix_user_id = (_first_env(_k("MATRIX_USER_ID"), "MATRIX_USER_ID", default="") or "").strip()
        matrix_password = (_first_env(_k("MATRIX_PASSWORD"), "MATRIX_PASSWORD", default="") or "").strip()
        matrix_rooms = _env_list(_k("MATRIX_ROOMS"), _env_list("MATRIX_ROOMS", []))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/focus"))
        matrix_store_path = _env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store")

        min_duration = max(1, _env_int(_k("MIN_DURATION_MINUTES"), 1))
        max_duration = max(min_duration, _env_int(_k("MAX_DURATION_MINUTES"), 180))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            console_user_id=console_user_id,
            matrix_enabled=matrix_enabled,
            matrix_homeserver=matrix_homeserver,
            matrix_user_id=matrix_user_id,
            matrix_password=matrix_password,
            matrix_rooms=matrix_rooms,
            data_dir=data_dir,
            matrix_store_path=matrix_store_path,
            min_duration_minutes=min_duration,
            max_duration_minutes=max_duration,
            tick_interval_seconds=max(1.0, _env_float(_k("TICK_INTERVAL_SECONDS"), 60.0)),
            break_reminder_minutes=max(0, _env_int(_k("BREAK_REMINDER_MINUTES"), 5)),
            commit_threshold_minutes=max(0.0, _env_float(_k("COMMIT_THRESHOLD_MINUTES"), 1.0)),
            reconcile_interval_minutes=max(0.1, _env_float(_k("RECONCILE_INTERVAL_MINUTES"), 30.0)),
            notify_timeout_seconds=max(0.5, _env_float(_k("NOTIFY_TIMEOUT_SECONDS"), 10.0)),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
