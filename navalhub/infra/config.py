"""Hub configuration and env loading."""

from __future__ import annotations

import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

DEFAULT_ENV_FILES: tuple[str, ...] = (
    "appdata/config/.env.hub",
    "appdata/config/.env.hub.local",
    ".env.hub",
    ".env.hub.local",
)


def _read_env_pairs(path: str) -> Iterator[tuple[str, str]]:
    env_path = Path(path)
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue

        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        yield key, value


def load_env_file(path: str = ".env", *, override_existing: bool = True) -> None:
    """Load KEY=VALUE pairs from an env file into process environment.

    By default, values from the env file overwrite existing environment variables.
    """
    for key, value in _read_env_pairs(path):
        if override_existing or key not in os.environ:
            os.environ[key] = value


def load_default_env_files(
    *, override_existing: bool = False, paths: Sequence[str] | None = None
) -> None:
    """Load split env files with optional local overrides.

    Precedence is left-to-right because later loads may overwrite previous values.
    Variables exported before the call win over every file unless `override_existing`.
    """
    to_load = tuple(paths) if paths is not None else DEFAULT_ENV_FILES
    exported = frozenset() if override_existing else frozenset(os.environ)
    for path in to_load:
        for key, value in _read_env_pairs(path):
            if key not in exported:
                os.environ[key] = value


def _flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _text(name: str) -> str | None:
    raw = os.getenv(name, "").strip()
    return raw or None


@dataclass(frozen=True, slots=True)
class HubSettings:
    """Immutable runtime settings for the hub process."""

    log_level: str = "INFO"
    log_format: str = "text"
    log_dir: str | None = None
    reap_timeout_seconds: float = 1.0
    early_grace_seconds: float = 0.25
    agent_stderr_passthrough: bool = False
    commentary_enabled: bool = True


def resolve_log_level_name(default: str = "INFO") -> str:
    """Resolve log level with the hub-prefixed override."""
    value = os.getenv("NAVALHUB_LOG_LEVEL")
    if value is None:
        value = os.getenv("LOG_LEVEL", default)
    return value.strip().upper()


def load_hub_settings() -> HubSettings:
    """Load immutable hub settings from env vars."""
    log_format = os.getenv("LOG_FORMAT", "text").strip().lower()
    return HubSettings(
        log_level=resolve_log_level_name(),
        log_format=log_format if log_format in {"text", "json"} else "text",
        log_dir=_text("NAVALHUB_LOG_DIR"),
        reap_timeout_seconds=max(0.0, _float("NAVALHUB_REAP_TIMEOUT", 1.0)),
        early_grace_seconds=max(0.0, _float("NAVALHUB_EARLY_GRACE", 0.25)),
        agent_stderr_passthrough=_flag("NAVALHUB_AGENT_STDERR", False),
        commentary_enabled=_flag("NAVALHUB_COMMENTARY", True),
    )


def load_agent_strategy_name(default: str = "sweep") -> str:
    """Resolve the guess strategy an agent process should play with."""
    return (_text("NAVALHUB_AGENT_STRATEGY") or default).lower()
