"""Hub app-data paths."""

from __future__ import annotations

import os
from pathlib import Path


def resolve_app_data_root() -> Path:
    """Resolve app-data root directory for hub runtime state."""
    configured = os.getenv("NAVALHUB_APP_DATA_DIR", "").strip()
    if configured:
        candidate = Path(configured)
        if candidate.is_absolute():
            return candidate
        return Path.cwd() / candidate
    return Path.cwd() / "appdata"


def resolve_logs_dir(configured: str | None = None) -> Path:
    """Resolve the run-log directory.

    An explicit directory wins; relative paths are taken under the app-data root.
    """
    if configured:
        candidate = Path(configured)
        if candidate.is_absolute():
            return candidate
        return resolve_app_data_root() / candidate
    return resolve_app_data_root() / "logs"
