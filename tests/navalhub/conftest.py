from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from navalhub.core.rules import Rules

REPO_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def small_rules() -> Rules:
    """3x3 board with a single ship of length 2."""
    return Rules(width=3, height=3, ship_lengths=(2,))


@pytest.fixture
def write_text(tmp_path):
    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def agent_env(monkeypatch) -> dict[str, str]:
    """Environment under which child processes can import navalhub."""
    existing = os.environ.get("PYTHONPATH")
    pythonpath = str(REPO_ROOT) if not existing else os.pathsep.join([str(REPO_ROOT), existing])
    monkeypatch.setenv("PYTHONPATH", pythonpath)
    monkeypatch.delenv("NAVALHUB_LOG_DIR", raising=False)
    monkeypatch.delenv("NAVALHUB_AGENT_STRATEGY", raising=False)
    return dict(os.environ)


@pytest.fixture
def make_script(tmp_path):
    """Write an executable /bin/sh script and return its path."""

    def _make(name: str, body: str) -> Path:
        path = tmp_path / name
        path.write_text(f"#!/bin/sh\n{body}", encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture
def python_agent(make_script, agent_env):
    """Executable wrapper that runs the bundled agent under this interpreter."""
    return make_script("agent.sh", f'exec "{sys.executable}" -m navalhub.agent.main "$@"\n')
