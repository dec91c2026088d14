"""Shared fixtures: throwaway npm projects on disk."""
import json
from pathlib import Path

import pytest

from depsweep.config import reset_config
from depsweep.utils.logger import setup_logging


@pytest.fixture(autouse=True, scope="session")
def _diagnostics_to_stderr():
    """Route structlog output through stdlib logging for the whole session."""
    setup_logging("DEBUG")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Unset every DEPSWEEP_* variable and drop the config singleton."""
    for name in ("DEPSWEEP_LOG_LEVEL", "DEPSWEEP_LOG_FORMAT", "DEPSWEEP_CACHE_DIR",
                 "DEPSWEEP_WORKERS", "DEPSWEEP_ERROR_RECOVERY"):
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield monkeypatch
    reset_config()


@pytest.fixture
def make_project(tmp_path):
    """Create a project directory with a package.json and source files.

    Usage:
        root = make_project({"dependencies": {...}}, {"src/index.js": "..."})
    """
    def _make(manifest=None, files=None, root_name="project") -> Path:
        root = tmp_path / root_name
        root.mkdir(parents=True, exist_ok=True)
        if manifest is not None:
            (root / "package.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        for relative, content in (files or {}).items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return root

    return _make
