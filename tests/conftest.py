"""
Shared fixtures for the sortd test suite.
"""

import logging
import os
import tempfile
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep SORTD_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("SORTD_"):
            monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def default_config_path(monkeypatch, tmp_path):
    """Point the default config location away from the developer's home."""
    path = tmp_path / "home" / ".config" / "sortd" / "config.yaml"
    monkeypatch.setattr("sortd.utils.config_manager.DEFAULT_CONFIG_PATH", path)
    return path


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo root handler changes made by setup_logging()."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def workspace():
    """Temporary directory used as the organizing root."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def make_file(workspace):
    """Create a file below the workspace and return its path."""

    def _make_file(relative_path: str, content: str = "content") -> Path:
        path = workspace / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _make_file
