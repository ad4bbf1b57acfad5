"""Shared fixtures for autoflow tests."""

import logging

import pytest

from autoflow.observability import clear_trace_context


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point configuration at an empty location so ~/.autoflow never leaks in."""
    monkeypatch.setenv("AUTOFLOW_CONFIG", str(tmp_path / "no-config.json"))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    yield
    clear_trace_context()


@pytest.fixture
def restore_root_logging():
    """Undo configure_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
