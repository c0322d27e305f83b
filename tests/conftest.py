"""Pytest configuration and shared fixtures."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from todo_nlp.config import Config, CONFIG_ENV_VAR  # noqa: E402

# Sunday, 18 October 2026
REFERENCE_NOW = datetime(2026, 10, 18, 9, 0)


@pytest.fixture
def now():
    """Fixed reference instant for relative dates."""
    return REFERENCE_NOW


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from the user's config file and cached settings."""
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "config.yaml"))
    Config.reset()
    yield
    Config.reset()
