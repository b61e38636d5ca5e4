"""Pytest configuration for all tests."""

import pytest

from src.autofix.store import ConfigStore


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "github-auto-fix-config.json"


@pytest.fixture
def store(config_path):
    return ConfigStore(config_path)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's environment out of settings tests."""
    for name in (
        "GITHUB_TOKEN",
        "GITHUB_WEBHOOK_SECRET",
        "AUTOFIX_GITHUB_TOKEN",
        "AUTOFIX_GITHUB_WEBHOOK_SECRET",
        "AUTOFIX_CONFIG_PATH",
        "AUTOFIX_WEBHOOK_PATH_PREFIX",
    ):
        monkeypatch.delenv(name, raising=False)
