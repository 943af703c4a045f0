"""Shared pytest fixtures for plugin tests."""

from __future__ import annotations

import logging
import os

import pytest
import structlog
from pydantic import SecretStr

from stackoverflow_plugin import config as config_module
from stackoverflow_plugin.config import PluginSettings


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from real STK_* variables and launcher config files."""

    for key in list(os.environ):
        if key.startswith("STK_"):
            monkeypatch.delenv(key, raising=False)
    config_file = tmp_path / "plugins" / "stackoverflow" / "config.toml"
    monkeypatch.setattr(config_module, "config_search_paths", lambda plugin_name="stackoverflow": [config_file])
    monkeypatch.chdir(tmp_path)
    config_module.get_settings.cache_clear()
    yield config_file
    config_module.get_settings.cache_clear()


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings() -> PluginSettings:
    return PluginSettings(access_token=SecretStr("test-token"))


@pytest.fixture
def make_post_payload():
    def _make(index: int, **overrides) -> dict:
        payload = {
            "title": f"Question {index}",
            "score": 10 - index,
            "link": f"https://stackoverflow.com/questions/{1000 + index}",
            "tags": ["java", "spring-boot"],
            "is_answered": index % 2 == 0,
        }
        payload.update(overrides)
        return payload

    return _make
