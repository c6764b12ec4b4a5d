"""Tests for configuration parsing."""

from __future__ import annotations

import pytest
from safir.logging import LogLevel, Profile
from safir.slack.webhook import SlackWebhookClient
from structlog.stdlib import get_logger

from gradient.config import Config
from gradient.constants import ROOT_LOGGER

from .support.data import data_path


def test_from_file() -> None:
    config = Config.from_file(data_path("config", "config.yaml"))
    assert config.log_level == LogLevel.DEBUG
    assert config.log_profile == Profile.development
    assert config.add_timestamp
    assert not config.debug
    assert config.alert_hook is None


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GRADIENT_NOTEBOOK_LOG_LEVEL", raising=False)
    config = Config()
    assert config.log_level == LogLevel.INFO
    assert config.log_profile == Profile.production
    assert not config.add_timestamp


def test_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GRADIENT_NOTEBOOK_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("GRADIENT_NOTEBOOK_DEBUG", "true")
    monkeypatch.setenv(
        "GRADIENT_NOTEBOOK_ALERT_HOOK", "https://hooks.slack.com/services/x"
    )

    config = Config.from_file(data_path("config", "config.yaml"))
    assert config.log_level == LogLevel.WARNING
    assert config.debug
    assert config.alert_hook
    assert config.alert_hook.get_secret_value() == (
        "https://hooks.slack.com/services/x"
    )


def test_slack_client(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GRADIENT_NOTEBOOK_ALERT_HOOK", raising=False)
    logger = get_logger(ROOT_LOGGER)
    config = Config.from_file(data_path("config", "config.yaml"))
    assert config.slack_client(logger) is None

    monkeypatch.setenv(
        "GRADIENT_NOTEBOOK_ALERT_HOOK", "https://hooks.slack.com/services/x"
    )
    monkeypatch.setenv("GRADIENT_NOTEBOOK_ALERT_SOURCE", "Notebook checks")
    config = Config.from_file(data_path("config", "config.yaml"))
    assert config.alert_source == "Notebook checks"
    assert isinstance(config.slack_client(logger), SlackWebhookClient)
