"""Tests for loki_mcp.config."""

import logging

import pytest
from pydantic import ValidationError

from loki_mcp.config import DEFAULT_LOKI_URL, Config, LoggingConfig, LokiConfig, ServerConfig


def test_defaults():
    config = Config()
    assert config.loki.LOKI_URL == "http://localhost:3100" == DEFAULT_LOKI_URL
    assert config.loki.LOKI_TIMEOUT == 30.0
    assert config.loki.LOKI_TOKEN is None
    assert config.server.SSE_PORT == 8080
    assert config.logging.LOG_LEVEL == "INFO"


def test_loki_url_from_environment(monkeypatch):
    monkeypatch.setenv("LOKI_URL", "http://loki.internal:3100")
    assert LokiConfig().LOKI_URL == "http://loki.internal:3100"


def test_empty_loki_url_falls_back(monkeypatch):
    monkeypatch.setenv("LOKI_URL", "")
    assert LokiConfig().LOKI_URL == DEFAULT_LOKI_URL


def test_command_line_url_overrides_environment(monkeypatch):
    monkeypatch.setenv("LOKI_URL", "http://from-env:3100")
    assert Config(loki_url="http://from-flag:3100").loki.LOKI_URL == "http://from-flag:3100"


def test_credentials_from_environment(monkeypatch):
    monkeypatch.setenv("LOKI_USERNAME", "admin")
    monkeypatch.setenv("LOKI_PASSWORD", "secret")
    config = LokiConfig()
    assert config.LOKI_USERNAME == "admin"
    assert config.LOKI_PASSWORD == "secret"


def test_sse_port_from_environment(monkeypatch):
    monkeypatch.setenv("SSE_PORT", "9090")
    assert ServerConfig().SSE_PORT == 9090


def test_log_level_is_normalized(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert LoggingConfig().LOG_LEVEL == "DEBUG"


def test_invalid_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        LoggingConfig()


def test_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        LokiConfig(LOKI_TIMEOUT=0)


def test_setup_logging_sets_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    Config().setup_logging()
    assert logging.getLogger("loki_mcp").level == logging.WARNING
