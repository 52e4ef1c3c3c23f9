import logging

import pytest

from deck_generator import config
from deck_generator.streaming import DEFAULT_TIMEOUT_SECONDS

ENV_VARS = ("LLM_PROVIDER", "LLM_MODEL_NAME", "STREAM_TIMEOUT_SECONDS", "UNSPLASH_ACCESS_KEY", "LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "load_dotenv", lambda: False)


def test_defaults():
    settings = config.load_settings()

    assert settings == config.Settings()
    assert settings.provider == "gemini"
    assert settings.stream_timeout_seconds == DEFAULT_TIMEOUT_SECONDS


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", " Claude ")
    monkeypatch.setenv("LLM_MODEL_NAME", "claude-sonnet-4-5")
    monkeypatch.setenv("STREAM_TIMEOUT_SECONDS", "45")
    monkeypatch.setenv("UNSPLASH_ACCESS_KEY", "key")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = config.load_settings()

    assert settings.provider == "claude"
    assert settings.model_name == "claude-sonnet-4-5"
    assert settings.stream_timeout_seconds == 45.0
    assert settings.unsplash_access_key == "key"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name, value",
    [("LLM_PROVIDER", "mistral"), ("STREAM_TIMEOUT_SECONDS", "soon")],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(config.ConfigurationError):
        config.load_settings()


def test_configure_logging_uses_level(monkeypatch):
    captured = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))

    config.configure_logging(config.Settings(log_level="WARNING"))

    assert captured["level"] == logging.WARNING
