"""
Tests for environment settings.
"""

import pytest

from voicemint.config import Settings
from voicemint.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "VOICEMINT_PROVIDER",
        "GEMINI_API_KEY",
        "API_KEY",
        "OPENAI_API_KEY",
        "VOICEMINT_TEXT_MODEL",
        "VOICEMINT_TTS_MODEL",
        "VOICEMINT_STT_MODEL",
        "VOICEMINT_HOME",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings.provider == "gemini"
    assert settings.model("tts") == "gemini-2.5-flash-preview-tts"
    assert settings.model("text") == "gemini-2.5-flash"


def test_api_key_fallback(monkeypatch):
    monkeypatch.setenv("API_KEY", "legacy-key")
    assert Settings.from_env().api_key() == "legacy-key"


def test_missing_key_is_config_error():
    with pytest.raises(ConfigError, match="GEMINI_API_KEY"):
        Settings.from_env().api_key()


def test_openai_provider(monkeypatch, tmp_path):
    monkeypatch.setenv("VOICEMINT_PROVIDER", "OpenAI")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("VOICEMINT_STT_MODEL", "gpt-4o-transcribe")
    monkeypatch.setenv("VOICEMINT_HOME", str(tmp_path))

    settings = Settings.from_env()

    assert settings.provider == "openai"
    assert settings.api_key() == "sk-test"
    assert settings.model("stt") == "gpt-4o-transcribe"
    assert settings.model("tts") == "gpt-4o-mini-tts"
    assert settings.session_path == tmp_path / "session.json"


def test_unknown_provider():
    settings = Settings(provider="acme", gemini_api_key="x")
    with pytest.raises(ConfigError, match="Unknown provider"):
        settings.api_key()
