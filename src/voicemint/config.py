"""
Runtime settings read from the environment (and .env files).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError

PROVIDERS = ("gemini", "openai")

DEFAULT_MODELS = {
    "gemini": {"text": "gemini-2.5-flash", "tts": "gemini-2.5-flash-preview-tts", "stt": "gemini-2.5-flash"},
    "openai": {"text": "gpt-4o-mini", "tts": "gpt-4o-mini-tts", "stt": "whisper-1"},
}


def load_env() -> None:
    """Load .env from the project root, falling back to the current directory."""
    project_root = Path(__file__).parent.parent.parent
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()


@dataclass
class Settings:
    provider: str = "gemini"
    gemini_api_key: str | None = None
    openai_api_key: str | None = None
    text_model: str | None = None
    tts_model: str | None = None
    stt_model: str | None = None
    home: Path = field(default_factory=lambda: Path.home() / ".voicemint")

    @classmethod
    def from_env(cls) -> "Settings":
        home = os.getenv("VOICEMINT_HOME")
        return cls(
            provider=os.getenv("VOICEMINT_PROVIDER", "gemini").lower(),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            text_model=os.getenv("VOICEMINT_TEXT_MODEL"),
            tts_model=os.getenv("VOICEMINT_TTS_MODEL"),
            stt_model=os.getenv("VOICEMINT_STT_MODEL"),
            home=Path(home).expanduser() if home else Path.home() / ".voicemint",
        )

    def model(self, kind: str) -> str:
        """Configured model for 'text', 'tts' or 'stt', or the provider default."""
        override = {"text": self.text_model, "tts": self.tts_model, "stt": self.stt_model}[kind]
        return override or DEFAULT_MODELS[self.provider][kind]

    def api_key(self) -> str:
        if self.provider not in PROVIDERS:
            raise ConfigError(f"Unknown provider {self.provider!r} (choose from {', '.join(PROVIDERS)})")
        key = self.gemini_api_key if self.provider == "gemini" else self.openai_api_key
        if not key:
            env = "GEMINI_API_KEY" if self.provider == "gemini" else "OPENAI_API_KEY"
            raise ConfigError(f"{env} is not set. Put it in .env or environment.")
        return key

    @property
    def users_path(self) -> Path:
        return self.home / "users.json"

    @property
    def session_path(self) -> Path:
        return self.home / "session.json"

    @property
    def previews_dir(self) -> Path:
        return self.home / "previews"
