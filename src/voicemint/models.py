"""
Data models for Voicemint.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import numpy as np

SAMPLE_RATE = 24000  # Hz, speech synthesis output rate
CHANNELS = 1


class Voice(str, Enum):
    """Prebuilt synthesis voices plus the custom-upload option."""

    ZEPHYR = "Zephyr"
    KORE = "Kore"
    PUCK = "Puck"
    CHARON = "Charon"
    FENRIR = "Fenrir"
    CUSTOM = "custom"

    @property
    def label(self) -> str:
        return VOICE_LABELS[self]


VOICE_LABELS = {
    Voice.ZEPHYR: "Zephyr (Friendly)",
    Voice.KORE: "Kore (Calm)",
    Voice.PUCK: "Puck (Playful)",
    Voice.CHARON: "Charon (Deep)",
    Voice.FENRIR: "Fenrir (Assertive)",
    Voice.CUSTOM: "Upload Custom Voice",
}


@dataclass(frozen=True)
class LanguageOption:
    """A target language for translation."""

    code: str
    label: str


LANGUAGE_OPTIONS: list[LanguageOption] = [
    LanguageOption("ar", "Arabic"),
    LanguageOption("zh", "Chinese (Mandarin)"),
    LanguageOption("en", "English"),
    LanguageOption("fr", "French"),
    LanguageOption("de", "German"),
    LanguageOption("hi", "Hindi"),
    LanguageOption("it", "Italian"),
    LanguageOption("ja", "Japanese"),
    LanguageOption("ko", "Korean"),
    LanguageOption("pt", "Portuguese"),
    LanguageOption("ru", "Russian"),
    LanguageOption("es", "Spanish"),
]


@dataclass(frozen=True, eq=False)
class DecodedAudioBuffer:
    """Decoded audio: float samples in -1.0..1.0, shape (channels, frames)."""

    sample_rate: int
    channels: int
    samples: np.ndarray

    def __post_init__(self) -> None:
        self.samples.setflags(write=False)

    @property
    def frames(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration(self) -> float:
        """Length in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return self.frames / self.sample_rate

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]


@dataclass(frozen=True)
class WavBlob:
    """A complete WAV file held in memory (44-byte header + PCM payload)."""

    data: bytes
    mime_type: str = "audio/wav"

    def __len__(self) -> int:
        return len(self.data)

    def write(self, path: str | Path) -> Path:
        out = Path(path)
        out.write_bytes(self.data)
        return out


@dataclass(frozen=True)
class User:
    """The logged-in user."""

    email: str


@dataclass(frozen=True)
class DubbingResult:
    """Output of the translate-then-synthesize chain."""

    translated_script: str | None
    buffer: DecodedAudioBuffer
