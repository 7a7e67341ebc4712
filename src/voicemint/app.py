"""
Feature flows: video dubbing, text-to-speech and speech-to-text.

Each flow owns one or more Panels and talks to the AI services through the
callables bundled in Services, so tests can swap in plain async fakes.
"""

import asyncio
import hashlib
import logging
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from google import genai
from openai import AsyncOpenAI

from .audio import buffer_to_wav, decode_audio_payload, decode_base64, load_audio_file, pcm_to_wav
from .config import Settings
from .errors import ServiceError, ValidationError
from .io_ffmpeg import ensure_dir, mux_audio_to_video
from .models import CHANNELS, SAMPLE_RATE, DecodedAudioBuffer, DubbingResult, Voice
from .panels import Panel, PanelState, Succeeded
from .playback import play_synchronized
from .script import (
    FfmpegMediaSource,
    MediaSource,
    ScriptFunc,
    generate_script_for_video,
    make_script_writer_gemini,
    make_script_writer_openai,
)
from .stt import TranscribeFunc, guess_audio_mime, make_transcriber_gemini, make_transcriber_openai
from .translation import (
    TranslateFunc,
    get_language_name,
    make_translator_gemini,
    make_translator_openai,
)
from .tts import SynthFunc, make_synth_gemini, make_synth_openai

logger = logging.getLogger("voicemint")

NO_AUDIO_MESSAGE = "Failed to generate audio. The API returned no data."


@dataclass
class Services:
    """Provider-bound callables for the four external collaborators."""

    write_script: ScriptFunc
    translate: TranslateFunc
    synthesize: SynthFunc
    transcribe: TranscribeFunc


def build_services(settings: Settings) -> Services:
    """Create clients for the configured provider and bind them."""
    key = settings.api_key()
    logger.info(f"Using {settings.provider} services")
    if settings.provider == "gemini":
        client = genai.Client(api_key=key)
        return Services(
            write_script=make_script_writer_gemini(client, settings.model("text")),
            translate=make_translator_gemini(client, settings.model("text")),
            synthesize=make_synth_gemini(client, settings.model("tts")),
            transcribe=make_transcriber_gemini(client, settings.model("stt")),
        )
    client = AsyncOpenAI(api_key=key)
    return Services(
        write_script=make_script_writer_openai(client, settings.model("text")),
        translate=make_translator_openai(client, settings.model("text")),
        synthesize=make_synth_openai(client, settings.model("tts")),
        transcribe=make_transcriber_openai(client, settings.model("stt")),
    )


def _preview_name(voice: Voice, emotion: int, speed: int, text: str) -> str:
    key = f"{voice.value}|{emotion}|{speed}|{text}".encode()
    return f"tts_{hashlib.sha1(key).hexdigest()[:12]}.wav"


class DubbingFlow:
    """Upload a video, get a script, translate, synthesize, play or export."""

    def __init__(
        self,
        services: Services,
        media_factory: Callable[[str], MediaSource] = FfmpegMediaSource,
    ) -> None:
        self.services = services
        self.media_factory = media_factory
        self.script_panel = Panel("script")
        self.dub_panel = Panel("dub")
        self.video_path: str | None = None

    @property
    def script(self) -> str | None:
        return self.script_panel.result

    @property
    def result(self) -> DubbingResult | None:
        return self.dub_panel.result

    @property
    def buffer(self) -> DecodedAudioBuffer | None:
        result = self.result
        return result.buffer if result is not None else None

    async def load_video(self, path: str | Path, *, generate_script: bool = True) -> PanelState:
        """Select a video; previous results are dropped and a new script is generated."""
        video = Path(path)
        if not video.is_file():
            self.script_panel.fail(f"Failed to load video: {video} does not exist.")
            return self.script_panel.state
        self.video_path = str(video)
        self.dub_panel.reset()
        self.script_panel.reset()
        if not generate_script:
            return self.script_panel.state
        source = self.media_factory(self.video_path)
        return await self.script_panel.run(
            lambda: generate_script_for_video(source, self.services.write_script),
            error_prefix="Failed to generate script",
        )

    def use_script(self, script: str) -> None:
        """Use a hand-written script instead of a generated one."""
        self.script_panel.set_state(Succeeded(script))

    async def generate(
        self, language: str, voice: Voice, emotion: int = 50, speed: int = 50
    ) -> PanelState:
        """Translate the script, then synthesize the translation."""
        return await self.dub_panel.run(lambda: self._dub(language, voice, emotion, speed))

    async def _dub(self, language: str, voice: Voice, emotion: int, speed: int) -> DubbingResult:
        script = self.script
        if voice is Voice.CUSTOM or not script:
            raise ValidationError("A script must be generated and an AI voice selected.")
        translated = await self.services.translate(script, get_language_name(language))
        payload = await self.services.synthesize(translated, voice, emotion, speed)
        if not payload:
            raise ServiceError(NO_AUDIO_MESSAGE)
        buffer = decode_audio_payload(payload, SAMPLE_RATE, CHANNELS)
        logger.info(f"Dubbed audio ready ({buffer.duration:.2f}s)")
        return DubbingResult(translated_script=translated, buffer=buffer)

    async def load_custom_audio(self, path: str | Path) -> PanelState:
        """Use an uploaded recording as the dub track."""
        return await self.dub_panel.run(
            lambda: self._custom_audio(path), error_prefix="Failed to process audio file"
        )

    async def _custom_audio(self, path: str | Path) -> DubbingResult:
        buffer = await asyncio.to_thread(load_audio_file, path)
        return DubbingResult(translated_script=None, buffer=buffer)

    def _require_ready(self) -> tuple[str, DecodedAudioBuffer]:
        if self.video_path is None or self.buffer is None:
            raise ValidationError("Load a video and generate its dub first.")
        return self.video_path, self.buffer

    async def play(self) -> None:
        video_path, buffer = self._require_ready()
        await play_synchronized(video_path, buffer)

    def export_wav(self, path: str | Path) -> Path:
        _, buffer = self._require_ready()
        out = Path(path)
        ensure_dir(str(out.parent))
        buffer_to_wav(buffer).write(out)
        logger.info(f"Saved dubbed audio -> {out}")
        return out

    async def export_video(self, output_video: str | Path) -> Path:
        """Mux the dub track onto the original video."""
        video_path, _ = self._require_ready()
        with tempfile.TemporaryDirectory(prefix="voicemint_") as tmp:
            wav = self.export_wav(Path(tmp) / "dub.wav")
            await asyncio.to_thread(mux_audio_to_video, video_path, str(wav), str(output_video))
        logger.info(f"Done (dubbed) -> {output_video}")
        return Path(output_video)


class TextToSpeechFlow:
    """Standalone text-to-speech producing WAV previews."""

    def __init__(self, services: Services, previews_dir: str | Path) -> None:
        self.services = services
        self.previews_dir = Path(previews_dir)
        self.panel = Panel("tts")
        self._preview: Path | None = None
        self._clear_stale_previews()

    def _clear_stale_previews(self) -> None:
        # A preview only lives until the next flow supersedes it.
        for stale in self.previews_dir.glob("tts_*.wav"):
            logger.debug(f"Removing stale preview {stale}")
            stale.unlink(missing_ok=True)

    @property
    def preview(self) -> Path | None:
        return self._preview

    async def generate(
        self, text: str, voice: Voice, emotion: int = 50, speed: int = 50
    ) -> PanelState:
        self._release_preview()
        return await self.panel.run(lambda: self._synthesize(text, voice, emotion, speed))

    async def _synthesize(self, text: str, voice: Voice, emotion: int, speed: int) -> Path:
        if not text.strip():
            raise ValidationError("Please enter some text to generate speech.")
        if voice is Voice.CUSTOM:
            raise ValidationError("Please select a valid AI voice.")
        payload = await self.services.synthesize(text, voice, emotion, speed)
        if not payload:
            raise ServiceError(NO_AUDIO_MESSAGE)
        wav = pcm_to_wav(decode_base64(payload), SAMPLE_RATE, CHANNELS, 16)
        ensure_dir(str(self.previews_dir))
        path = wav.write(self.previews_dir / _preview_name(voice, emotion, speed, text))
        self._preview = path
        logger.info(f"Saved speech preview -> {path}")
        return path

    def _release_preview(self) -> None:
        if self._preview is not None:
            self._preview.unlink(missing_ok=True)
            self._preview = None

    def close(self) -> None:
        self._release_preview()
        self.panel.reset()


class SpeechToTextFlow:
    """Transcribe an uploaded audio file."""

    def __init__(self, services: Services) -> None:
        self.services = services
        self.panel = Panel("stt")

    async def transcribe(self, path: str | Path | None) -> PanelState:
        return await self.panel.run(
            lambda: self._transcribe(path), error_prefix="An error occurred"
        )

    async def _transcribe(self, path: str | Path | None) -> str:
        if not path or not Path(path).is_file():
            raise ValidationError("Please upload an audio file to transcribe.")
        audio_path = Path(path)
        audio = await asyncio.to_thread(audio_path.read_bytes)
        return await self.services.transcribe(audio, guess_audio_mime(audio_path))
