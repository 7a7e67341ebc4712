"""
Text-to-speech synthesis with Gemini and OpenAI.

Both providers return raw 16-bit mono PCM at 24 kHz, handed back as base64
text for the PCM decoder.
"""

import base64
import logging
from collections.abc import Awaitable, Callable

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from .errors import ServiceError, ValidationError
from .models import Voice

logger = logging.getLogger("voicemint")

DEFAULT_GEMINI_TTS_MODEL = "gemini-2.5-flash-preview-tts"
DEFAULT_OPENAI_TTS_MODEL = "gpt-4o-mini-tts"

LOW_THRESHOLD = 30
HIGH_THRESHOLD = 70

# Closest OpenAI voice for each prebuilt voice.
OPENAI_VOICES = {
    Voice.ZEPHYR: "nova",
    Voice.KORE: "shimmer",
    Voice.PUCK: "fable",
    Voice.CHARON: "onyx",
    Voice.FENRIR: "echo",
}

SynthFunc = Callable[[str, Voice, int, int], Awaitable[str | None]]


def build_speech_prompt(text: str, emotion: int, speed: int) -> str:
    """
    Prefix the text with tone/pace instructions.

    emotion and speed run 0..100; below 30 and above 70 add a modifier,
    anything in between leaves the text untouched.
    """
    for name, value in (("emotion", emotion), ("speed", speed)):
        if not 0 <= value <= 100:
            raise ValidationError(f"{name} must be between 0 and 100 (got {value})")

    modifiers = ""
    if emotion < LOW_THRESHOLD:
        modifiers += " in a sad, melancholic tone"
    elif emotion > HIGH_THRESHOLD:
        modifiers += " in a happy, energetic tone"

    if speed < LOW_THRESHOLD:
        modifiers += " and speak slowly"
    elif speed > HIGH_THRESHOLD:
        modifiers += " and speak quickly"

    if not modifiers:
        return text
    return f"Say the following{modifiers}: {text}"


def _check_voice(voice: Voice) -> None:
    if voice is Voice.CUSTOM:
        raise ValidationError("Please select a valid AI voice.")


def _audio_from_gemini_response(response) -> str | None:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return None
    inline = getattr(parts[0], "inline_data", None)
    data = getattr(inline, "data", None)
    if not data:
        return None
    if isinstance(data, str):
        return data
    return base64.b64encode(data).decode("ascii")


async def synthesize_gemini(
    client: genai.Client,
    text: str,
    voice: Voice,
    emotion: int,
    speed: int,
    model: str = DEFAULT_GEMINI_TTS_MODEL,
) -> str | None:
    """Synthesize speech with Gemini; returns base64 PCM or None."""
    _check_voice(voice)
    prompt = build_speech_prompt(text, emotion, speed)
    try:
        logger.info("Synthesizing %d chars with %s (voice %s)", len(text), model, voice.value)
        response = await client.aio.models.generate_content(
            model=model,
            contents=[types.Content(parts=[types.Part(text=prompt)])],
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice.value)
                    )
                ),
            ),
        )
    except Exception as e:
        logger.error(f"Gemini TTS failed for text '{text[:50]}...': {e}")
        raise ServiceError(f"Speech synthesis failed: {e}") from e
    return _audio_from_gemini_response(response)


async def synthesize_openai(
    client: AsyncOpenAI,
    text: str,
    voice: Voice,
    emotion: int,
    speed: int,
    model: str = DEFAULT_OPENAI_TTS_MODEL,
) -> str | None:
    """Synthesize speech with OpenAI (raw pcm output); returns base64 PCM or None."""
    _check_voice(voice)
    prompt = build_speech_prompt(text, emotion, speed)
    try:
        logger.info("Synthesizing %d chars with %s (voice %s)", len(text), model, voice.value)
        response = await client.audio.speech.create(
            model=model,
            voice=OPENAI_VOICES[voice],
            input=prompt,
            response_format="pcm",
        )
    except Exception as e:
        logger.error(f"OpenAI TTS failed for text '{text[:50]}...': {e}")
        raise ServiceError(f"Speech synthesis failed: {e}") from e
    data = response.content
    if not data:
        return None
    return base64.b64encode(data).decode("ascii")


def make_synth_gemini(client: genai.Client, model: str = DEFAULT_GEMINI_TTS_MODEL) -> SynthFunc:
    """Create Gemini TTS synthesis function."""

    async def _synth(text: str, voice: Voice, emotion: int, speed: int) -> str | None:
        return await synthesize_gemini(client, text, voice, emotion, speed, model=model)

    return _synth


def make_synth_openai(client: AsyncOpenAI, model: str = DEFAULT_OPENAI_TTS_MODEL) -> SynthFunc:
    """Create OpenAI TTS synthesis function."""

    async def _synth(text: str, voice: Voice, emotion: int, speed: int) -> str | None:
        return await synthesize_openai(client, text, voice, emotion, speed, model=model)

    return _synth
