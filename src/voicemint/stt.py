"""
Speech-to-text transcription.
"""

import logging
import mimetypes
from collections.abc import Awaitable, Callable
from pathlib import Path

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from .errors import ServiceError

logger = logging.getLogger("voicemint")

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_OPENAI_MODEL = "whisper-1"

TranscribeFunc = Callable[[bytes, str], Awaitable[str]]


def guess_audio_mime(path: str | Path) -> str:
    """Guess an audio mime type from the file name."""
    mime, _ = mimetypes.guess_type(str(path))
    if not mime or not mime.startswith("audio/"):
        return "audio/mpeg"
    return mime


async def transcribe_gemini(
    client: genai.Client, audio: bytes, mime_type: str, model: str = DEFAULT_GEMINI_MODEL
) -> str:
    """Transcribe audio bytes with Gemini."""
    try:
        logger.info(f"Transcribing {len(audio)} bytes ({mime_type}) with {model} …")
        response = await client.aio.models.generate_content(
            model=model,
            contents=[
                types.Part.from_bytes(data=audio, mime_type=mime_type),
                types.Part.from_text(text="Transcribe the following audio:"),
            ],
        )
    except Exception as e:
        logger.error(f"Transcription failed: {e}")
        raise ServiceError(f"Transcription failed: {e}") from e
    return (response.text or "").strip()


async def transcribe_openai(
    client: AsyncOpenAI, audio: bytes, mime_type: str, model: str = DEFAULT_OPENAI_MODEL
) -> str:
    """Transcribe audio bytes with the OpenAI transcription endpoint."""
    ext = mimetypes.guess_extension(mime_type) or ".mp3"
    try:
        logger.info(f"Transcribing {len(audio)} bytes ({mime_type}) with {model} …")
        resp = await client.audio.transcriptions.create(
            model=model,
            file=(f"audio{ext}", audio, mime_type),
        )
    except Exception as e:
        logger.error(f"Transcription failed: {e}")
        raise ServiceError(f"Transcription failed: {e}") from e
    text = getattr(resp, "text", None)
    if text is None and isinstance(resp, dict):
        text = resp.get("text", "")
    return str(text or "").strip()


def make_transcriber_gemini(
    client: genai.Client, model: str = DEFAULT_GEMINI_MODEL
) -> TranscribeFunc:
    async def _transcribe(audio: bytes, mime_type: str) -> str:
        return await transcribe_gemini(client, audio, mime_type, model=model)

    return _transcribe


def make_transcriber_openai(client: AsyncOpenAI, model: str = DEFAULT_OPENAI_MODEL) -> TranscribeFunc:
    async def _transcribe(audio: bytes, mime_type: str) -> str:
        return await transcribe_openai(client, audio, mime_type, model=model)

    return _transcribe
