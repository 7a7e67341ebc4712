"""
Voice-over script generation from a representative video frame.

Two steps, each usable on its own:
1. extract_midpoint_frame: seek a media source to half its duration, grab a JPEG
2. a script writer (Gemini or OpenAI vision) turns the frame into narration
"""

import asyncio
import base64
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from .errors import ServiceError
from .io_ffmpeg import extract_frame_jpeg, get_video_duration_ms

logger = logging.getLogger("voicemint")

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

SCRIPT_PROMPT = (
    "You are a creative scriptwriter. Based on the scene in this image, write a descriptive "
    "and engaging script for a voice-over that could last around 15 seconds. Describe the "
    "atmosphere, potential character thoughts, or the unfolding action. Provide only the "
    "script text, without any labels like 'Script:' or quotation marks."
)

ScriptFunc = Callable[[bytes], Awaitable[str]]


class MediaSource(Protocol):
    """Anything that can report its duration and render a frame."""

    async def duration(self) -> float: ...

    async def frame_at(self, seconds: float) -> bytes: ...


class FfmpegMediaSource:
    """A video file read through ffprobe/ffmpeg."""

    def __init__(self, path: str) -> None:
        self.path = path

    async def duration(self) -> float:
        ms = await asyncio.to_thread(get_video_duration_ms, self.path)
        return ms / 1000.0

    async def frame_at(self, seconds: float) -> bytes:
        return await asyncio.to_thread(extract_frame_jpeg, self.path, seconds)


async def extract_midpoint_frame(source: MediaSource) -> bytes:
    """Grab the frame at half the source duration (first frame if unknown)."""
    duration = await source.duration()
    midpoint = duration / 2 if duration > 0 else 0.0
    logger.debug("Extracting frame at %.2fs (duration %.2fs)", midpoint, duration)
    return await source.frame_at(midpoint)


async def generate_script_gemini(
    client: genai.Client, frame_jpeg: bytes, model: str = DEFAULT_GEMINI_MODEL
) -> str:
    """Write a voice-over script for one JPEG frame with Gemini."""
    try:
        logger.info(f"Generating script from frame with {model} …")
        response = await client.aio.models.generate_content(
            model=model,
            contents=[
                types.Part.from_bytes(data=frame_jpeg, mime_type="image/jpeg"),
                types.Part.from_text(text=SCRIPT_PROMPT),
            ],
        )
    except Exception as e:
        logger.error(f"Error generating script from image: {e}")
        raise ServiceError(str(e)) from e
    script = (response.text or "").strip()
    if not script:
        raise ServiceError("the model returned no text.")
    return script


async def generate_script_openai(
    client: AsyncOpenAI, frame_jpeg: bytes, model: str = DEFAULT_OPENAI_MODEL
) -> str:
    """Write a voice-over script for one JPEG frame with an OpenAI vision model."""
    data_url = "data:image/jpeg;base64," + base64.b64encode(frame_jpeg).decode("ascii")
    try:
        logger.info(f"Generating script from frame with {model} …")
        chat = await client.chat.completions.create(
            model=model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": data_url}},
                        {"type": "text", "text": SCRIPT_PROMPT},
                    ],
                }
            ],
        )
    except Exception as e:
        logger.error(f"Error generating script from image: {e}")
        raise ServiceError(str(e)) from e
    script = (chat.choices[0].message.content or "").strip()
    if not script:
        raise ServiceError("the model returned no text.")
    return script


def make_script_writer_gemini(
    client: genai.Client, model: str = DEFAULT_GEMINI_MODEL
) -> ScriptFunc:
    async def _write(frame_jpeg: bytes) -> str:
        return await generate_script_gemini(client, frame_jpeg, model=model)

    return _write


def make_script_writer_openai(client: AsyncOpenAI, model: str = DEFAULT_OPENAI_MODEL) -> ScriptFunc:
    async def _write(frame_jpeg: bytes) -> str:
        return await generate_script_openai(client, frame_jpeg, model=model)

    return _write


async def generate_script_for_video(source: MediaSource, write_script: ScriptFunc) -> str:
    """Midpoint frame -> script service."""
    frame = await extract_midpoint_frame(source)
    return await write_script(frame)
