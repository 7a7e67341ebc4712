"""
Tests for the transcription providers and audio mime guessing.
"""

from types import SimpleNamespace

import pytest

from voicemint.errors import ServiceError
from voicemint.stt import (
    guess_audio_mime,
    make_transcriber_gemini,
    make_transcriber_openai,
    transcribe_gemini,
    transcribe_openai,
)


class FakeGeminiModels:
    def __init__(self, text=None, error=None) -> None:
        self.text = text
        self.error = error
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeTranscriptions:
    def __init__(self, response=None, error=None) -> None:
        self.response = response
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response


def gemini_client(models: FakeGeminiModels):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def openai_client(transcriptions: FakeTranscriptions):
    return SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))


def test_guess_audio_mime():
    assert guess_audio_mime("memo.mp3") == "audio/mpeg"
    assert guess_audio_mime("memo.wav") in ("audio/wav", "audio/x-wav")
    # unknown or non-audio names fall back to mp3
    assert guess_audio_mime("memo") == "audio/mpeg"
    assert guess_audio_mime("notes.txt") == "audio/mpeg"


@pytest.mark.asyncio
async def test_gemini_sends_inline_audio_then_instruction():
    models = FakeGeminiModels(text="  hello world \n")

    text = await transcribe_gemini(gemini_client(models), b"ID3data", "audio/mpeg", model="m1")

    assert text == "hello world"
    call = models.calls[0]
    assert call["model"] == "m1"
    audio_part, prompt_part = call["contents"]
    assert audio_part.inline_data.data == b"ID3data"
    assert audio_part.inline_data.mime_type == "audio/mpeg"
    assert prompt_part.text == "Transcribe the following audio:"


@pytest.mark.asyncio
async def test_gemini_without_text_gives_empty_transcript():
    models = FakeGeminiModels(text=None)
    assert await transcribe_gemini(gemini_client(models), b"x", "audio/wav") == ""


@pytest.mark.asyncio
async def test_gemini_errors_become_service_errors():
    models = FakeGeminiModels(error=RuntimeError("quota exceeded"))
    transcribe = make_transcriber_gemini(gemini_client(models))
    with pytest.raises(ServiceError, match="quota exceeded"):
        await transcribe(b"x", "audio/wav")


@pytest.mark.asyncio
async def test_openai_uploads_named_file_tuple():
    transcriptions = FakeTranscriptions(response=SimpleNamespace(text=" hi there "))
    transcribe = make_transcriber_openai(openai_client(transcriptions), model="whisper-1")

    text = await transcribe(b"ID3data", "audio/mpeg")

    assert text == "hi there"
    call = transcriptions.calls[0]
    assert call["model"] == "whisper-1"
    name, data, mime = call["file"]
    assert name.startswith("audio.")
    assert data == b"ID3data"
    assert mime == "audio/mpeg"


@pytest.mark.asyncio
async def test_openai_accepts_dict_responses():
    transcriptions = FakeTranscriptions(response={"text": "from a dict"})
    assert await transcribe_openai(openai_client(transcriptions), b"x", "audio/wav") == "from a dict"


@pytest.mark.asyncio
async def test_openai_errors_become_service_errors():
    transcriptions = FakeTranscriptions(error=ConnectionError("network down"))
    with pytest.raises(ServiceError, match="network down"):
        await transcribe_openai(openai_client(transcriptions), b"x", "audio/wav")
