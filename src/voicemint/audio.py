"""
PCM decoding and WAV encoding for synthesized speech.

Speech synthesis returns base64 text holding raw little-endian signed 16-bit
PCM. It is decoded here into a DecodedAudioBuffer for the player, or wrapped
into a WAV container for files and generic audio sinks.
"""

import base64
import binascii
import logging
import struct
from pathlib import Path

import numpy as np
from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from .errors import DecodeError
from .models import CHANNELS, SAMPLE_RATE, DecodedAudioBuffer, WavBlob

logger = logging.getLogger("voicemint")

WAV_HEADER_SIZE = 44
PCM16_SCALE = 32768.0

# RIFF chunk, fmt subchunk, data subchunk header; little-endian throughout.
_WAV_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def decode_base64(text: str) -> bytes:
    """Decode standard base64 text into raw bytes."""
    if isinstance(text, bytes):
        text = text.decode("ascii", errors="replace")
    if not isinstance(text, str):
        raise DecodeError(f"Expected base64 text, got {type(text).__name__}")
    compact = "".join(text.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Malformed base64 audio payload: {e}") from e


def decode_pcm16(
    raw: bytes, sample_rate: int = SAMPLE_RATE, channels: int = CHANNELS
) -> DecodedAudioBuffer:
    """
    Interpret bytes as interleaved int16 LE samples and normalize to -1.0..1.0.

    A trailing odd byte is dropped. Sample rate and channel count are taken
    as declared by the caller; nothing is resampled or mixed.
    """
    if channels < 1:
        raise ValueError("channels must be >= 1")
    usable = len(raw) - (len(raw) % 2)
    if usable != len(raw):
        logger.debug("Dropping trailing odd byte from %d-byte PCM payload", len(raw))
    ints = np.frombuffer(raw[:usable], dtype="<i2")
    frames = len(ints) // channels
    ints = ints[: frames * channels]
    samples = (ints.astype(np.float32) / PCM16_SCALE).reshape(frames, channels).T.copy()
    return DecodedAudioBuffer(sample_rate=sample_rate, channels=channels, samples=samples)


def decode_audio_payload(
    payload: str, sample_rate: int = SAMPLE_RATE, channels: int = CHANNELS
) -> DecodedAudioBuffer:
    """Decode a base64 PCM payload straight into an audio buffer."""
    return decode_pcm16(decode_base64(payload), sample_rate, channels)


def encode_pcm16(buffer: DecodedAudioBuffer) -> bytes:
    """Quantize a buffer back to interleaved int16 LE bytes."""
    scaled = np.round(buffer.samples.T * PCM16_SCALE)
    ints = np.clip(scaled, -32768, 32767).astype("<i2")
    return ints.tobytes()


def pcm_to_wav(
    pcm: bytes, sample_rate: int, channels: int, bits_per_sample: int = 16
) -> WavBlob:
    """Wrap raw PCM bytes into a canonical 44-byte-header WAV container."""
    if bits_per_sample <= 0 or bits_per_sample % 8:
        raise ValueError(f"Unsupported bits per sample: {bits_per_sample}")
    bytes_per_sample = bits_per_sample // 8
    byte_rate = sample_rate * channels * bytes_per_sample
    block_align = channels * bytes_per_sample
    data_size = len(pcm)
    header = _WAV_HEADER.pack(
        b"RIFF",
        WAV_HEADER_SIZE + data_size - 8,
        b"WAVE",
        b"fmt ",
        16,  # fmt subchunk size
        1,  # PCM
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )
    return WavBlob(data=header + bytes(pcm))


def buffer_to_wav(buffer: DecodedAudioBuffer) -> WavBlob:
    """Encode a decoded buffer as 16-bit WAV."""
    return pcm_to_wav(encode_pcm16(buffer), buffer.sample_rate, buffer.channels, 16)


def load_audio_file(path: str | Path) -> DecodedAudioBuffer:
    """
    Decode an uploaded audio file (any format ffmpeg reads) into a buffer.

    The file keeps its own sample rate and channel layout; only the sample
    width is normalized to 16 bits.
    """
    try:
        clip = AudioSegment.from_file(str(path))
    except (CouldntDecodeError, FileNotFoundError, IndexError) as e:
        raise DecodeError(f"Could not decode {path}: {e}") from e
    clip = clip.set_sample_width(2)
    logger.info(
        "Loaded %s (%d Hz, %d ch, %.2fs)",
        path,
        clip.frame_rate,
        clip.channels,
        len(clip) / 1000.0,
    )
    return decode_pcm16(clip.raw_data, clip.frame_rate, clip.channels)
