"""
Tests for PCM decoding and WAV encoding.
"""

import base64
import struct

import numpy as np
import pytest

from voicemint.audio import (
    buffer_to_wav,
    decode_audio_payload,
    decode_base64,
    decode_pcm16,
    encode_pcm16,
    load_audio_file,
    pcm_to_wav,
)
from voicemint.errors import DecodeError


def test_decode_then_encode_reproduces_bytes():
    """Even-length byte sequences survive decode -> encode unchanged."""
    rng = np.random.default_rng(1234)
    payloads = [
        b"",
        struct.pack("<hh", -32768, 32767),
        struct.pack("<hhh", 0, 1, -1),
        rng.integers(0, 256, size=4096, dtype=np.uint8).tobytes(),
    ]
    for raw in payloads:
        assert encode_pcm16(decode_pcm16(raw, 24000, 1)) == raw


def test_samples_are_normalized():
    raw = struct.pack("<hhhh", 0, 16384, -32768, 32767)
    buf = decode_pcm16(raw, 24000, 1)

    assert buf.sample_rate == 24000
    assert buf.channels == 1
    assert buf.frames == 4
    samples = buf.channel(0)
    assert samples[0] == 0.0
    assert samples[1] == 0.5
    assert samples[2] == -1.0
    assert samples[3] == pytest.approx(32767 / 32768)
    assert samples.min() >= -1.0 and samples.max() <= 1.0


def test_odd_trailing_byte_is_dropped():
    """2n+1 bytes decode to exactly n samples."""
    raw = struct.pack("<hhh", 1, 2, 3) + b"\x7f"
    buf = decode_pcm16(raw, 24000, 1)
    assert buf.frames == 3


def test_single_byte_decodes_to_empty_buffer():
    buf = decode_pcm16(b"\x01", 24000, 1)
    assert buf.frames == 0
    assert buf.duration == 0.0


def test_stereo_is_deinterleaved():
    raw = struct.pack("<hhhh", 100, -100, 200, -200)
    buf = decode_pcm16(raw, 48000, 2)
    assert buf.frames == 2
    assert list(buf.channel(0) * 32768) == [100, 200]
    assert list(buf.channel(1) * 32768) == [-100, -200]


def test_sample_rate_is_passed_through():
    """The declared rate is kept, never inferred."""
    raw = b"\x00\x00" * 24000
    buf = decode_pcm16(raw, 16000, 1)
    assert buf.sample_rate == 16000
    assert buf.duration == pytest.approx(1.5)


def test_buffer_is_read_only():
    buf = decode_pcm16(b"\x00\x01\x00\x02", 24000, 1)
    with pytest.raises(ValueError):
        buf.samples[0, 0] = 1.0


def test_decode_audio_payload_from_base64():
    raw = struct.pack("<hh", 8192, -8192)
    buf = decode_audio_payload(base64.b64encode(raw).decode("ascii"))
    assert buf.sample_rate == 24000
    assert buf.channels == 1
    assert list(buf.channel(0)) == [0.25, -0.25]


def test_malformed_base64_raises_decode_error():
    with pytest.raises(DecodeError):
        decode_base64("not*base64!")
    with pytest.raises(DecodeError):
        decode_audio_payload("abc")


def test_base64_whitespace_is_ignored():
    assert decode_base64("AQ\nID\n") == b"\x01\x02\x03"


def test_wav_header_layout():
    """48000 bytes of 24 kHz mono 16-bit PCM."""
    pcm = bytes(48000)
    wav = pcm_to_wav(pcm, 24000, 1, 16).data

    assert len(wav) == 44 + 48000
    assert wav[0:4] == b"RIFF"
    assert struct.unpack("<I", wav[4:8])[0] == len(wav) - 8
    assert wav[8:12] == b"WAVE"
    assert wav[12:16] == b"fmt "
    assert struct.unpack("<I", wav[16:20])[0] == 16
    assert struct.unpack("<H", wav[20:22])[0] == 1
    assert struct.unpack("<H", wav[22:24])[0] == 1
    assert struct.unpack("<I", wav[24:28])[0] == 24000
    assert struct.unpack("<I", wav[28:32])[0] == 48000
    assert struct.unpack("<H", wav[32:34])[0] == 2
    assert struct.unpack("<H", wav[34:36])[0] == 16
    assert wav[36:40] == b"data"
    assert struct.unpack("<I", wav[40:44])[0] == 48000
    assert wav[44:] == pcm


def test_wav_stereo_rates():
    wav = pcm_to_wav(b"\x01\x02\x03\x04", 44100, 2, 16).data
    assert struct.unpack("<I", wav[28:32])[0] == 44100 * 4
    assert struct.unpack("<H", wav[32:34])[0] == 4


def test_wav_encoding_is_deterministic():
    pcm = bytes(range(256)) * 3
    first = pcm_to_wav(pcm, 24000, 1, 16)
    second = pcm_to_wav(pcm, 24000, 1, 16)
    assert first == second
    assert first.mime_type == "audio/wav"


def test_wav_rejects_partial_byte_samples():
    with pytest.raises(ValueError):
        pcm_to_wav(b"\x00\x00", 24000, 1, 12)


def test_buffer_to_wav_and_load_audio_file(tmp_path):
    raw = struct.pack("<hhhh", 0, 1000, -1000, 32767)
    buf = decode_pcm16(raw, 24000, 1)
    path = buffer_to_wav(buf).write(tmp_path / "voice.wav")

    loaded = load_audio_file(path)

    assert loaded.sample_rate == 24000
    assert loaded.channels == 1
    assert encode_pcm16(loaded) == raw


def test_load_audio_file_missing(tmp_path):
    with pytest.raises(DecodeError):
        load_audio_file(tmp_path / "missing.mp3")
