"""
Voicemint - AI voice dubbing for short videos.

A small toolkit for:
- Generating a voice-over script from a frame of a video
- Translating the script and synthesizing dubbed speech
- Decoding raw PCM speech and wrapping it into WAV files
- Playing the dubbed audio in sync with the muted video
- Standalone text-to-speech and speech-to-text
"""

__version__ = "0.1.0"
