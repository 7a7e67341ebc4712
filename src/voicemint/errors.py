"""
Error types shared across the Voicemint flows.
"""


class VoicemintError(Exception):
    """Base class for errors that are reported to the user."""


class DecodeError(VoicemintError):
    """Malformed or truncated base64/PCM/audio input."""


class MediaError(VoicemintError):
    """A video or audio source failed to load or play."""


class ServiceError(VoicemintError):
    """An external AI service call failed or returned nothing usable."""


class ValidationError(VoicemintError):
    """Required user input is missing or out of range."""


class AuthError(VoicemintError):
    """Login or signup was rejected."""


class ConfigError(VoicemintError):
    """The environment is missing something a flow needs (API keys, providers)."""
