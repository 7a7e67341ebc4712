"""
Synchronized playback of a muted video and a decoded audio buffer.

The player owns at most one live audio-source handle. Video and audio are
started back to back (best effort, no sync barrier); the progress fraction
follows the video clock and never drives audio timing.
"""

import logging
import math
from collections.abc import Callable
from enum import Enum
from typing import Protocol

from .models import DecodedAudioBuffer

logger = logging.getLogger("voicemint")


class VideoElement(Protocol):
    """The parts of a media element the player drives."""

    current_time: float

    @property
    def duration(self) -> float: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def add_listener(self, event: str, callback: Callable[[], None]) -> None: ...

    def remove_listener(self, event: str, callback: Callable[[], None]) -> None: ...


class AudioSourceHandle(Protocol):
    """One play-through of one buffer. Must be stopped and disconnected."""

    on_ended: Callable[[], None] | None

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def disconnect(self) -> None: ...


class AudioOutput(Protocol):
    """Audio-output context that hands out source handles."""

    def create_source(self, buffer: DecodedAudioBuffer) -> AudioSourceHandle: ...


class PlayerState(Enum):
    IDLE = "idle"
    PLAYING = "playing"


class SynchronizedPlayer:
    """Plays one video element and one audio buffer together."""

    def __init__(
        self,
        video: VideoElement,
        buffer: DecodedAudioBuffer,
        output: AudioOutput,
    ) -> None:
        self._video = video
        self._buffer = buffer
        self._output = output
        self._source: AudioSourceHandle | None = None
        self._state = PlayerState.IDLE
        self._progress = 0.0
        self._closed = False
        self._progress_listeners: list[Callable[[float], None]] = []
        self._state_listeners: list[Callable[[PlayerState], None]] = []
        self._attach()

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state is PlayerState.PLAYING

    @property
    def progress(self) -> float:
        """Video position as a fraction 0..1."""
        return self._progress

    @property
    def active_source(self) -> AudioSourceHandle | None:
        return self._source

    def on_progress(self, callback: Callable[[float], None]) -> None:
        self._progress_listeners.append(callback)

    def on_state_change(self, callback: Callable[[PlayerState], None]) -> None:
        self._state_listeners.append(callback)

    def play(self) -> None:
        """Start video and audio from the beginning, replacing any live playback."""
        if self._closed:
            raise RuntimeError("Player is closed")
        self.stop()

        source = self._output.create_source(self._buffer)
        source.on_ended = lambda: self._on_source_ended(source)
        self._source = source

        self._video.current_time = 0.0
        try:
            self._video.play()
            source.start()
        except Exception:
            logger.error("Playback failed to start; tearing down")
            self.stop()
            raise
        self._set_state(PlayerState.PLAYING)
        logger.debug("Playback started (%.2fs of audio)", self._buffer.duration)

    def stop(self) -> None:
        """Stop both streams and rewind. No-op when already idle."""
        if self._state is PlayerState.IDLE and self._source is None:
            return
        source, self._source = self._source, None
        if source is not None:
            source.on_ended = None
            try:
                source.stop()
            finally:
                source.disconnect()
        self._video.pause()
        self._video.current_time = 0.0
        self._set_progress(0.0)
        self._set_state(PlayerState.IDLE)
        logger.debug("Playback stopped")

    def toggle(self) -> None:
        if self.is_playing:
            self.stop()
        else:
            self.play()

    def replace(
        self,
        video: VideoElement | None = None,
        buffer: DecodedAudioBuffer | None = None,
    ) -> None:
        """Swap the video or the buffer; any change starts a fresh idle session."""
        video_changed = video is not None and video is not self._video
        buffer_changed = buffer is not None and buffer is not self._buffer
        if not (video_changed or buffer_changed):
            return
        self.stop()
        self._detach()
        if video_changed:
            self._video = video
        if buffer_changed:
            self._buffer = buffer
        self._attach()
        self._set_progress(0.0)

    def close(self) -> None:
        """Release the live handle and stop listening to the video."""
        if self._closed:
            return
        self.stop()
        self._detach()
        self._closed = True

    def __enter__(self) -> "SynchronizedPlayer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _attach(self) -> None:
        self._video.add_listener("timeupdate", self._on_time_update)
        self._video.add_listener("ended", self._on_video_ended)

    def _detach(self) -> None:
        self._video.remove_listener("timeupdate", self._on_time_update)
        self._video.remove_listener("ended", self._on_video_ended)

    def _on_time_update(self) -> None:
        duration = self._video.duration
        if not duration or not math.isfinite(duration) or duration <= 0:
            self._set_progress(0.0)
            return
        fraction = self._video.current_time / duration
        self._set_progress(min(max(fraction, 0.0), 1.0))

    def _on_video_ended(self) -> None:
        self.stop()

    def _on_source_ended(self, source: AudioSourceHandle) -> None:
        # Ignore completions from handles that were already replaced.
        if source is self._source and self._state is PlayerState.PLAYING:
            self.stop()

    def _set_progress(self, value: float) -> None:
        self._progress = value
        for cb in list(self._progress_listeners):
            cb(value)

    def _set_state(self, state: PlayerState) -> None:
        if state is self._state:
            return
        self._state = state
        for cb in list(self._state_listeners):
            cb(state)
