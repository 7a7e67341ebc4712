"""
ffplay-backed video element and audio output for desktop playback.
"""

import asyncio
import contextlib
import logging
import subprocess
import tempfile
from collections.abc import Callable
from pathlib import Path

from tqdm import tqdm

from .audio import buffer_to_wav
from .errors import MediaError
from .io_ffmpeg import get_video_duration_ms
from .models import DecodedAudioBuffer
from .player import PlayerState, SynchronizedPlayer

logger = logging.getLogger("voicemint")

TICK_SECONDS = 0.25


def _spawn(cmd: list[str]) -> subprocess.Popen:
    logger.debug("Spawning: %s", " ".join(cmd))
    try:
        return subprocess.Popen(
            cmd, stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
        )
    except FileNotFoundError as e:
        raise MediaError("ffplay is not installed or not on PATH") from e


def _reap(proc: subprocess.Popen) -> None:
    try:
        proc.wait(timeout=2.0)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()


def _terminate(proc: subprocess.Popen | None) -> None:
    """Signal ffplay to exit; waiting for it happens off the event loop."""
    if proc is None or proc.poll() is not None:
        return
    proc.terminate()
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        _reap(proc)
        return
    loop.run_in_executor(None, _reap, proc)


class FfplayVideo:
    """A muted video window; emits "timeupdate" ticks and "ended"."""

    def __init__(self, path: str, duration: float, tick: float = TICK_SECONDS) -> None:
        self.path = path
        self._duration = duration
        self._tick = tick
        self._position = 0.0
        self._started_at: float | None = None
        self._proc: subprocess.Popen | None = None
        self._ticker: asyncio.Task | None = None
        self._listeners: dict[str, list[Callable[[], None]]] = {"timeupdate": [], "ended": []}

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def current_time(self) -> float:
        if self._started_at is None:
            return self._position
        loop = asyncio.get_running_loop()
        return min(self._position + loop.time() - self._started_at, self._duration)

    @current_time.setter
    def current_time(self, value: float) -> None:
        playing = self._proc is not None
        if playing:
            self.pause()
        self._position = max(0.0, float(value))
        if playing:
            self.play()

    def add_listener(self, event: str, callback: Callable[[], None]) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def remove_listener(self, event: str, callback: Callable[[], None]) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.get(event, []).remove(callback)

    def play(self) -> None:
        if self._proc is not None:
            return
        loop = asyncio.get_running_loop()
        self._proc = _spawn(
            [
                "ffplay",
                "-an",
                "-autoexit",
                "-loglevel",
                "error",
                "-ss",
                f"{self._position:.3f}",
                self.path,
            ]
        )
        self._started_at = loop.time()
        self._ticker = loop.create_task(self._tick_loop())

    def pause(self) -> None:
        if self._proc is None:
            return
        self._position = self.current_time
        self._started_at = None
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        proc, self._proc = self._proc, None
        _terminate(proc)

    def _emit(self, event: str) -> None:
        for cb in list(self._listeners.get(event, [])):
            cb()

    async def _tick_loop(self) -> None:
        while self._proc is not None:
            await asyncio.sleep(self._tick)
            proc = self._proc
            if proc is None:
                return
            if proc.poll() is not None:
                self._position = self._duration
                self._started_at = None
                self._proc = None
                self._ticker = None
                self._emit("timeupdate")
                self._emit("ended")
                return
            self._emit("timeupdate")


class FfplaySource:
    """A single play-through of a WAV file via a headless ffplay process."""

    def __init__(self, wav_path: Path, poll: float = 0.1) -> None:
        self.wav_path = wav_path
        self.on_ended: Callable[[], None] | None = None
        self._poll = poll
        self._proc: subprocess.Popen | None = None
        self._watcher: asyncio.Task | None = None

    def start(self) -> None:
        if self._proc is not None:
            raise RuntimeError("Audio source can only be started once")
        self._proc = _spawn(
            ["ffplay", "-nodisp", "-autoexit", "-loglevel", "error", str(self.wav_path)]
        )
        self._watcher = asyncio.get_running_loop().create_task(self._watch())

    def stop(self) -> None:
        if self._watcher is not None:
            self._watcher.cancel()
            self._watcher = None
        _terminate(self._proc)

    def disconnect(self) -> None:
        self.on_ended = None
        self.wav_path.unlink(missing_ok=True)

    async def _watch(self) -> None:
        proc = self._proc
        while proc is not None and proc.poll() is None:
            await asyncio.sleep(self._poll)
        self._watcher = None
        if self.on_ended is not None:
            self.on_ended()


class FfplayOutput:
    """Audio output that plays buffers through temporary WAV files."""

    def __init__(self, tmp_dir: str | None = None) -> None:
        self.tmp_dir = tmp_dir

    def create_source(self, buffer: DecodedAudioBuffer) -> FfplaySource:
        wav = buffer_to_wav(buffer)
        with tempfile.NamedTemporaryFile(
            prefix="voicemint_", suffix=".wav", dir=self.tmp_dir, delete=False
        ) as f:
            f.write(wav.data)
        return FfplaySource(Path(f.name))


async def play_synchronized(video_path: str, buffer: DecodedAudioBuffer) -> None:
    """Play the dubbed audio against the muted video until either one finishes."""
    duration = get_video_duration_ms(video_path) / 1000.0
    video = FfplayVideo(video_path, duration)
    finished = asyncio.Event()

    with SynchronizedPlayer(video, buffer, FfplayOutput()) as player, tqdm(
        total=100, desc="Playing", unit="%", bar_format="{l_bar}{bar}| {elapsed}"
    ) as bar:

        def _progress(fraction: float) -> None:
            if player.is_playing:
                bar.n = round(fraction * 100)
                bar.refresh()

        def _state(state: PlayerState) -> None:
            if state is PlayerState.IDLE:
                finished.set()

        player.on_progress(_progress)
        player.on_state_change(_state)
        player.play()
        await finished.wait()
