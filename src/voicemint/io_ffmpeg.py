"""
Video utilities using ffmpeg/ffprobe.
"""

import logging
import subprocess
from pathlib import Path

from .errors import MediaError

logger = logging.getLogger("voicemint")


def run(cmd: list[str], *, check: bool = True) -> str:
    """Run a command and return its combined stdout/stderr as text."""
    logger.debug("Running: %s", " ".join(map(str, cmd)))
    try:
        proc = subprocess.run(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, check=False
        )
    except FileNotFoundError as e:
        raise MediaError(f"{cmd[0]} is not installed or not on PATH") from e
    if proc.returncode != 0 and check:
        logger.error("Command failed with code %d: %s", proc.returncode, proc.stdout)
        msg = f"Command failed with code {proc.returncode}"
        raise MediaError(msg)
    return proc.stdout


def run_bytes(cmd: list[str]) -> bytes:
    """Run a command and return raw stdout (stderr is logged on failure)."""
    logger.debug("Running: %s", " ".join(map(str, cmd)))
    try:
        proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=False)
    except FileNotFoundError as e:
        raise MediaError(f"{cmd[0]} is not installed or not on PATH") from e
    if proc.returncode != 0:
        err = proc.stderr.decode("utf-8", errors="replace")
        logger.error("Command failed with code %d: %s", proc.returncode, err)
        raise MediaError(f"Command failed with code {proc.returncode}")
    return proc.stdout


def ensure_dir(path: str) -> None:
    """Ensure directory exists."""
    if path:
        Path(path).mkdir(parents=True, exist_ok=True)


def get_video_duration_ms(input_video: str) -> int:
    """Get video duration in milliseconds (0 when unknown)."""
    out = run(
        [
            "ffprobe",
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            input_video,
        ]
    )
    try:
        seconds = float(out.strip())
    except ValueError:
        seconds = 0.0
    return int(seconds * 1000)


def extract_frame_jpeg(input_video: str, seconds: float) -> bytes:
    """Grab a single frame at the given timestamp as JPEG bytes."""
    cmd = [
        "ffmpeg",
        "-v",
        "error",
        "-ss",
        f"{max(seconds, 0.0):.3f}",
        "-i",
        input_video,
        "-frames:v",
        "1",
        "-f",
        "image2pipe",
        "-vcodec",
        "mjpeg",
        "-",
    ]
    data = run_bytes(cmd)
    if not data:
        raise MediaError(f"No frame could be read at {seconds:.2f}s from {input_video}")
    return data


def mux_audio_to_video(input_video: str, audio_wav: str, output_video: str) -> None:
    """Replace the video's audio with the dubbed track (copy video stream)."""
    ensure_dir(str(Path(output_video).parent))
    cmd = [
        "ffmpeg",
        "-y",
        "-i",
        input_video,
        "-i",
        audio_wav,
        "-c:v",
        "copy",
        "-map",
        "0:v:0",
        "-map",
        "1:a:0",
        output_video,
    ]
    run(cmd)
