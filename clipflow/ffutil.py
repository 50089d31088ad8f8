"""FFmpeg/ffprobe subprocess helpers.

Tools are always exec'd with an argument vector; no shell is involved.
"""

import logging
import math
import os
import shutil
import subprocess
import threading
from pathlib import Path

from clipflow.errors import (
    FFmpegNotFoundError,
    JobCancelledError,
    LaunchError,
    ProbeError,
    RenderError,
)
from clipflow.models import ConcatPlan, CopyPlan, FilterPlan, MediaProbe, QualityPreset
from clipflow.pathsafe import format_command, sanitize

logger = logging.getLogger(__name__)

FFMPEG = os.environ.get("CLIPFLOW_FFMPEG", "ffmpeg")
FFPROBE = os.environ.get("CLIPFLOW_FFPROBE", "ffprobe")


class CancelToken:
    """Terminates whatever tool process a job currently has running."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._proc: subprocess.Popen | None = None
        self.cancelled = False

    def cancel(self) -> None:
        with self._lock:
            self.cancelled = True
            if self._proc is not None and self._proc.poll() is None:
                logger.info("terminating pid %s", self._proc.pid)
                self._proc.terminate()

    def attach(self, proc: subprocess.Popen) -> None:
        with self._lock:
            self._proc = proc
            if self.cancelled:
                proc.terminate()

    def detach(self) -> None:
        with self._lock:
            self._proc = None

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise JobCancelledError("Job was cancelled")


def check_ffmpeg() -> None:
    """Raise if the transcoder or the probe tool is not on PATH.

    A missing ffprobe is a ProbeError; a missing ffmpeg is FFmpegNotFoundError.
    """
    if shutil.which(FFPROBE) is None:
        raise ProbeError(f"{FFPROBE} not found on PATH")
    if shutil.which(FFMPEG) is None:
        raise FFmpegNotFoundError(f"{FFMPEG} not found on PATH")


def run_tool(
    cmd: list[str], cancel: CancelToken | None = None
) -> subprocess.CompletedProcess:
    """Run *cmd* to completion and capture its output as text.

    Raises LaunchError if the executable cannot be started. The exit status
    is returned, not checked.
    """
    logger.debug("exec: %s", format_command(cmd))
    if cancel is not None:
        cancel.raise_if_cancelled()
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except OSError as e:
        raise LaunchError(f"Could not start {cmd[0]}: {e}", diagnostics=str(e)) from e

    if cancel is not None:
        cancel.attach(proc)
    try:
        stdout, stderr = proc.communicate()
    except BaseException:
        if proc.poll() is None:
            proc.terminate()
            proc.wait()
        raise
    finally:
        if cancel is not None:
            cancel.detach()

    return subprocess.CompletedProcess(cmd, proc.returncode, stdout, stderr)


def probe(input_path: Path, cancel: CancelToken | None = None) -> MediaProbe:
    """Ask ffprobe for the container duration in seconds."""
    cmd = [
        FFPROBE,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        sanitize(input_path).raw,
    ]
    try:
        result = run_tool(cmd, cancel)
    except LaunchError as e:
        raise ProbeError(str(e), diagnostics=e.diagnostics) from e

    if cancel is not None:
        cancel.raise_if_cancelled()
    if result.returncode != 0:
        raise ProbeError(
            f"ffprobe failed (rc={result.returncode}) on {input_path}",
            diagnostics=result.stderr,
        )

    text = (result.stdout or "").strip()
    try:
        duration = float(text)
    except ValueError:
        raise ProbeError(
            f"ffprobe printed no usable duration for {input_path}: {text!r}",
            diagnostics=result.stderr,
        ) from None
    if not math.isfinite(duration) or duration < 0:
        raise ProbeError(
            f"ffprobe reported invalid duration {duration} for {input_path}",
            diagnostics=result.stderr,
        )

    logger.info("probed %s: %.3fs", input_path, duration)
    return MediaProbe(path=Path(input_path), duration=duration)


def run_silencedetect(
    input_path: Path,
    threshold_db: float,
    min_duration: float,
    cancel: CancelToken | None = None,
) -> str:
    """Run FFmpeg silencedetect and return its buffered stderr."""
    cmd = [
        FFMPEG,
        "-hide_banner", "-nostats",
        "-i", sanitize(input_path).raw,
        "-af", f"silencedetect=noise={threshold_db}dB:d={min_duration}",
        "-f", "null", "-",
    ]
    result = run_tool(cmd, cancel)
    _check_exit(result, "ffmpeg silencedetect", cancel)
    return result.stderr or ""


def encode_args(quality: QualityPreset) -> list[str]:
    """Codec flags for a re-encoding render at the given quality."""
    return [
        "-c:v", "libx264",
        "-crf", str(quality.crf),
        "-preset", quality.x264_preset,
        "-c:a", "aac",
        "-movflags", "+faststart",
    ]


def render_command(
    input_path: Path,
    output_path: Path,
    plan: FilterPlan,
    quality: QualityPreset = QualityPreset.MEDIUM,
) -> list[str]:
    """Build the ffmpeg argument vector that realizes *plan*."""
    cmd = [FFMPEG, "-y", "-i", sanitize(input_path).raw]

    if isinstance(plan, CopyPlan):
        cmd += ["-c", "copy"]
    elif isinstance(plan, ConcatPlan):
        cmd += [
            "-filter_complex", plan.filter_complex(),
            "-map", "[outv]",
            "-map", "[outa]",
        ]
        cmd += encode_args(quality)
    else:
        raise TypeError(f"unknown filter plan {plan!r}")

    cmd.append(sanitize(output_path).raw)
    return cmd


def export_command(
    input_path: Path, output_path: Path, quality: QualityPreset
) -> list[str]:
    """Whole-file re-encode at *quality*."""
    return [
        FFMPEG, "-y",
        "-i", sanitize(input_path).raw,
        *encode_args(quality),
        sanitize(output_path).raw,
    ]


def extract_audio_command(
    input_path: Path,
    output_path: Path,
    sample_rate: int | None = None,
    mono: bool = False,
) -> list[str]:
    """Drop video and write PCM s16le audio."""
    cmd = [
        FFMPEG, "-y",
        "-i", sanitize(input_path).raw,
        "-vn",
        "-acodec", "pcm_s16le",
    ]
    if sample_rate is not None:
        cmd += ["-ar", str(sample_rate)]
    if mono:
        cmd += ["-ac", "1"]
    cmd.append(sanitize(output_path).raw)
    return cmd


def run_transcoder(cmd: list[str], cancel: CancelToken | None = None) -> None:
    """Run a transcoder command, raising RenderError on a non-zero exit."""
    result = run_tool(cmd, cancel)
    _check_exit(result, "ffmpeg", cancel)


def extract_audio(
    input_path: Path,
    output_path: Path,
    sample_rate: int = 16000,
    cancel: CancelToken | None = None,
) -> Path:
    """Extract audio as mono WAV at the given sample rate (for Whisper)."""
    cmd = extract_audio_command(input_path, output_path, sample_rate=sample_rate, mono=True)
    run_transcoder(cmd, cancel)
    return output_path


def _check_exit(
    result: subprocess.CompletedProcess, tool: str, cancel: CancelToken | None
) -> None:
    if cancel is not None:
        cancel.raise_if_cancelled()
    if result.returncode != 0:
        raise RenderError(
            f"{tool} failed (rc={result.returncode})",
            returncode=result.returncode,
            diagnostics=result.stderr or "",
        )
