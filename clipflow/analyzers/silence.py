"""Silence detection analyzer."""

import logging
import re
from pathlib import Path

from clipflow import ffutil
from clipflow.errors import DetectionError
from clipflow.manifest import SilenceConfig
from clipflow.models import EPSILON, SilenceInterval

logger = logging.getLogger(__name__)

_NUMBER = r"(-?\d+(?:\.\d*)?(?:[eE][-+]?\d+)?)"
_START_RE = re.compile(r"silence_start:\s*" + _NUMBER)
_END_RE = re.compile(r"silence_end:\s*" + _NUMBER)
_DURATION_RE = re.compile(r"silence_duration:\s*" + _NUMBER)

# Allowed disagreement between reported silence_duration and end - start.
_DURATION_SLACK = 1e-3


def detect(stderr: str, min_silence_duration: float = 0.0) -> list[SilenceInterval]:
    """Pair silence_start/silence_end events into intervals.

    Single forward pass holding at most one open start. A second start
    before an end, an end with no start, an unterminated start, or an
    event line without a number raises DetectionError for the whole input.
    Zero-length intervals and those shorter than *min_silence_duration*
    are dropped.
    """
    intervals: list[SilenceInterval] = []
    pending: float | None = None

    for lineno, line in enumerate(stderr.splitlines(), 1):
        if "silence_start" in line:
            m = _START_RE.search(line)
            if m is None:
                raise DetectionError(f"line {lineno}: unparsable silence_start", diagnostics=line)
            if pending is not None:
                raise DetectionError(
                    f"line {lineno}: silence_start while silence at {pending} is still open",
                    diagnostics=line,
                )
            # ffmpeg reports slightly negative starts for silence at t=0
            pending = max(float(m.group(1)), 0.0)

        elif "silence_end" in line:
            m = _END_RE.search(line)
            if m is None:
                raise DetectionError(f"line {lineno}: unparsable silence_end", diagnostics=line)
            if pending is None:
                raise DetectionError(
                    f"line {lineno}: silence_end without a preceding silence_start",
                    diagnostics=line,
                )
            end = float(m.group(1))
            if end < pending:
                raise DetectionError(
                    f"line {lineno}: silence_end {end} precedes silence_start {pending}",
                    diagnostics=line,
                )
            interval = SilenceInterval(start=pending, end=end)
            pending = None

            reported = _DURATION_RE.search(line)
            if reported and abs(float(reported.group(1)) - interval.duration) > _DURATION_SLACK:
                logger.warning(
                    "silence_duration %s disagrees with %s-%s",
                    reported.group(1), interval.start, interval.end,
                )

            if (
                interval.duration <= EPSILON
                or interval.duration + EPSILON < min_silence_duration
            ):
                logger.debug("dropping short silence %s-%s", interval.start, interval.end)
                continue
            intervals.append(interval)

    if pending is not None:
        raise DetectionError(f"silence_start at {pending} was never closed")

    return intervals


def pad_intervals(
    intervals: list[SilenceInterval], padding: float
) -> list[SilenceInterval]:
    """Shrink each silence by *padding* on both sides, dropping any that vanish."""
    if padding <= 0:
        return list(intervals)

    padded: list[SilenceInterval] = []
    for sr in intervals:
        start = sr.start + padding
        end = sr.end - padding
        if end - start > EPSILON:
            padded.append(SilenceInterval(start=start, end=end))
    return padded


def analyze_silence(
    input_path: Path,
    config: SilenceConfig,
    cancel: ffutil.CancelToken | None = None,
) -> list[SilenceInterval]:
    """Run the analyzer over *input_path* and return padded silence intervals."""
    stderr = ffutil.run_silencedetect(
        input_path,
        threshold_db=config.threshold_db,
        min_duration=config.min_duration,
        cancel=cancel,
    )
    intervals = detect(stderr, config.min_duration)
    logger.info("detected %d silent spans in %s", len(intervals), input_path)
    return pad_intervals(intervals, config.padding)
