"""Speech-to-text analyzer using OpenAI Whisper."""

import json
import logging
import numbers
from pathlib import Path

from clipflow import ffutil
from clipflow.errors import TranscriptionError
from clipflow.manifest import TranscriptionConfig
from clipflow.models import Transcript, TranscriptSegment
from clipflow.scratch import ScratchArena

logger = logging.getLogger(__name__)


def _number(value, field_name: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TranscriptionError(f"Transcript field {field_name!r} is not a number: {value!r}")
    return float(value)


def _string(value, field_name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TranscriptionError(f"Transcript field {field_name!r} is not a string: {value!r}")
    return value


def parse_transcript(data) -> Transcript:
    """Deserialize the engine's transcript document.

    Missing text/language default to "", missing numbers to 0 and a missing
    segment id to the segment's position. Wrongly typed fields raise
    TranscriptionError.
    """
    if not isinstance(data, dict):
        raise TranscriptionError(f"Transcript must be an object, got {type(data).__name__}")

    raw_segments = data.get("segments") or []
    if not isinstance(raw_segments, list):
        raise TranscriptionError("Transcript 'segments' must be a list")

    segments: list[TranscriptSegment] = []
    for i, seg in enumerate(raw_segments):
        if not isinstance(seg, dict):
            raise TranscriptionError(f"Transcript segment {i} is not an object")
        seg_id = seg.get("id", i)
        if isinstance(seg_id, bool) or not isinstance(seg_id, int):
            raise TranscriptionError(f"Transcript segment {i} has non-integer id {seg_id!r}")
        segments.append(
            TranscriptSegment(
                id=seg_id,
                start=_number(seg.get("start"), "start"),
                end=_number(seg.get("end"), "end"),
                text=_string(seg.get("text"), "text").strip(),
            )
        )

    return Transcript(
        text=_string(data.get("text"), "text").strip(),
        language=_string(data.get("language"), "language"),
        duration=_number(data.get("duration"), "duration"),
        segments=segments,
    )


def load_transcript(text: str) -> Transcript:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise TranscriptionError(f"Transcript is not valid JSON: {e}", diagnostics=text[-500:]) from e
    return parse_transcript(data)


def run_whisper(audio_path: Path, config: TranscriptionConfig) -> dict:
    """Run Whisper over a mono 16 kHz WAV and return its raw result."""
    try:
        import whisper
    except ImportError as e:
        raise TranscriptionError("openai-whisper is not installed") from e

    try:
        model = whisper.load_model(config.model)
        return model.transcribe(str(audio_path), language=config.language)
    except Exception as e:
        raise TranscriptionError(f"Whisper failed: {e}", diagnostics=repr(e)) from e


def transcribe(
    input_path: Path,
    config: TranscriptionConfig,
    job_id: str,
    arena: ScratchArena | None = None,
    cancel: ffutil.CancelToken | None = None,
) -> Transcript:
    """Extract audio into this job's scratch slot, run Whisper, parse the result."""
    arena = arena or ScratchArena()

    with arena.slot(job_id) as slot:
        wav_path = slot / f"{job_id}.wav"
        ffutil.extract_audio(input_path, wav_path, sample_rate=config.sample_rate, cancel=cancel)
        if cancel is not None:
            cancel.raise_if_cancelled()
        logger.info("transcribing %s with whisper model %s", input_path, config.model)
        result = run_whisper(wav_path, config)

    return parse_transcript(result)
