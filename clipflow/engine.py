"""Orchestrator — runs one render job described by a Manifest.

Stages run strictly in order: probe, detect (silence mode only), plan,
compile, invoke. Every stage raises a typed ClipFlowError; nothing is
retried here.
"""

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from clipflow import ffutil
from clipflow.analyzers.silence import analyze_silence
from clipflow.analyzers.transcribe import transcribe
from clipflow.editors import edl as edl_builder
from clipflow.editors.captions import write_captions
from clipflow.editors.filtergraph import compile_plan
from clipflow.manifest import Manifest
from clipflow.models import (
    EditDecisionList,
    FilterPlan,
    MediaProbe,
    OperationKind,
    SilenceInterval,
    Transcript,
)
from clipflow.scratch import ScratchArena

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], None]


@dataclass
class RenderJob:
    """One user-initiated render and the artifacts its stages produce."""

    manifest: Manifest
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    cancel_token: ffutil.CancelToken = field(default_factory=ffutil.CancelToken)
    probe: MediaProbe | None = None
    silences: list[SilenceInterval] | None = None
    edl: EditDecisionList | None = None
    plan: FilterPlan | None = None
    command: list[str] | None = None

    def cancel(self) -> None:
        """Terminate the running tool. Partial output is left on disk."""
        self.cancel_token.cancel()


@dataclass
class RenderResult:
    output_path: Path
    operation: OperationKind
    duration_original: float = 0.0
    duration_final: float = 0.0
    segments_kept: int = 0
    segments_removed: int = 0
    caption_path: Path | None = None
    transcript: Transcript | None = None


def build_edl(job: RenderJob) -> EditDecisionList:
    """Turn the manifest's edit intent into an edit decision list."""
    m = job.manifest
    duration = job.probe.duration

    if m.operation is OperationKind.SILENCE:
        return edl_builder.from_silence(job.silences or [], duration)
    if m.operation is OperationKind.REMOVE:
        return edl_builder.from_remove_ranges(m.segments, duration)
    return edl_builder.from_keep_ranges(m.segments, duration)


def process(
    job: RenderJob | Manifest,
    on_progress: ProgressCallback | None = None,
    arena: ScratchArena | None = None,
) -> RenderResult:
    """Execute a render job.

    Args:
        job: The job, or a bare manifest to wrap in a new job.
        on_progress: Optional callback(stage_name, fraction_complete).
        arena: Scratch space for intermediate audio.
    """
    if isinstance(job, Manifest):
        job = RenderJob(manifest=job)
    m = job.manifest
    cancel = job.cancel_token

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    logger.info("job %s: %s %s -> %s", job.job_id, m.operation.value, m.input, m.output)

    ffutil.check_ffmpeg()

    _progress("Probing media", 0.0)
    job.probe = ffutil.probe(m.input, cancel)
    result = RenderResult(
        output_path=m.output,
        operation=m.operation,
        duration_original=job.probe.duration,
        duration_final=job.probe.duration,
    )

    if m.operation is OperationKind.TRANSCRIBE:
        _progress("Transcribing audio", 0.1)
        transcript = transcribe(m.input, m.transcription, job.job_id, arena=arena, cancel=cancel)
        if not transcript.duration:
            transcript.duration = job.probe.duration
        _progress("Writing captions", 0.9)
        result.caption_path = write_captions(transcript, m.output)
        result.transcript = transcript
        _progress("Done", 1.0)
        return result

    if m.operation.edits_timeline:
        if m.operation is OperationKind.SILENCE:
            _progress("Scanning audio for silence", 0.05)
            job.silences = analyze_silence(m.input, m.silence, cancel)

        _progress("Planning edits", 0.25)
        job.edl = build_edl(job)
        job.plan = compile_plan(job.edl)
        job.command = ffutil.render_command(m.input, m.output, job.plan, m.quality)

        result.segments_kept = len(job.edl)
        result.segments_removed = _count_removed(job)
        result.duration_final = job.edl.kept_duration
    elif m.operation is OperationKind.EXPORT:
        job.command = ffutil.export_command(m.input, m.output, m.quality)
    elif m.operation is OperationKind.EXTRACT_AUDIO:
        job.command = ffutil.extract_audio_command(m.input, m.output)
    else:
        raise ValueError(f"Unhandled operation {m.operation!r}")

    _progress("Rendering", 0.3)
    ffutil.run_transcoder(job.command, cancel)
    logger.info("job %s: wrote %s", job.job_id, m.output)

    _progress("Done", 1.0)
    return result


def _count_removed(job: RenderJob) -> int:
    if job.manifest.operation is OperationKind.SILENCE:
        return len(job.silences or [])
    if job.manifest.operation is OperationKind.REMOVE:
        return len(job.manifest.segments)
    return 0
