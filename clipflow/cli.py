"""Thin CLI entry point — builds a Manifest and calls the engine."""

import argparse
import sys
from pathlib import Path

from clipflow.engine import RenderJob, process
from clipflow.errors import ClipFlowError
from clipflow.log import setup_logging
from clipflow.manifest import (
    Manifest,
    SilenceConfig,
    TranscriptionConfig,
    load_manifest,
)
from clipflow.models import OperationKind, QualityPreset, TimeRange


def parse_range_arg(value: str) -> TimeRange:
    """Parse ``START:END`` (seconds) into a TimeRange."""
    try:
        start, end = value.split(":")
        return TimeRange(start=float(start), end=float(end))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected START:END in seconds, got {value!r}") from None


def _default_output(video: Path, operation: OperationKind) -> Path:
    if operation is OperationKind.EXTRACT_AUDIO:
        return video.with_suffix(".wav")
    if operation is OperationKind.TRANSCRIBE:
        return video.with_suffix(".srt")
    return video.with_stem(video.stem + "_edited")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipflow",
        description="ClipFlow — plan and render non-destructive edits with FFmpeg.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default INFO)")
    sub = parser.add_subparsers(dest="command")

    render = sub.add_parser("render", help="Render an edit of a media file")
    render.add_argument("video", nargs="?", type=Path, help="Input media file")
    render.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    render.add_argument("--output", "-o", type=Path, help="Output file path")
    render.add_argument(
        "--op",
        choices=[k.value for k in OperationKind],
        default=OperationKind.CUT.value,
        help="Operation to perform",
    )
    render.add_argument("--keep", action="append", type=parse_range_arg, default=[],
                        metavar="START:END", help="Range to keep (trim/cut); repeatable")
    render.add_argument("--remove", action="append", type=parse_range_arg, default=[],
                        metavar="START:END", help="Range to remove (remove); repeatable")
    render.add_argument("--quality", default="medium",
                        help="Quality preset: high, medium or low (others mean medium)")
    render.add_argument("--silence-threshold", type=float, default=-30.0, help="Silence threshold in dB")
    render.add_argument("--silence-min-duration", type=float, default=0.5,
                        help="Minimum silence duration (seconds)")
    render.add_argument("--silence-padding", type=float, default=0.05,
                        help="Speech margin kept around each silence (seconds)")
    render.add_argument("--whisper-model", type=str, default="base", help="Whisper model size")
    render.add_argument("--language", type=str, default=None, help="Transcription language")

    serve = sub.add_parser("serve", help="Launch the HTTP job API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    return parser


def manifest_from_args(args: argparse.Namespace) -> Manifest:
    operation = OperationKind(args.op)
    segments = args.remove if operation is OperationKind.REMOVE else args.keep
    return Manifest(
        input=args.video,
        output=args.output or _default_output(args.video, operation),
        operation=operation,
        quality=QualityPreset.parse(args.quality),
        segments=list(segments),
        silence=SilenceConfig(
            threshold_db=args.silence_threshold,
            min_duration=args.silence_min_duration,
            padding=args.silence_padding,
        ),
        transcription=TranscriptionConfig(
            model=args.whisper_model,
            language=args.language,
        ),
    )


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from clipflow.web import create_app
        app = create_app()
        print(f"ClipFlow job API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    try:
        if args.manifest:
            m = load_manifest(args.manifest)
        elif args.video:
            m = manifest_from_args(args)
        else:
            print("Error: provide either a VIDEO argument or --manifest.", file=sys.stderr)
            sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    def on_progress(stage: str, frac: float) -> None:
        print(f"  [{frac:3.0%}] {stage}")

    job = RenderJob(manifest=m)
    try:
        result = process(job, on_progress=on_progress)
    except ClipFlowError as e:
        print(f"error[{e.kind}]: {e}", file=sys.stderr)
        if e.diagnostics:
            print(e.diagnostics.rstrip()[-2000:], file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        job.cancel()
        print("Cancelled; partial output may remain at", m.output, file=sys.stderr)
        sys.exit(130)

    print()
    print(f"Done! Output: {result.output_path}")
    if result.operation.edits_timeline:
        print(f"  Duration: {result.duration_original:.1f}s -> {result.duration_final:.1f}s")
        print(f"  Segments kept: {result.segments_kept}")
    if result.segments_removed:
        print(f"  Segments removed: {result.segments_removed}")
    if result.caption_path:
        print(f"  Captions: {result.caption_path}")
