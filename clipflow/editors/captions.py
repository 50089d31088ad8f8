"""Caption writer — turns a transcript into a subtitle or JSON sidecar."""

import json
from pathlib import Path

from clipflow.models import Transcript, TranscriptSegment


def _format_srt_time(seconds: float) -> str:
    total_ms = int(round(max(seconds, 0.0) * 1000))
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


def _format_vtt_time(seconds: float) -> str:
    return _format_srt_time(seconds).replace(",", ".")


def _write_srt(segments: list[TranscriptSegment], path: Path) -> None:
    lines: list[str] = []
    for i, seg in enumerate(segments, 1):
        lines.append(str(i))
        lines.append(f"{_format_srt_time(seg.start)} --> {_format_srt_time(seg.end)}")
        lines.append(seg.text)
        lines.append("")
    path.write_text("\n".join(lines), encoding="utf-8")


def _write_vtt(segments: list[TranscriptSegment], path: Path) -> None:
    lines: list[str] = ["WEBVTT", ""]
    for seg in segments:
        lines.append(f"{_format_vtt_time(seg.start)} --> {_format_vtt_time(seg.end)}")
        lines.append(seg.text)
        lines.append("")
    path.write_text("\n".join(lines), encoding="utf-8")


def write_captions(transcript: Transcript, output_path: Path) -> Path:
    """Write *transcript* in the format implied by the output suffix.

    ``.vtt`` gives WebVTT, ``.json`` the transcript document, anything else SRT.
    """
    suffix = output_path.suffix.lower()
    if suffix == ".vtt":
        _write_vtt(transcript.segments, output_path)
    elif suffix == ".json":
        output_path.write_text(
            json.dumps(transcript.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
    else:
        _write_srt(transcript.segments, output_path)
    return output_path
