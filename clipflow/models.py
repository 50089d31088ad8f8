"""Shared data types used across ClipFlow."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# Tolerance (seconds) for coverage and identity comparisons.
EPSILON = 1e-6


class OperationKind(str, Enum):
    TRIM = "trim"
    CUT = "cut"
    REMOVE = "remove"
    SILENCE = "silence"
    EXPORT = "export"
    EXTRACT_AUDIO = "extract_audio"
    TRANSCRIBE = "transcribe"

    @property
    def edits_timeline(self) -> bool:
        return self in (
            OperationKind.TRIM,
            OperationKind.CUT,
            OperationKind.REMOVE,
            OperationKind.SILENCE,
        )


class QualityPreset(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, value: "str | QualityPreset | None") -> "QualityPreset":
        """Map any unrecognized value to MEDIUM."""
        if isinstance(value, QualityPreset):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.MEDIUM

    @property
    def crf(self) -> int:
        return _QUALITY_SETTINGS[self][0]

    @property
    def x264_preset(self) -> str:
        return _QUALITY_SETTINGS[self][1]


_QUALITY_SETTINGS = {
    QualityPreset.HIGH: (18, "slow"),
    QualityPreset.MEDIUM: (23, "medium"),
    QualityPreset.LOW: (28, "fast"),
}


@dataclass(frozen=True)
class TimeRange:
    """A start/end time pair in seconds."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class SilenceInterval(TimeRange):
    """A span of near-silent audio reported by the analyzer."""


@dataclass(frozen=True)
class KeepSegment(TimeRange):
    """A range the user wants retained, taken from input container ``source``."""

    source: int = 0


@dataclass(frozen=True)
class MediaProbe:
    """Container duration obtained from ffprobe."""

    path: Path
    duration: float


@dataclass(frozen=True)
class EditDecision:
    index: int
    segment: KeepSegment

    @property
    def start(self) -> float:
        return self.segment.start

    @property
    def end(self) -> float:
        return self.segment.end


@dataclass(frozen=True)
class EditDecisionList:
    """Sorted, non-overlapping keep ranges, indexed 0..n-1.

    Only ``clipflow.editors.edl`` builds these.
    """

    decisions: tuple[EditDecision, ...]
    duration: float

    def __len__(self) -> int:
        return len(self.decisions)

    def __iter__(self):
        return iter(self.decisions)

    def __getitem__(self, i: int) -> EditDecision:
        return self.decisions[i]

    @property
    def kept_duration(self) -> float:
        return sum(d.segment.duration for d in self.decisions)

    def is_identity(self) -> bool:
        """True when the list is the single range [0, duration]."""
        if len(self.decisions) != 1:
            return False
        seg = self.decisions[0].segment
        return (
            seg.source == 0
            and abs(seg.start) <= EPSILON
            and abs(seg.end - self.duration) <= EPSILON
        )


@dataclass(frozen=True)
class CopyPlan:
    """Stream-copy remux; nothing is re-encoded."""


@dataclass(frozen=True)
class ConcatSegment:
    video_label: str
    audio_label: str
    range: TimeRange


def format_seconds(value: float) -> str:
    """Fixed-point seconds for filter options; ffmpeg rejects exponent notation."""
    text = f"{value:.6f}".rstrip("0")
    return text + "0" if text.endswith(".") else text


@dataclass(frozen=True)
class ConcatPlan:
    """Trim every kept range from input 0 and concatenate them in order."""

    segments: tuple[ConcatSegment, ...]

    def filter_complex(self) -> str:
        n = len(self.segments)
        filter_parts: list[str] = []
        stream_labels: list[str] = []

        for seg in self.segments:
            start, end = format_seconds(seg.range.start), format_seconds(seg.range.end)
            filter_parts.append(
                f"[0:v]trim=start={start}:end={end},setpts=PTS-STARTPTS[{seg.video_label}]"
            )
            filter_parts.append(
                f"[0:a]atrim=start={start}:end={end},asetpts=PTS-STARTPTS[{seg.audio_label}]"
            )
            stream_labels.append(f"[{seg.video_label}][{seg.audio_label}]")

        assert len(stream_labels) == n, "concat input count does not match trim labels"

        concat_input = "".join(stream_labels)
        filter_parts.append(f"{concat_input}concat=n={n}:v=1:a=1[outv][outa]")
        return ";".join(filter_parts)


FilterPlan = CopyPlan | ConcatPlan


@dataclass(frozen=True)
class TranscriptSegment:
    id: int
    start: float
    end: float
    text: str = ""


@dataclass
class Transcript:
    """Deserialized transcription engine output."""

    text: str = ""
    language: str = ""
    duration: float = 0.0
    segments: list[TranscriptSegment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "language": self.language,
            "duration": self.duration,
            "segments": [
                {"id": s.id, "start": s.start, "end": s.end, "text": s.text}
                for s in self.segments
            ],
        }
