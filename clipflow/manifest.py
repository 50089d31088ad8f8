"""JSON manifest schema — the contract between CLI/API and engine."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from clipflow.models import OperationKind, QualityPreset, TimeRange


@dataclass
class SilenceConfig:
    """Configuration for silence detection and removal."""

    min_duration: float = 0.5
    threshold_db: float = -30.0
    padding: float = 0.05


@dataclass
class TranscriptionConfig:
    """Configuration for transcription via Whisper."""

    model: str = "base"
    language: str | None = None
    sample_rate: int = 16000


@dataclass
class Manifest:
    """Top-level render job description."""

    input: Path
    output: Path
    operation: OperationKind
    version: str = "1"
    quality: QualityPreset = QualityPreset.MEDIUM
    # Keep ranges for trim/cut, remove ranges for remove.
    segments: list[TimeRange] = field(default_factory=list)
    silence: SilenceConfig = field(default_factory=SilenceConfig)
    transcription: TranscriptionConfig = field(default_factory=TranscriptionConfig)

    def __post_init__(self) -> None:
        self.input = Path(self.input)
        self.output = Path(self.output)
        self.operation = parse_operation(self.operation)
        self.quality = QualityPreset.parse(self.quality)
        if self.operation is OperationKind.TRIM and len(self.segments) != 1:
            raise ValueError(
                f"trim takes exactly one range, got {len(self.segments)}"
            )


def parse_operation(value) -> OperationKind:
    if isinstance(value, OperationKind):
        return value
    try:
        return OperationKind(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(k.value for k in OperationKind)
        raise ValueError(f"Unknown operation {value!r} (expected one of: {choices})") from None


def parse_range(data: dict) -> TimeRange:
    try:
        return TimeRange(start=float(data["start"]), end=float(data["end"]))
    except (KeyError, TypeError, ValueError):
        raise ValueError(f"Segment must have numeric 'start' and 'end': {data!r}") from None


def manifest_from_dict(data: dict) -> Manifest:
    """Validate a decoded manifest document."""
    if not isinstance(data, dict):
        raise ValueError("Manifest must be a JSON object")
    missing = [k for k in ("input", "output", "operation") if k not in data]
    if missing:
        raise ValueError(f"Manifest must contain {', '.join(repr(k) for k in missing)}")

    silence = SilenceConfig(**data["silence"]) if "silence" in data else SilenceConfig()
    transcription = (
        TranscriptionConfig(**data["transcription"])
        if "transcription" in data
        else TranscriptionConfig()
    )

    return Manifest(
        version=str(data.get("version", "1")),
        input=Path(data["input"]),
        output=Path(data["output"]),
        operation=parse_operation(data["operation"]),
        quality=QualityPreset.parse(data.get("quality")),
        segments=[parse_range(s) for s in data.get("segments") or []],
        silence=silence,
        transcription=transcription,
    )


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())
    return manifest_from_dict(data)
