"""Exception hierarchy for ClipFlow.

Each error carries a stable ``kind`` so callers can tell a bad edit range
from a crashed tool, plus whatever diagnostic text the failing process
wrote.
"""


class ClipFlowError(Exception):
    """Base exception for ClipFlow."""

    kind = "clipflow"

    def __init__(self, message: str, diagnostics: str = "") -> None:
        super().__init__(message)
        self.diagnostics = diagnostics

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": str(self),
            "diagnostics": self.diagnostics,
        }


class ProbeError(ClipFlowError):
    """ffprobe could not run, failed, or printed no usable duration."""

    kind = "probe"


class DetectionError(ClipFlowError):
    """Analyzer output had an unmatched silence_start/silence_end."""

    kind = "detection"


class PlanningError(ClipFlowError):
    """The requested edit is invalid for this media."""

    kind = "planning"


class OutOfBoundsError(PlanningError):
    kind = "planning.out_of_bounds"

    def __init__(self, message: str, segment=None) -> None:
        super().__init__(message)
        self.segment = segment


class OverlapError(PlanningError):
    kind = "planning.overlap"

    def __init__(self, message: str, first=None, second=None) -> None:
        super().__init__(message)
        self.first = first
        self.second = second


class NothingToKeepError(PlanningError):
    """The edit would remove the entire input."""

    kind = "planning.nothing_to_keep"


class CompileError(ClipFlowError):
    kind = "compile"


class UnsupportedPlanError(CompileError):
    """The edit list has a shape the filter graph cannot express."""

    kind = "compile.unsupported_plan"


class LaunchError(ClipFlowError):
    """An external process could not be started."""

    kind = "launch"


class FFmpegNotFoundError(LaunchError):
    pass


class RenderError(ClipFlowError):
    """An external process started but exited non-zero."""

    kind = "render"

    def __init__(self, message: str, returncode: int, diagnostics: str = "") -> None:
        super().__init__(message, diagnostics)
        self.returncode = returncode


class TranscriptionError(ClipFlowError):
    kind = "transcription"


class JobCancelledError(ClipFlowError):
    kind = "cancelled"
