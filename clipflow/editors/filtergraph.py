"""Compile an edit decision list into an ffmpeg filter plan."""

from clipflow.errors import UnsupportedPlanError
from clipflow.models import (
    ConcatPlan,
    ConcatSegment,
    CopyPlan,
    EditDecisionList,
    FilterPlan,
    TimeRange,
)


def compile_plan(edl: EditDecisionList) -> FilterPlan:
    """Return CopyPlan for the identity edit, otherwise a trim/concat plan.

    Segment i becomes labels ``v{i}``/``a{i}``; the concat node consumes
    them in EDL order. Only single-input edits are expressible.
    """
    if len(edl) == 0:
        raise UnsupportedPlanError("Edit list is empty; output would contain no media")

    sources = {d.segment.source for d in edl}
    if sources != {0}:
        raise UnsupportedPlanError(
            f"Edit list draws from inputs {sorted(sources)}; only a single input is supported"
        )

    if edl.is_identity():
        return CopyPlan()

    segments: list[ConcatSegment] = []
    for expected, decision in enumerate(edl):
        assert decision.index == expected, "edit list indices are not contiguous"
        segments.append(
            ConcatSegment(
                video_label=f"v{decision.index}",
                audio_label=f"a{decision.index}",
                range=TimeRange(start=decision.start, end=decision.end),
            )
        )
    return ConcatPlan(segments=tuple(segments))
