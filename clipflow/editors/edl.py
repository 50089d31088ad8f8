"""Edit decision list construction.

Turns keep ranges, remove ranges or detected silences into a canonical
EditDecisionList: sorted by start, non-overlapping, indexed from 0.
"""

import logging
from typing import Iterable

from clipflow.errors import NothingToKeepError, OutOfBoundsError, OverlapError
from clipflow.models import (
    EPSILON,
    EditDecision,
    EditDecisionList,
    KeepSegment,
    TimeRange,
)

logger = logging.getLogger(__name__)


def _as_keep(r: TimeRange) -> KeepSegment:
    if isinstance(r, KeepSegment):
        return r
    return KeepSegment(start=r.start, end=r.end)


def _validated(ranges: Iterable[TimeRange], duration: float) -> list[KeepSegment]:
    """Bounds-check every range and return them sorted by start."""
    segments: list[KeepSegment] = []
    for r in ranges:
        seg = _as_keep(r)
        if seg.start < 0:
            raise OutOfBoundsError(f"Range {seg.start}-{seg.end} starts before 0", seg)
        if seg.end > duration + EPSILON:
            raise OutOfBoundsError(
                f"Range {seg.start}-{seg.end} ends past media duration {duration}", seg
            )
        if not seg.start < seg.end:
            raise OutOfBoundsError(f"Range {seg.start}-{seg.end} is empty or reversed", seg)
        segments.append(seg)

    segments.sort(key=lambda s: s.start)
    for prev, cur in zip(segments, segments[1:]):
        if prev.end > cur.start:
            raise OverlapError(
                f"Range {prev.start}-{prev.end} overlaps {cur.start}-{cur.end}",
                prev,
                cur,
            )
    return segments


def _indexed(segments: list[KeepSegment], duration: float) -> EditDecisionList:
    return EditDecisionList(
        decisions=tuple(EditDecision(index=i, segment=s) for i, s in enumerate(segments)),
        duration=duration,
    )


def from_keep_ranges(ranges: Iterable[TimeRange], duration: float) -> EditDecisionList:
    """Build an EDL from user keep ranges given in any order.

    An empty input keeps the whole file.
    """
    segments = _validated(ranges, duration)
    if not segments:
        if duration <= EPSILON:
            raise NothingToKeepError(f"Input has no duration to keep ({duration}s)")
        segments = [KeepSegment(start=0.0, end=duration)]
    return _indexed(segments, duration)


def complement(ranges: Iterable[TimeRange], duration: float) -> list[KeepSegment]:
    """Return the gaps of [0, duration] not covered by chronological *ranges*.

    Ranges are clamped to [0, duration]; overlapping ranges are absorbed.
    Gaps shorter than EPSILON are dropped.
    """
    keeps: list[KeepSegment] = []
    cursor = 0.0

    for r in ranges:
        start = min(max(r.start, 0.0), duration)
        end = min(max(r.end, 0.0), duration)
        if start < cursor:
            start = cursor
        if end <= start:
            continue
        if start - cursor > EPSILON:
            keeps.append(KeepSegment(start=cursor, end=start))
        cursor = end

    if duration - cursor > EPSILON:
        keeps.append(KeepSegment(start=cursor, end=duration))
    return keeps


def from_silence(silences: Iterable[TimeRange], duration: float) -> EditDecisionList:
    """Keep everything between the detected silences."""
    silences = list(silences)
    keeps = complement(silences, duration)
    if not keeps:
        raise NothingToKeepError(f"Silence covers the whole {duration}s input")
    logger.debug("%d silences -> %d keep ranges", len(silences), len(keeps))
    return _indexed(keeps, duration)


def from_remove_ranges(ranges: Iterable[TimeRange], duration: float) -> EditDecisionList:
    """Validate user remove ranges and keep what lies between them."""
    removed = _validated(ranges, duration)
    keeps = complement(removed, duration)
    if not keeps:
        raise NothingToKeepError("Removed ranges cover the whole input")
    return _indexed(keeps, duration)
