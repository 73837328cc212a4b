"""Split a media runtime into fixed-length subtitle segments."""

from __future__ import annotations

from collections.abc import Iterator

from shared.enums import TICKS_PER_SECOND
from shared.models import Segment

from .errors import SubtitleValidationError


def seconds_to_ticks(seconds: int) -> int:
    return seconds * TICKS_PER_SECOND


def plan_segments(runtime_ticks: int, segment_length_ticks: int) -> Iterator[Segment]:
    """Return an iterator over segments covering ``[0, runtime_ticks)``.

    Every segment has ``segment_length_ticks`` except possibly the last one,
    which is clamped to the runtime. Preconditions are checked before the
    iterator is handed out so that callers fail before producing any output.

    Raises:
        SubtitleValidationError: If the runtime or the segment length is not
            strictly positive.
    """
    if runtime_ticks <= 0:
        raise SubtitleValidationError("HLS Subtitles are not supported for this media.")
    if segment_length_ticks <= 0:
        raise SubtitleValidationError(
            "segmentLength was not given, or it was given incorrectly. (It should be bigger than 0)"
        )
    return _iter_segments(runtime_ticks, segment_length_ticks)


def _iter_segments(runtime_ticks: int, segment_length_ticks: int) -> Iterator[Segment]:
    position = 0
    while position < runtime_ticks:
        yield Segment(
            start_ticks=position,
            end_ticks=min(position + segment_length_ticks, runtime_ticks),
        )
        # advance by the nominal length; only the final segment is ever clamped
        position += segment_length_ticks


def count_segments(runtime_ticks: int, segment_length_ticks: int) -> int:
    """Number of segments ``plan_segments`` yields for valid inputs."""
    return -(-runtime_ticks // segment_length_ticks)
