"""JSON cue track output for clients that render subtitles themselves."""

from __future__ import annotations

import json
from datetime import timedelta

import srt

from shared.enums import TICKS_PER_SECOND

from .errors import SubtitleEncodingError

TICKS_PER_MICROSECOND = TICKS_PER_SECOND // 1_000_000


def timedelta_to_ticks(delta: timedelta) -> int:
    return (delta // timedelta(microseconds=1)) * TICKS_PER_MICROSECOND


def srt_to_json(data: bytes) -> bytes:
    """Convert SubRip cues into a ``{"TrackEvents": [...]}`` JSON document.

    Each event carries ``Id``, ``Text``, ``StartPositionTicks`` and
    ``EndPositionTicks``. Undecodable bytes are replaced rather than rejected.

    Raises:
        SubtitleEncodingError: If the input is not valid SubRip.
    """
    text = data.decode("utf-8-sig", errors="replace")
    try:
        cues = list(srt.parse(text))
    except srt.SRTParseError as e:
        raise SubtitleEncodingError(f"Could not parse subtitle cues: {e!s}") from e

    track = {
        "TrackEvents": [
            {
                "Id": str(cue.index),
                "Text": cue.content.strip(),
                "StartPositionTicks": timedelta_to_ticks(cue.start),
                "EndPositionTicks": timedelta_to_ticks(cue.end),
            }
            for cue in cues
        ]
    }
    return json.dumps(track, ensure_ascii=False).encode("utf-8")
