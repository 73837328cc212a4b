"""HLS VOD playlist rendering for segmented WebVTT subtitles."""

from __future__ import annotations

from collections.abc import Iterable

from shared.enums import TICKS_PER_SECOND
from shared.models import Segment

PLAYLIST_HEADER = (
    "#EXTM3U",
    "#EXT-X-TARGETDURATION:{target_duration}",
    "#EXT-X-VERSION:3",
    "#EXT-X-MEDIA-SEQUENCE:0",
    "#EXT-X-PLAYLIST-TYPE:VOD",
)
PLAYLIST_END = "#EXT-X-ENDLIST"

SEGMENT_URL_TEMPLATE = (
    "stream.vtt?CopyTimestamps=true&AddVttTimeMap=true"
    "&StartPositionTicks={start}&EndPositionTicks={end}&api_key={token}"
)


def format_duration(ticks: int) -> str:
    """Render a tick count as seconds without trailing zeros (``60``, ``2.5``)."""
    whole, remainder = divmod(ticks, TICKS_PER_SECOND)
    if not remainder:
        return str(whole)
    fraction = f"{remainder:07d}".rstrip("0")
    return f"{whole}.{fraction}"


def segment_url(segment: Segment, access_token: str | None) -> str:
    """Relative URL requesting one time-mapped WebVTT segment."""
    return SEGMENT_URL_TEMPLATE.format(
        start=segment.start_ticks,
        end=segment.end_ticks,
        token=access_token or "",
    )


def render_playlist(
    segments: Iterable[Segment],
    target_duration: int,
    access_token: str | None,
) -> str:
    """Serialize segments into an HLS VOD playlist.

    Args:
        segments: Segments in playback order
        target_duration: Nominal segment length in seconds
        access_token: Credential embedded verbatim in every segment URL

    Returns:
        Playlist text, one tag or URI per line
    """
    lines = [line.format(target_duration=target_duration) for line in PLAYLIST_HEADER]
    for segment in segments:
        lines.append(f"#EXTINF:{format_duration(segment.length_ticks)},")
        lines.append(segment_url(segment, access_token))
    lines.append(PLAYLIST_END)
    return "\n".join(lines) + "\n"
