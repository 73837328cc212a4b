"""Anchor WebVTT segments on the absolute HLS timeline."""

WEBVTT_MARKER = "WEBVTT"

# MPEG-TS 90kHz clock: 900000 == 10 seconds, the offset HLS segmenters start at
TIMESTAMP_MAP = "X-TIMESTAMP-MAP=MPEGTS:900000,LOCAL:00:00:00.000"


def map_to_absolute(vtt_text: str) -> str:
    """Insert the timestamp map right after the first ``WEBVTT`` marker.

    Cue timings are left untouched. Applying this twice duplicates the
    declaration, so it must run once per response.
    """
    return vtt_text.replace(WEBVTT_MARKER, f"{WEBVTT_MARKER}\n{TIMESTAMP_MAP}", 1)
