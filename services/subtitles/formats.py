"""Output format normalization, delivery mode selection and content types."""

from __future__ import annotations

import mimetypes
import os

from shared.enums import DeliveryMode

SUBTITLE_MIME_TYPES: dict[str, str] = {
    "vtt": "text/vtt",
    "srt": "application/x-subrip",
    "ass": "text/x-ssa",
    "ssa": "text/x-ssa",
    "ttml": "application/ttml+xml",
    "json": "application/json",
    "m3u8": "application/x-mpegURL",
}

DEFAULT_MIME_TYPE = "application/octet-stream"

# Older clients request "Stream.js" for the JSON cue format
FORMAT_ALIASES: dict[str, str] = {"js": "json"}


def normalize_format(format: str | None) -> str:
    """Lower-case a requested format token and apply legacy aliases."""
    token = (format or "").strip().lower()
    return FORMAT_ALIASES.get(token, token)


def resolve_delivery_mode(format: str | None, add_vtt_time_map: bool) -> DeliveryMode:
    """Decide how a subtitle content request is served.

    An empty format means the stored file is returned untouched. WebVTT with
    ``add_vtt_time_map`` is transcoded and then stamped with an
    ``X-TIMESTAMP-MAP`` header; everything else goes straight to the encoder.
    """
    token = normalize_format(format)
    if not token:
        return DeliveryMode.RAW_PASSTHROUGH
    if token == "vtt" and add_vtt_time_map:
        return DeliveryMode.TIMESTAMP_MAPPED_VTT
    return DeliveryMode.DIRECT_TRANSCODE


def get_mime_type(name: str) -> str:
    """Content type for a file name or path, keyed on its extension."""
    extension = os.path.splitext(name)[1].lstrip(".").lower()
    if extension in SUBTITLE_MIME_TYPES:
        return SUBTITLE_MIME_TYPES[extension]
    guessed, _ = mimetypes.guess_type(name)
    return guessed or DEFAULT_MIME_TYPE


def get_format_mime_type(format: str) -> str:
    """Content type of subtitles encoded as ``format``."""
    return get_mime_type(f"file.{normalize_format(format)}")
