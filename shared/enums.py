"""
Enums and constants used across the application.
"""

from enum import Enum


class DeliveryMode(str, Enum):
    """How a subtitle content request is satisfied."""

    RAW_PASSTHROUGH = "raw_passthrough"
    DIRECT_TRANSCODE = "direct_transcode"
    TIMESTAMP_MAPPED_VTT = "timestamp_mapped_vtt"


class MediaStreamType(str, Enum):
    """Kinds of streams carried by a media source."""

    AUDIO = "audio"
    VIDEO = "video"
    SUBTITLE = "subtitle"
    EMBEDDED_IMAGE = "embedded_image"
    DATA = "data"


class RefreshPriority(str, Enum):
    """Priority of a queued metadata refresh."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class MetadataRefreshMode(str, Enum):
    """Depth of a metadata refresh."""

    NONE = "none"
    VALIDATION_ONLY = "validation_only"
    DEFAULT = "default"
    FULL_REFRESH = "full_refresh"


# 100 ns ticks, the base clock of media runtimes
TICKS_PER_SECOND = 10_000_000
