"""Subtitle service collaborator drivers."""

from .base import (
    LibraryManager,
    MediaSourceManager,
    RefreshScheduler,
    SubtitleEncoder,
    SubtitleManager,
)
from .ffmpeg import FFmpegSubtitleEncoder
from .library import ManifestLibrary
from .refresh import QueueRefreshScheduler
from .remote import RemoteSubtitleManager

__all__ = [
    "LibraryManager",
    "MediaSourceManager",
    "RefreshScheduler",
    "SubtitleEncoder",
    "SubtitleManager",
    "FFmpegSubtitleEncoder",
    "ManifestLibrary",
    "QueueRefreshScheduler",
    "RemoteSubtitleManager",
]
