"""Base classes for the collaborators the subtitle service delegates to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO
from uuid import UUID

from shared.enums import RefreshPriority
from shared.models import (
    Item,
    MediaSource,
    MetadataRefreshOptions,
    RemoteSubtitle,
    RemoteSubtitleInfo,
)


class LibraryManager(ABC):
    """Catalog lookup."""

    @abstractmethod
    def get_item_by_id(self, item_id: UUID) -> Item | None:
        """Return the item with the given id, or ``None``."""


class MediaSourceManager(ABC):
    """Resolve the playable sources of an item."""

    @abstractmethod
    def get_static_media_sources(self, item: Item) -> list[MediaSource]:
        """Return the media sources known for an item without probing."""

    @abstractmethod
    async def get_media_source(self, item: Item, media_source_id: str | None) -> MediaSource | None:
        """Return one media source of an item, ``None`` when unknown."""


class SubtitleManager(ABC):
    """Remote subtitle search, download and stored subtitle management."""

    @abstractmethod
    async def search_subtitles(
        self, item: Item, language: str, is_perfect_match: bool | None
    ) -> list[RemoteSubtitleInfo]:
        """Search remote providers for subtitles of an item."""

    @abstractmethod
    async def download_subtitles(self, item: Item, subtitle_id: str) -> None:
        """Download a remote subtitle and store it alongside the item."""

    @abstractmethod
    async def delete_subtitles(self, item: Item, index: int) -> None:
        """Delete the external subtitle file backing stream ``index``."""

    @abstractmethod
    async def get_remote_subtitles(self, subtitle_id: str) -> RemoteSubtitle:
        """Fetch a remote subtitle payload."""


class SubtitleEncoder(ABC):
    """Extract and convert subtitle streams."""

    @abstractmethod
    async def get_subtitles(
        self,
        item: Item,
        media_source_id: str | None,
        index: int,
        format: str,
        start_ticks: int,
        end_ticks: int,
        copy_timestamps: bool,
    ) -> BinaryIO:
        """Return subtitle stream ``index`` encoded as ``format``.

        ``end_ticks`` of 0 is passed through verbatim when the caller gave no
        end position.
        """


class RefreshScheduler(ABC):
    """Queue background metadata refreshes."""

    @abstractmethod
    def queue_refresh(
        self, item_id: UUID, options: MetadataRefreshOptions, priority: RefreshPriority
    ) -> None:
        """Queue a refresh of ``item_id``; must not wait for it to run."""
