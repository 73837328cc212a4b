"""Subtitle delivery service: passthrough, transcode and HLS playlists."""

from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass
from typing import BinaryIO
from uuid import UUID

from shared.enums import DeliveryMode, RefreshPriority
from shared.models import (
    Item,
    MetadataRefreshOptions,
    RemoteSubtitle,
    RemoteSubtitleInfo,
    SubtitleStreamRef,
)
from shared.utils import setup_logging

from .drivers.base import (
    LibraryManager,
    MediaSourceManager,
    RefreshScheduler,
    SubtitleEncoder,
    SubtitleManager,
)
from .errors import SubtitleDeliveryError, SubtitleEncodingError, SubtitleNotFoundError
from .formats import get_format_mime_type, get_mime_type, normalize_format, resolve_delivery_mode
from .playlist import render_playlist
from .segments import count_segments, plan_segments, seconds_to_ticks
from .timestamp_map import map_to_absolute

VTT_FORMAT = "vtt"


@dataclass
class SubtitleContent:
    """An open subtitle byte stream and the content type to serve it with."""

    stream: BinaryIO
    media_type: str


class SubtitleDeliveryService:
    """Serve subtitle streams and HLS subtitle playlists for library items."""

    def __init__(
        self,
        library: LibraryManager,
        media_sources: MediaSourceManager,
        encoder: SubtitleEncoder,
        subtitle_manager: SubtitleManager,
        refresh_scheduler: RefreshScheduler,
    ) -> None:
        self.logger = setup_logging("subtitle-delivery")
        self.library = library
        self.media_sources = media_sources
        self.encoder = encoder
        self.subtitle_manager = subtitle_manager
        self.refresh_scheduler = refresh_scheduler
        self._background_tasks: set[asyncio.Task] = set()

    def _require_item(self, item_id: UUID) -> Item:
        item = self.library.get_item_by_id(item_id)
        if item is None:
            raise SubtitleNotFoundError(f"Item {item_id} not found")
        return item

    async def get_subtitle(
        self,
        ref: SubtitleStreamRef,
        format: str | None,
        start_ticks: int = 0,
        end_ticks: int | None = None,
        copy_timestamps: bool = False,
        add_vtt_time_map: bool = False,
    ) -> SubtitleContent:
        """Return subtitle stream content in the requested format.

        Args:
            ref: Item, media source and stream index to serve
            format: Output format; empty returns the stored file unmodified
            start_ticks: Start of the requested time range
            end_ticks: End of the requested time range, ``None`` for open-ended
            copy_timestamps: Keep source timestamps instead of rebasing to zero
            add_vtt_time_map: Stamp WebVTT output with an ``X-TIMESTAMP-MAP``

        Returns:
            SubtitleContent whose stream the caller must close

        Raises:
            SubtitleNotFoundError: Item, media source or stream is unknown
            SubtitleEncodingError: The encoder failed
            OSError: The stored subtitle file could not be opened
        """
        mode = resolve_delivery_mode(format, add_vtt_time_map)
        item = self._require_item(ref.item_id)

        if mode == DeliveryMode.RAW_PASSTHROUGH:
            return self._open_stored_subtitle(item, ref)

        output_format = VTT_FORMAT if mode == DeliveryMode.TIMESTAMP_MAPPED_VTT else normalize_format(format)
        stream = await self._encode(item, ref, output_format, start_ticks, end_ticks, copy_timestamps)

        if mode == DeliveryMode.TIMESTAMP_MAPPED_VTT:
            with stream:
                text = stream.read().decode("utf-8-sig", errors="replace")
            mapped = map_to_absolute(text)
            return SubtitleContent(
                stream=io.BytesIO(mapped.encode("utf-8")),
                media_type=get_format_mime_type(VTT_FORMAT),
            )

        return SubtitleContent(stream=stream, media_type=get_format_mime_type(output_format))

    def _open_stored_subtitle(self, item: Item, ref: SubtitleStreamRef) -> SubtitleContent:
        media_source_id = ref.media_source_id or item.id_hex
        media_source = next(
            (
                source
                for source in self.media_sources.get_static_media_sources(item)
                if source.id == media_source_id
            ),
            None,
        )
        if media_source is None:
            raise SubtitleNotFoundError(f"Media source {media_source_id} not found")

        subtitle_stream = media_source.subtitle_stream(ref.stream_index)
        if subtitle_stream is None:
            raise SubtitleNotFoundError(f"Subtitle stream {ref.stream_index} not found")
        if not subtitle_stream.path:
            raise SubtitleNotFoundError(
                f"Subtitle stream {ref.stream_index} is not backed by a file"
            )

        stream = open(subtitle_stream.path, "rb")
        self.logger.debug("Serving stored subtitle file %s", subtitle_stream.path)
        return SubtitleContent(stream=stream, media_type=get_mime_type(subtitle_stream.path))

    async def _encode(
        self,
        item: Item,
        ref: SubtitleStreamRef,
        output_format: str,
        start_ticks: int,
        end_ticks: int | None,
        copy_timestamps: bool,
    ) -> BinaryIO:
        try:
            return await self.encoder.get_subtitles(
                item,
                ref.media_source_id,
                ref.stream_index,
                output_format,
                start_ticks,
                end_ticks or 0,
                copy_timestamps,
            )
        except SubtitleDeliveryError:
            raise
        except Exception as e:
            self.logger.error(f"Subtitle encoding failed for item {item.id}: {e}")
            raise SubtitleEncodingError(f"Subtitle encoding failed: {e!s}") from e

    async def build_playlist(
        self, ref: SubtitleStreamRef, segment_length: int | None, access_token: str | None
    ) -> str:
        """Render the HLS subtitle playlist of one subtitle stream.

        Raises:
            SubtitleNotFoundError: Item or media source is unknown
            SubtitleValidationError: Runtime unknown or segment length not positive
        """
        item = self._require_item(ref.item_id)
        media_source = await self.media_sources.get_media_source(item, ref.media_source_id)
        if media_source is None:
            raise SubtitleNotFoundError(f"Media source {ref.media_source_id} not found")

        runtime_ticks = media_source.run_time_ticks if media_source.run_time_ticks is not None else -1
        segment_length = segment_length or 0
        segment_length_ticks = seconds_to_ticks(segment_length)

        segments = plan_segments(runtime_ticks, segment_length_ticks)
        playlist = render_playlist(segments, segment_length, access_token)

        self.logger.info(
            "Built subtitle playlist for item %s stream %s with %d segments",
            item.id,
            ref.stream_index,
            count_segments(runtime_ticks, segment_length_ticks),
        )
        return playlist

    async def delete_subtitle(self, item_id: UUID, index: int) -> None:
        item = self._require_item(item_id)
        await self.subtitle_manager.delete_subtitles(item, index)
        self.logger.info("Deleted subtitle stream %s of item %s", index, item_id)

    async def search_remote_subtitles(
        self, item_id: UUID, language: str, is_perfect_match: bool | None
    ) -> list[RemoteSubtitleInfo]:
        item = self._require_item(item_id)
        return await self.subtitle_manager.search_subtitles(item, language, is_perfect_match)

    async def get_remote_subtitles(self, subtitle_id: str) -> SubtitleContent:
        remote: RemoteSubtitle = await self.subtitle_manager.get_remote_subtitles(subtitle_id)
        return SubtitleContent(stream=remote.stream, media_type=get_format_mime_type(remote.format))

    async def download_remote_subtitles(self, item_id: UUID, subtitle_id: str) -> None:
        """Download a remote subtitle, then queue a high priority refresh.

        Download and refresh failures are logged, never raised.
        """
        item = self._require_item(item_id)
        try:
            await self.subtitle_manager.download_subtitles(item, subtitle_id)
            self._queue_refresh_in_background(item.id)
        except Exception as e:
            self.logger.error(f"Error downloading subtitles: {e}", exc_info=True)

    def _queue_refresh_in_background(self, item_id: UUID) -> None:
        task = asyncio.create_task(
            asyncio.to_thread(
                self.refresh_scheduler.queue_refresh,
                item_id,
                MetadataRefreshOptions(),
                RefreshPriority.HIGH,
            )
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._on_refresh_done)

    def _on_refresh_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.warning(f"Queueing metadata refresh failed: {exc}")

    async def wait_for_background_tasks(self) -> None:
        """Wait for pending refresh scheduling (used on shutdown and in tests)."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
