import io
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from shared.enums import MediaStreamType, MetadataRefreshMode


# Catalog models
class MediaStream(BaseModel):
    index: int = Field(..., description="Stream index within the media source")
    type: MediaStreamType
    codec: str | None = Field(None, description="Codec or subtitle format, e.g. srt, ass, webvtt")
    language: str | None = Field(None, description="Three letter ISO language code")
    title: str | None = None
    is_external: bool = Field(default=False, description="Whether the stream lives in its own file")
    is_forced: bool = False
    path: str | None = Field(None, description="Path of the external file backing this stream")


class MediaSource(BaseModel):
    id: str
    path: str | None = None
    container: str | None = None
    run_time_ticks: int | None = Field(None, description="Total duration in 100ns ticks")
    media_streams: list[MediaStream] = Field(default_factory=list)

    def subtitle_stream(self, index: int) -> MediaStream | None:
        """Return the subtitle stream with the given index, if any."""
        for stream in self.media_streams:
            if stream.type == MediaStreamType.SUBTITLE and stream.index == index:
                return stream
        return None


class Item(BaseModel):
    id: UUID
    name: str
    path: str | None = None
    media_sources: list[MediaSource] = Field(default_factory=list)

    @property
    def id_hex(self) -> str:
        """Item id as 32 hex digits, the default media source id."""
        return self.id.hex


# Request-scoped addressing models
class SubtitleStreamRef(BaseModel):
    """Identifies one subtitle track of one media source."""

    model_config = ConfigDict(frozen=True)

    item_id: UUID
    media_source_id: str | None = None
    stream_index: int


class Segment(BaseModel):
    """Half-open interval ``[start_ticks, end_ticks)`` of a media timeline."""

    model_config = ConfigDict(frozen=True)

    start_ticks: int = Field(..., ge=0)
    end_ticks: int = Field(..., gt=0)

    @property
    def length_ticks(self) -> int:
        return self.end_ticks - self.start_ticks


# Remote subtitle provider models
class RemoteSubtitleInfo(BaseModel):
    id: str
    provider_name: str
    name: str | None = None
    format: str | None = None
    author: str | None = None
    comment: str | None = None
    three_letter_iso_language_name: str | None = None
    date_created: datetime | None = None
    community_rating: float | None = None
    download_count: int | None = None
    is_hash_match: bool | None = None


class RemoteSubtitle(BaseModel):
    """Subtitle payload fetched from a remote provider."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    format: str
    language: str | None = None
    is_forced: bool = False
    stream: io.IOBase = Field(..., description="Open binary stream of the subtitle file")


class MetadataRefreshOptions(BaseModel):
    metadata_refresh_mode: MetadataRefreshMode = MetadataRefreshMode.DEFAULT
    image_refresh_mode: MetadataRefreshMode = MetadataRefreshMode.DEFAULT
    replace_all_metadata: bool = False
    replace_all_images: bool = False


class AuthorizationInfo(BaseModel):
    token: str | None = Field(None, description="Access token presented with the request")
