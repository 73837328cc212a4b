"""Subtitle manager backed by a remote subtitle provider service."""

from __future__ import annotations

import base64
import binascii
import io
import os
from pathlib import Path
from typing import Any
from urllib.parse import quote

import aiohttp

from shared.enums import MediaStreamType
from shared.http_client import AsyncHTTPClient
from shared.models import Item, RemoteSubtitle, RemoteSubtitleInfo
from shared.utils import config as service_config, sanitize_filename, setup_logging

from ..errors import SubtitleNotFoundError, SubtitleValidationError, UpstreamProviderError
from .base import MediaSourceManager, SubtitleManager


class RemoteSubtitleManager(SubtitleManager):
    """Search and download subtitles through a provider's HTTP API.

    Endpoints used relative to ``base_url``:

    - ``GET /search?name=&path=&language=&isPerfectMatch=`` returns a JSON
      list of ``RemoteSubtitleInfo`` records.
    - ``GET /subtitles/{id}`` returns ``{"format", "language", "is_forced",
      "content"}`` with ``content`` base64 encoded.
    """

    def __init__(
        self,
        media_sources: MediaSourceManager,
        base_url: str | None = None,
        timeout: int | None = None,
    ) -> None:
        self.logger = setup_logging("remote-subtitle-manager")
        self.media_sources = media_sources
        self.base_url = (base_url or service_config.get("subtitle_provider_url", "")).rstrip("/")
        self.timeout = timeout or int(service_config.get("subtitle_provider_timeout", 30))

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        try:
            async with AsyncHTTPClient(timeout=self.timeout) as client:
                return await client.get(f"{self.base_url}{path}", params=params)
        except (aiohttp.ClientError, TimeoutError) as e:
            self.logger.error(f"Subtitle provider request {path} failed: {e}")
            raise UpstreamProviderError(f"Subtitle provider request failed: {e!s}") from e

    async def search_subtitles(
        self, item: Item, language: str, is_perfect_match: bool | None
    ) -> list[RemoteSubtitleInfo]:
        params = {"name": item.name, "language": language}
        if item.path:
            params["path"] = item.path
        if is_perfect_match is not None:
            params["isPerfectMatch"] = "true" if is_perfect_match else "false"

        payload = await self._get("/search", params=params)
        if not isinstance(payload, list):
            raise UpstreamProviderError("Subtitle provider returned an unexpected search payload")
        results = [RemoteSubtitleInfo.model_validate(entry) for entry in payload]
        self.logger.info(f"Found {len(results)} remote subtitles for {item.name} ({language})")
        return results

    async def get_remote_subtitles(self, subtitle_id: str) -> RemoteSubtitle:
        payload = await self._get(f"/subtitles/{quote(subtitle_id, safe='')}")
        try:
            content = base64.b64decode(payload["content"], validate=True)
            return RemoteSubtitle(
                format=str(payload["format"]).lower(),
                language=payload.get("language"),
                is_forced=bool(payload.get("is_forced", False)),
                stream=io.BytesIO(content),
            )
        except (KeyError, TypeError, binascii.Error) as e:
            raise UpstreamProviderError(f"Malformed subtitle payload for {subtitle_id}") from e

    async def download_subtitles(self, item: Item, subtitle_id: str) -> None:
        if not item.path:
            raise SubtitleValidationError(f"Item {item.id} has no path to store subtitles next to")

        remote = await self.get_remote_subtitles(subtitle_id)
        target = self.subtitle_path_for(item, remote)
        with remote.stream:
            target.write_bytes(remote.stream.read())
        self.logger.info(f"Saved subtitle {subtitle_id} to {target}")

    @staticmethod
    def subtitle_path_for(item: Item, remote: RemoteSubtitle) -> Path:
        """``<video stem>.<language>[.forced].<format>`` beside the video file."""
        video_path = Path(item.path or "")
        parts = [video_path.stem]
        if remote.language:
            parts.append(sanitize_filename(remote.language))
        if remote.is_forced:
            parts.append("forced")
        parts.append(sanitize_filename(remote.format))
        return video_path.with_name(".".join(parts))

    async def delete_subtitles(self, item: Item, index: int) -> None:
        for source in self.media_sources.get_static_media_sources(item):
            for stream in source.media_streams:
                if stream.type != MediaStreamType.SUBTITLE or stream.index != index:
                    continue
                if not stream.is_external or not stream.path:
                    raise SubtitleValidationError(
                        f"Subtitle stream {index} is embedded and cannot be deleted"
                    )
                os.remove(stream.path)
                source.media_streams.remove(stream)
                self.logger.info(f"Deleted subtitle file {stream.path}")
                return
        raise SubtitleNotFoundError(f"Subtitle stream {index} not found")
