"""Library catalog backed by a YAML manifest."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from uuid import UUID

import yaml

from shared.models import Item, MediaSource
from shared.utils import setup_logging

from .base import LibraryManager, MediaSourceManager

logger = setup_logging("library-manifest")


class ManifestLibrary(LibraryManager, MediaSourceManager):
    """Serve items and their media sources from a manifest file.

    The manifest is a mapping with an ``items`` list; each entry follows the
    ``Item`` model, media sources and streams nested inline::

        items:
          - id: 2f0c2ad1-6d5e-4c55-9a0e-0e6f0c7b1a11
            name: Big Buck Bunny
            path: /media/movies/bbb.mkv
            media_sources:
              - id: 2f0c2ad16d5e4c559a0e0e6f0c7b1a11
                path: /media/movies/bbb.mkv
                run_time_ticks: 5964000000
                media_streams:
                  - {index: 2, type: subtitle, codec: srt, language: eng,
                     is_external: true, path: /media/movies/bbb.eng.srt}
    """

    def __init__(self, manifest_path: str | Path | None = None) -> None:
        self.manifest_path = Path(manifest_path) if manifest_path else None
        self._items: dict[UUID, Item] = {}
        if self.manifest_path is not None:
            self.load()

    def load(self) -> None:
        """(Re)load the manifest from disk."""
        if self.manifest_path is None:
            return
        try:
            with open(self.manifest_path, "r", encoding="utf-8") as stream:
                data = yaml.safe_load(stream) or {}
        except FileNotFoundError:
            logger.warning("Library manifest %s not found; starting with an empty catalog", self.manifest_path)
            data = {}
        self.load_items(data.get("items") or [])

    def load_items(self, entries: list[dict[str, Any]]) -> None:
        self._items = {}
        for entry in entries:
            item = Item.model_validate(entry)
            self._items[item.id] = item
        logger.info("Loaded %d library items", len(self._items))

    def add_item(self, item: Item) -> None:
        self._items[item.id] = item

    def get_item_by_id(self, item_id: UUID) -> Item | None:
        return self._items.get(item_id)

    def get_static_media_sources(self, item: Item) -> list[MediaSource]:
        return list(item.media_sources)

    async def get_media_source(self, item: Item, media_source_id: str | None) -> MediaSource | None:
        wanted = media_source_id or item.id_hex
        for source in item.media_sources:
            if source.id == wanted:
                return source
        return None
