import io
import sys
from pathlib import Path
from typing import BinaryIO, Generator
from uuid import UUID

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import app as gateway_app
from services.queue import redis as redis_module
from services.subtitles.app import app as subtitles_app, get_delivery_service
from services.subtitles.delivery import SubtitleDeliveryService
from services.subtitles.drivers import (
    ManifestLibrary,
    RefreshScheduler,
    SubtitleEncoder,
    SubtitleManager,
)
from shared.enums import MediaStreamType, RefreshPriority
from shared.models import (
    Item,
    MediaSource,
    MediaStream,
    MetadataRefreshOptions,
    RemoteSubtitle,
    RemoteSubtitleInfo,
)

SERVICE_APPS = [subtitles_app, gateway_app]

ITEM_ID = UUID("2f0c2ad1-6d5e-4c55-9a0e-0e6f0c7b1a11")
MEDIA_SOURCE_ID = ITEM_ID.hex
SRT_INDEX = 2
EMBEDDED_INDEX = 3
SAMPLE_VTT = "WEBVTT\n\n00:00:01.000 --> 00:00:03.000\nHello there\n"
SAMPLE_SRT = "1\n00:00:01,000 --> 00:00:03,000\nHello there\n"


class FakeEncoder(SubtitleEncoder):
    """Records encoder calls and returns canned output."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.output: bytes = SAMPLE_VTT.encode("utf-8")
        self.error: Exception | None = None

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
        self.calls.append(
            {
                "item_id": item.id,
                "media_source_id": media_source_id,
                "index": index,
                "format": format,
                "start_ticks": start_ticks,
                "end_ticks": end_ticks,
                "copy_timestamps": copy_timestamps,
            }
        )
        if self.error is not None:
            raise self.error
        return io.BytesIO(self.output)


class FakeSubtitleManager(SubtitleManager):
    def __init__(self) -> None:
        self.search_calls: list[tuple] = []
        self.downloads: list[tuple] = []
        self.deleted: list[tuple] = []
        self.download_error: Exception | None = None
        self.results = [
            RemoteSubtitleInfo(id="os-1", provider_name="Open Subtitles", format="srt"),
        ]

    async def search_subtitles(self, item, language, is_perfect_match):
        self.search_calls.append((item.id, language, is_perfect_match))
        return self.results

    async def download_subtitles(self, item, subtitle_id):
        if self.download_error is not None:
            raise self.download_error
        self.downloads.append((item.id, subtitle_id))

    async def delete_subtitles(self, item, index):
        self.deleted.append((item.id, index))

    async def get_remote_subtitles(self, subtitle_id):
        return RemoteSubtitle(format="srt", language="eng", stream=io.BytesIO(SAMPLE_SRT.encode("utf-8")))


class RecordingRefreshScheduler(RefreshScheduler):
    def __init__(self) -> None:
        self.queued: list[tuple[UUID, MetadataRefreshOptions, RefreshPriority]] = []

    def queue_refresh(self, item_id, options, priority):
        self.queued.append((item_id, options, priority))


@pytest.fixture
def subtitle_file(tmp_path: Path) -> Path:
    path = tmp_path / "movie.eng.srt"
    path.write_text(SAMPLE_SRT, encoding="utf-8")
    return path


@pytest.fixture
def sample_item(tmp_path: Path, subtitle_file: Path) -> Item:
    return Item(
        id=ITEM_ID,
        name="Big Buck Bunny",
        path=str(tmp_path / "movie.mkv"),
        media_sources=[
            MediaSource(
                id=MEDIA_SOURCE_ID,
                path=str(tmp_path / "movie.mkv"),
                run_time_ticks=3_650_000_000,
                media_streams=[
                    MediaStream(index=0, type=MediaStreamType.VIDEO, codec="h264"),
                    MediaStream(
                        index=SRT_INDEX,
                        type=MediaStreamType.SUBTITLE,
                        codec="srt",
                        language="eng",
                        is_external=True,
                        path=str(subtitle_file),
                    ),
                    MediaStream(
                        index=EMBEDDED_INDEX,
                        type=MediaStreamType.SUBTITLE,
                        codec="ass",
                        language="jpn",
                    ),
                ],
            )
        ],
    )


@pytest.fixture
def library(sample_item: Item) -> ManifestLibrary:
    library = ManifestLibrary()
    library.add_item(sample_item)
    return library


@pytest.fixture
def encoder() -> FakeEncoder:
    return FakeEncoder()


@pytest.fixture
def subtitle_manager() -> FakeSubtitleManager:
    return FakeSubtitleManager()


@pytest.fixture
def refresh_scheduler() -> RecordingRefreshScheduler:
    return RecordingRefreshScheduler()


@pytest.fixture
def delivery_service(
    library: ManifestLibrary,
    encoder: FakeEncoder,
    subtitle_manager: FakeSubtitleManager,
    refresh_scheduler: RecordingRefreshScheduler,
) -> SubtitleDeliveryService:
    return SubtitleDeliveryService(
        library=library,
        media_sources=library,
        encoder=encoder,
        subtitle_manager=subtitle_manager,
        refresh_scheduler=refresh_scheduler,
    )


@pytest.fixture(autouse=True)
def override_delivery_service(delivery_service: SubtitleDeliveryService) -> Generator[None, None, None]:
    """Route every service app to the fake-backed delivery service."""
    for service_app in SERVICE_APPS:
        service_app.dependency_overrides[get_delivery_service] = lambda: delivery_service
    try:
        yield
    finally:
        for service_app in SERVICE_APPS:
            service_app.dependency_overrides.pop(get_delivery_service, None)


@pytest.fixture(scope="session", autouse=True)
def fake_redis() -> Generator[None, None, None]:
    """Patch redis client to use in-memory storage for tests."""
    original_from_url = redis_module.Redis.from_url

    class DummyRedis:
        def __init__(self) -> None:
            self._store: dict[str, list[str]] = {}

        def ping(self) -> bool:
            return True

        def rpush(self, key: str, value: str) -> None:
            self._store.setdefault(key, []).append(value)

        def lpush(self, key: str, value: str) -> None:
            self._store.setdefault(key, []).insert(0, value)

        def lpop(self, key: str):
            queue = self._store.get(key)
            if not queue:
                return None
            value = queue.pop(0)
            if not queue:
                self._store.pop(key, None)
            return value

        def llen(self, key: str) -> int:
            return len(self._store.get(key, []))

    def fake_from_url(cls, url: str, *args, **kwargs):  # type: ignore[unused-argument]
        return DummyRedis()

    redis_module.Redis.from_url = classmethod(fake_from_url)  # type: ignore[assignment]
    try:
        yield
    finally:
        redis_module.Redis.from_url = original_from_url  # type: ignore[assignment]
