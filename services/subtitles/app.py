"""Subtitle delivery API endpoints for library video items."""

from collections.abc import Iterator
from typing import BinaryIO
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from services.auth import require_access_token
from services.subtitles.delivery import SubtitleContent, SubtitleDeliveryService
from services.subtitles.drivers import (
    FFmpegSubtitleEncoder,
    ManifestLibrary,
    QueueRefreshScheduler,
    RemoteSubtitleManager,
)
from services.subtitles.errors import SubtitleDeliveryError, SubtitleValidationError
from services.subtitles.formats import get_mime_type
from shared.models import RemoteSubtitleInfo, SubtitleStreamRef
from shared.response_models import APIResponse, ErrorResponse
from shared.utils import config, setup_logging

logger = setup_logging("subtitle-service")

app = FastAPI(
    title="Subtitle Service",
    description="Subtitle streaming, HLS subtitle playlists and remote subtitle management",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STREAM_FILE_PREFIX = "stream."
PLAYLIST_MEDIA_TYPE = get_mime_type("playlist.m3u8")


def create_delivery_service() -> SubtitleDeliveryService:
    """Wire the delivery service to the configured drivers."""
    library = ManifestLibrary(config.get("library_manifest_path"))
    return SubtitleDeliveryService(
        library=library,
        media_sources=library,
        encoder=FFmpegSubtitleEncoder(library),
        subtitle_manager=RemoteSubtitleManager(library),
        refresh_scheduler=QueueRefreshScheduler(),
    )


service = create_delivery_service()


def get_delivery_service() -> SubtitleDeliveryService:
    return service


async def subtitle_error_handler(request: Request, exc: SubtitleDeliveryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    body = ErrorResponse(message=exc.message, error=type(exc).__name__, error_code=exc.error_code)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


app.add_exception_handler(SubtitleDeliveryError, subtitle_error_handler)


def _query_value(request: Request, name: str) -> str | None:
    """Case-insensitive query parameter lookup."""
    wanted = name.lower()
    for key, value in request.query_params.items():
        if key.lower() == wanted:
            return value
    return None


def _query_bool(request: Request, name: str) -> bool | None:
    value = _query_value(request, name)
    if value is None or value == "":
        return None
    lowered = value.lower()
    if lowered not in {"true", "false"}:
        raise SubtitleValidationError(f"{name} must be true or false")
    return lowered == "true"


def _query_int(request: Request, name: str) -> int | None:
    value = _query_value(request, name)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as e:
        raise SubtitleValidationError(f"{name} must be an integer") from e


def _iter_stream(stream: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    try:
        while chunk := stream.read(chunk_size):
            yield chunk
    finally:
        stream.close()


class SubtitleStreamingResponse(StreamingResponse):
    """Stream a subtitle file and close it once the response ends.

    The source is closed after the body is sent, on client disconnect and
    on send errors, without waiting for the body iterator to be collected.
    """

    def __init__(self, source: BinaryIO, chunk_size: int, media_type: str) -> None:
        self.source = source
        super().__init__(_iter_stream(source, chunk_size), media_type=media_type)

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.source.close()


def _stream_response(content: SubtitleContent) -> SubtitleStreamingResponse:
    chunk_size = int(config.get("stream_chunk_size", 65536))
    return SubtitleStreamingResponse(content.stream, chunk_size, content.media_type)


@app.get("/health")
async def health_check():
    """Health check endpoint for the subtitle service."""
    return APIResponse(message="Subtitle Service is healthy")


@app.delete("/Videos/{id}/Subtitles/{index}", status_code=204)
async def delete_subtitle(
    id: UUID,
    index: int,
    token: str = Depends(require_access_token),
    delivery: SubtitleDeliveryService = Depends(get_delivery_service),
) -> Response:
    """Delete an external subtitle file."""
    try:
        await delivery.delete_subtitle(id, index)
    except (HTTPException, SubtitleDeliveryError):
        raise
    except OSError as e:
        logger.error(f"Failed to delete subtitle {index} of item {id}: {e}")
        raise HTTPException(status_code=500, detail=f"Subtitle deletion failed: {e!s}") from e
    return Response(status_code=204)


@app.get("/Items/{id}/RemoteSearch/Subtitles/{language}", response_model=list[RemoteSubtitleInfo])
async def search_remote_subtitles(
    id: UUID,
    language: str,
    request: Request,
    token: str = Depends(require_access_token),
    delivery: SubtitleDeliveryService = Depends(get_delivery_service),
) -> list[RemoteSubtitleInfo]:
    """Search remote providers for subtitles in a language."""
    is_perfect_match = _query_bool(request, "isPerfectMatch")
    return await delivery.search_remote_subtitles(id, language, is_perfect_match)


@app.post("/Items/{id}/RemoteSearch/Subtitles/{subtitle_id}", status_code=204)
async def download_remote_subtitles(
    id: UUID,
    subtitle_id: str,
    token: str = Depends(require_access_token),
    delivery: SubtitleDeliveryService = Depends(get_delivery_service),
) -> Response:
    """Download a remote subtitle and refresh the item's metadata.

    Download failures are logged and still answered with 204.
    """
    await delivery.download_remote_subtitles(id, subtitle_id)
    return Response(status_code=204)


@app.get("/Providers/Subtitles/Subtitles/{id}")
async def get_remote_subtitles(
    id: str,
    token: str = Depends(require_access_token),
    delivery: SubtitleDeliveryService = Depends(get_delivery_service),
) -> StreamingResponse:
    """Fetch a remote subtitle file without storing it."""
    content = await delivery.get_remote_subtitles(id)
    return _stream_response(content)


@app.get("/Videos/{id}/{media_source_id}/Subtitles/{index}/subtitles.m3u8")
async def get_subtitle_playlist(
    id: UUID,
    media_source_id: str,
    index: int,
    request: Request,
    token: str = Depends(require_access_token),
    delivery: SubtitleDeliveryService = Depends(get_delivery_service),
) -> Response:
    """Return an HLS playlist of time-mapped WebVTT subtitle segments."""
    segment_length = _query_int(request, "segmentLength")
    ref = SubtitleStreamRef(item_id=id, media_source_id=media_source_id, stream_index=index)
    playlist = await delivery.build_playlist(ref, segment_length, token)
    return Response(content=playlist.encode("utf-8"), media_type=PLAYLIST_MEDIA_TYPE)


async def _serve_subtitle(
    request: Request,
    delivery: SubtitleDeliveryService,
    id: UUID,
    media_source_id: str,
    index: int,
    file_name: str,
    start_position_ticks: int | None,
) -> StreamingResponse:
    if not file_name.lower().startswith(STREAM_FILE_PREFIX):
        raise HTTPException(status_code=404, detail="Not Found")
    format = file_name[len(STREAM_FILE_PREFIX):]

    if start_position_ticks is None:
        start_position_ticks = _query_int(request, "startPositionTicks") or 0

    ref = SubtitleStreamRef(item_id=id, media_source_id=media_source_id, stream_index=index)
    try:
        content = await delivery.get_subtitle(
            ref,
            format,
            start_ticks=start_position_ticks,
            end_ticks=_query_int(request, "endPositionTicks"),
            copy_timestamps=bool(_query_bool(request, "copyTimestamps")),
            add_vtt_time_map=bool(_query_bool(request, "addVttTimeMap")),
        )
    except (HTTPException, SubtitleDeliveryError):
        raise
    except OSError as e:
        logger.error(f"Failed to open subtitle stream {index} of item {id}: {e}")
        raise HTTPException(status_code=500, detail=f"Subtitle file could not be read: {e!s}") from e

    return _stream_response(content)


@app.get("/Videos/{id}/{media_source_id}/Subtitles/{index}/{file_name}")
async def get_subtitle(
    id: UUID,
    media_source_id: str,
    index: int,
    file_name: str,
    request: Request,
    delivery: SubtitleDeliveryService = Depends(get_delivery_service),
) -> StreamingResponse:
    """Get a subtitle stream as ``Stream.<format>``.

    An empty format returns the stored file. ``vtt`` combined with
    ``addVttTimeMap=true`` returns a WebVTT segment anchored on the HLS
    timeline, as requested by the subtitle playlist.
    """
    return await _serve_subtitle(request, delivery, id, media_source_id, index, file_name, None)


@app.get("/Videos/{id}/{media_source_id}/Subtitles/{index}/{start_position_ticks}/{file_name}")
async def get_subtitle_with_ticks(
    id: UUID,
    media_source_id: str,
    index: int,
    start_position_ticks: int,
    file_name: str,
    request: Request,
    delivery: SubtitleDeliveryService = Depends(get_delivery_service),
) -> StreamingResponse:
    """Get a subtitle stream starting at ``start_position_ticks``."""
    return await _serve_subtitle(
        request, delivery, id, media_source_id, index, file_name, start_position_ticks
    )


if __name__ == "__main__":
    try:
        import uvicorn
    except ImportError as e:
        raise RuntimeError("uvicorn must be installed to run this service.") from e
    uvicorn.run(app, host="0.0.0.0", port=8004)
