"""Subtitle encoder that shells out to ffmpeg."""

from __future__ import annotations

import asyncio
import io
from typing import BinaryIO

from shared.enums import TICKS_PER_SECOND
from shared.models import Item, MediaStream
from shared.utils import config as service_config, setup_logging

from ..cues import srt_to_json
from ..errors import SubtitleEncodingError, SubtitleNotFoundError
from .base import MediaSourceManager, SubtitleEncoder

# output format -> (ffmpeg muxer, subtitle codec)
DEFAULT_OUTPUT_FORMATS: dict[str, tuple[str, str]] = {
    "vtt": ("webvtt", "webvtt"),
    "srt": ("srt", "subrip"),
    "ass": ("ass", "ass"),
    "ssa": ("ass", "ass"),
    "ttml": ("ttml", "ttml"),
}

# formats ffmpeg cannot write: extracted as srt, then converted in-process
CUE_CONVERTERS = {"json": srt_to_json}
CUE_SOURCE_FORMAT = "srt"


def ticks_to_timestamp(ticks: int) -> str:
    """Seconds with millisecond precision, as ffmpeg accepts for -ss/-to."""
    return f"{ticks / TICKS_PER_SECOND:.3f}"


class FFmpegSubtitleEncoder(SubtitleEncoder):
    """Extract a subtitle stream with ffmpeg and convert it to a text format."""

    def __init__(
        self,
        media_sources: MediaSourceManager,
        ffmpeg_path: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.logger = setup_logging("ffmpeg-subtitle-encoder")
        self.media_sources = media_sources
        self.ffmpeg_path = ffmpeg_path or service_config.get("ffmpeg_path", "ffmpeg")
        self.timeout_seconds = timeout_seconds or float(
            service_config.get("encoder_timeout_seconds", 120)
        )
        self.output_formats = dict(DEFAULT_OUTPUT_FORMATS)
        for name, mapping in (service_config.get_setting("encoder.formats", {}) or {}).items():
            self.output_formats[name.lower()] = (mapping["muxer"], mapping["codec"])

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
        media_source = await self.media_sources.get_media_source(item, media_source_id)
        if media_source is None:
            raise SubtitleNotFoundError(f"Media source {media_source_id} not found")
        subtitle_stream = media_source.subtitle_stream(index)
        if subtitle_stream is None:
            raise SubtitleNotFoundError(f"Subtitle stream {index} not found")

        input_path = subtitle_stream.path if subtitle_stream.is_external else media_source.path
        if not input_path:
            raise SubtitleEncodingError(f"No input file for subtitle stream {index}")

        command = self.build_command(
            input_path, subtitle_stream, format, start_ticks, end_ticks, copy_timestamps
        )
        output = await self._run(command)
        converter = CUE_CONVERTERS.get(format.lower())
        if converter is not None:
            output = converter(output)
        return io.BytesIO(output)

    def build_command(
        self,
        input_path: str,
        subtitle_stream: MediaStream,
        format: str,
        start_ticks: int,
        end_ticks: int,
        copy_timestamps: bool,
    ) -> list[str]:
        """Assemble the ffmpeg argument list for one extraction."""
        key = format.lower()
        if key in CUE_CONVERTERS:
            key = CUE_SOURCE_FORMAT
        output = self.output_formats.get(key)
        if output is None:
            raise SubtitleEncodingError(f"Unsupported subtitle format: {format}")
        muxer, codec = output

        command = [self.ffmpeg_path, "-hide_banner", "-loglevel", "error"]
        if copy_timestamps:
            command.append("-copyts")
        if start_ticks > 0:
            command += ["-ss", ticks_to_timestamp(start_ticks)]
        if end_ticks > 0:
            command += ["-to", ticks_to_timestamp(end_ticks)]
        command += ["-i", input_path]

        stream_map = "0:s:0" if subtitle_stream.is_external else f"0:{subtitle_stream.index}"
        command += ["-map", stream_map, "-c:s", codec, "-f", muxer, "pipe:1"]
        return command

    async def _run(self, command: list[str]) -> bytes:
        self.logger.debug("Running %s", " ".join(command))
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise SubtitleEncodingError(f"ffmpeg not found at {self.ffmpeg_path}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), self.timeout_seconds)
        except asyncio.TimeoutError as e:
            await self._kill(process)
            raise SubtitleEncodingError(
                f"ffmpeg timed out after {self.timeout_seconds:g}s"
            ) from e
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            self.logger.error(f"ffmpeg exited with {process.returncode}: {message}")
            raise SubtitleEncodingError(f"ffmpeg exited with code {process.returncode}: {message}")
        return stdout

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            process.kill()
            await process.wait()
