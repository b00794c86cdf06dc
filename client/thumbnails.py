"""
Thumbnail extraction with ffmpeg and the user's choice among the results.
"""
import asyncio
import logging
import os
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence, Union

import aiofiles
from PIL import Image, UnidentifiedImageError

from shared_lib.schemas import ThumbnailFileSchema

logger = logging.getLogger(__name__)

DEFAULT_TIMESTAMPS = ("00:00:01", "00:00:05", "00:00:10", "00:00:15")


class ThumbnailGenerationError(Exception):
    """ffmpeg produced no usable frame."""


@dataclass
class ThumbnailOption:
    file_name: str
    data: bytes
    content_type: str = "image/jpeg"
    label: str = ""
    is_custom: bool = False
    source_path: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


class ThumbnailGenerator:
    """Extracts JPEG frames from a local video by running ffmpeg."""

    def __init__(self, ffmpeg_path: str = "ffmpeg"):
        self.ffmpeg_path = ffmpeg_path

    def _build_ffmpeg_command(self, input_path: str, timestamp: str,
                              width: int, height: int, quality: int) -> List[str]:
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-loglevel", "error",
            "-ss", timestamp,
            "-i", input_path,
            "-frames:v", "1",
            "-vf", f"scale={width}:{height}",
            "-q:v", str(quality),
            "-f", "mjpeg",
            "pipe:1",
        ]

    async def extract_frame(self, video_path: str, timestamp: str, width: int = 854,
                            height: int = 480, quality: int = 5) -> bytes:
        cmd = self._build_ffmpeg_command(video_path, timestamp, width, height, quality)
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            raise ThumbnailGenerationError(
                f"ffmpeg failed at {timestamp}: {stderr.decode(errors='replace').strip()}"
            )
        if not stdout:
            # Timestamp past the end of the video
            raise ThumbnailGenerationError(f"No frame at {timestamp}")
        return stdout

    async def generate(
        self,
        video_path: Union[str, Path],
        timestamps: Sequence[str] = DEFAULT_TIMESTAMPS,
        width: int = 854,
        height: int = 480,
        quality: int = 5,
    ) -> List[ThumbnailOption]:
        """One option per timestamp that produced a frame; failed timestamps are skipped."""
        video_path = str(video_path)
        options = []
        for index, timestamp in enumerate(timestamps):
            try:
                frame = await self.extract_frame(video_path, timestamp, width, height, quality)
            except (ThumbnailGenerationError, OSError) as e:
                logger.warning("Failed to generate thumbnail %d: %s", index + 1, e)
                continue
            options.append(ThumbnailOption(
                file_name=f"thumbnail_{timestamp.replace(':', '_')}.jpg",
                data=frame,
                label=f"Frame at {timestamp}",
            ))

        if not options:
            raise ThumbnailGenerationError("Failed to generate any thumbnails")
        return options


def _image_content_type(data: bytes) -> str:
    try:
        with Image.open(BytesIO(data)) as image:
            image.verify()
            image_format = image.format
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValueError("File is not a valid image") from e
    return Image.MIME.get(image_format, "application/octet-stream")


async def load_custom_thumbnail(path: Union[str, Path]) -> ThumbnailOption:
    """
    Read a user-supplied image and validate it the way the server will.

    Raises ``pydantic.ValidationError`` for size/type/name violations and
    ``ValueError`` when the bytes do not decode as an image.
    """
    path = Path(path)
    async with aiofiles.open(path, "rb") as f:
        data = await f.read()

    content_type = _image_content_type(data)
    ThumbnailFileSchema(file_name=path.name, file_type=content_type, file_size=len(data))
    return ThumbnailOption(
        file_name=path.name,
        data=data,
        content_type=content_type,
        label="Custom thumbnail",
        is_custom=True,
        source_path=os.fspath(path),
    )


class ThumbnailSelection:
    """
    Ordered thumbnail options with at most one custom option and at most
    one selection. The custom option, when present, is always first.
    """

    def __init__(self):
        self.options: List[ThumbnailOption] = []
        self.selected_index: Optional[int] = None

    def add_generated(self, generated: Sequence[ThumbnailOption]) -> None:
        custom = [option for option in self.options if option.is_custom]
        self.options = custom + list(generated)
        if self.selected_index is not None and self.selected_index >= len(self.options):
            self.selected_index = None
        if self.selected_index is None and generated:
            self.selected_index = 0

    async def add_custom(self, path: Union[str, Path]) -> ThumbnailOption:
        option = await load_custom_thumbnail(path)
        self.set_custom(option)
        return option

    def set_custom(self, option: ThumbnailOption) -> None:
        option.is_custom = True
        without_custom = [existing for existing in self.options if not existing.is_custom]
        self.options = [option] + without_custom
        self.selected_index = 0

    def remove_custom(self) -> None:
        had_custom = bool(self.options) and self.options[0].is_custom
        if not had_custom:
            return
        self.options = self.options[1:]
        if self.selected_index == 0:
            self.selected_index = None
        elif self.selected_index is not None:
            self.selected_index -= 1

    def select(self, index: int) -> None:
        if not 0 <= index < len(self.options):
            raise IndexError(f"No thumbnail option at index {index}")
        self.selected_index = index

    @property
    def selected(self) -> Optional[ThumbnailOption]:
        if self.selected_index is None:
            return None
        return self.options[self.selected_index]

    def selected_file(self) -> Optional[ThumbnailOption]:
        """The single thumbnail to upload, if any."""
        return self.selected
