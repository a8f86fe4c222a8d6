"""A sequence of RGBA images with per-frame delays, loadable from GIF data."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union

__all__ = [
    "FramesError",
    "UnrecognizedFormatError",
    "CorruptDataError",
    "BYTES_PER_PIXEL",
    "Image",
    "Rect",
    "Frame",
    "ImageFrames",
]

BYTES_PER_PIXEL = 4

PathType = Union[str, "os.PathLike[str]"]


class FramesError(Exception):
    """Base class for errors raised while loading image frames."""


class UnrecognizedFormatError(FramesError):
    """Raised when the data or file is not of a recognized image format."""


class CorruptDataError(FramesError, ValueError):
    """Raised when image data is invalid or cannot be decoded."""


@dataclass(frozen=True)
class Image:
    """An RGBA image with 8 bits per channel, stored row by row."""

    width: int = 0
    height: int = 0
    data: bytes = b""

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("image dimensions must not be negative")
        object.__setattr__(self, "data", bytes(self.data))
        expected = self.width * self.height * BYTES_PER_PIXEL
        if len(self.data) != expected:
            raise ValueError(
                f"expected {expected} bytes of RGBA data, got {len(self.data)}"
            )

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def is_empty(self) -> bool:
        return not self.data


@dataclass
class Rect:
    """An axis-aligned rectangle."""

    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0

    def has_no_area(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def expand_to(self, px: float, py: float) -> None:
        """Grow the rectangle so that it contains the point ``(px, py)``."""
        left, top = min(self.x, px), min(self.y, py)
        right, bottom = max(self.x + self.width, px), max(self.y + self.height, py)
        self.x, self.y = left, top
        self.width, self.height = right - left, bottom - top


@dataclass
class Frame:
    """One image of an animation and how long it is shown, in seconds."""

    image: Image | None
    delay: float


def _extension(path: str) -> str:
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    return name.rpartition(".")[2] if "." in name else ""


class ImageFrames:
    """An ordered collection of animation frames."""

    def __init__(self) -> None:
        self._frames: list[Frame] = []

    def load(self, path: PathType, max_frames: int = 0) -> None:
        """Replace the frames with those of the image file at ``path``."""
        self.clear()
        path_str = os.fspath(path)
        if _extension(path_str).lower() != "gif":
            raise UnrecognizedFormatError(f"Unrecognized image: {path_str}")
        from goostframes.gif import load_gif

        load_gif(self, path_str, max_frames)

    def load_gif_from_buffer(self, data: bytes, max_frames: int = 0) -> None:
        """Replace the frames with those decoded from GIF ``data``."""
        if not data:
            raise CorruptDataError("Invalid GIF data")
        self.clear()
        if data[0] != ord("G"):
            raise UnrecognizedFormatError("Unrecognized image.")
        from goostframes.gif import load_gif

        load_gif(self, bytes(data), max_frames)

    def add_frame(self, image: Image, delay: float = -1.0) -> None:
        if image is None:
            raise ValueError("frame image must not be None")
        if image.is_empty():
            raise ValueError("frame image must not be empty")
        self._frames.append(Frame(image, delay))

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._frames):
            raise IndexError(f"frame index {index} out of range")

    def remove_frame(self, index: int) -> None:
        self._check_index(index)
        del self._frames[index]

    def __len__(self) -> int:
        return len(self._frames)

    def __getitem__(self, index: int) -> Frame:
        self._check_index(index)
        return self._frames[index]

    def __iter__(self) -> Iterator[Frame]:
        return iter(self._frames)

    def bounding_rect(self) -> Rect:
        """Return the smallest rectangle at the origin that holds every frame."""
        rect = Rect()
        for frame in self._frames:
            if frame.image is None:
                continue
            rect.expand_to(frame.image.width, frame.image.height)
        return rect

    def clear(self) -> None:
        self._frames.clear()