"""Format loaders for image frames and readers for the imported resource files."""

from __future__ import annotations

import os
import struct
from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import BinaryIO, ClassVar, Optional, Union

from goostframes.gif import GifLoader
from goostframes.image_frames import (
    CorruptDataError,
    Frame,
    FramesError,
    Image,
    ImageFrames,
    UnrecognizedFormatError,
)

__all__ = [
    "ImageFramesFormatLoader",
    "GifFramesLoader",
    "ImageFramesLoader",
    "AnimatedTexture",
    "SpriteFrames",
    "ImageFramesResourceLoader",
    "AnimatedTextureResourceLoader",
    "SpriteFramesResourceLoader",
    "create_default_loader",
    "IMAGE_FRAMES_MAGIC",
    "ANIMATED_TEXTURE_MAGIC",
    "SPRITE_FRAMES_MAGIC",
]

IMAGE_FRAMES_MAGIC = b"GDIMF"
ANIMATED_TEXTURE_MAGIC = b"GDAT"
SPRITE_FRAMES_MAGIC = b"GDSF"

PathType = Union[str, "os.PathLike[str]"]


def _extension(path: str) -> str:
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    return name.rpartition(".")[2] if "." in name else ""


class ImageFramesFormatLoader(ABC):
    """Loads image frames of one or more file formats from an open binary file."""

    @abstractmethod
    def recognized_extensions(self) -> list[str]:
        """Return the file extensions this loader handles."""

    def recognize(self, extension: str) -> bool:
        wanted = extension.lower()
        return any(ext.lower() == wanted for ext in self.recognized_extensions())

    @abstractmethod
    def load_image_frames(
        self, frames: ImageFrames, file: BinaryIO, max_frames: int = 0
    ) -> None:
        """Decode frames from ``file`` into ``frames``."""


class GifFramesLoader(ImageFramesFormatLoader):
    """Loads animation frames from GIF files."""

    def recognized_extensions(self) -> list[str]:
        return ["gif"]

    def load_image_frames(
        self, frames: ImageFrames, file: BinaryIO, max_frames: int = 0
    ) -> None:
        GifLoader().load_from_file(frames, file, max_frames)


class ImageFramesLoader:
    """An ordered registry of format loaders chosen by file extension."""

    def __init__(self, loaders: Iterable[ImageFramesFormatLoader] = ()) -> None:
        self._loaders: list[ImageFramesFormatLoader] = list(loaders)

    @property
    def loaders(self) -> tuple[ImageFramesFormatLoader, ...]:
        return tuple(self._loaders)

    def add_loader(self, loader: ImageFramesFormatLoader) -> None:
        self._loaders.append(loader)

    def remove_loader(self, loader: ImageFramesFormatLoader) -> None:
        """Remove ``loader`` if registered; otherwise do nothing."""
        position = next((i for i, l in enumerate(self._loaders) if l is loader), None)
        if position is not None:
            del self._loaders[position]

    def cleanup(self) -> None:
        self._loaders.clear()

    def load_image_frames(
        self,
        path: PathType,
        frames: ImageFrames,
        file: Optional[BinaryIO] = None,
        max_frames: int = 0,
    ) -> None:
        """Load frames from ``path``, or from ``file`` when given, into ``frames``."""
        if frames is None:
            raise ValueError("It's not a reference to a valid ImageFrames object.")
        path_str = os.fspath(path)
        extension = _extension(path_str)
        opened = nullcontext(file) if file is not None else open(path_str, "rb")
        with opened as stream:
            for loader in self._loaders:
                if not loader.recognize(extension):
                    continue
                try:
                    loader.load_image_frames(frames, stream, max_frames)
                except FramesError as error:
                    if not len(frames):
                        raise CorruptDataError(
                            f"Error loading image: {path_str}"
                        ) from error
                    if isinstance(error, UnrecognizedFormatError):
                        continue
                    raise
                if not len(frames):
                    raise CorruptDataError(
                        "Image frames should contain at least one frame to be loaded."
                    )
                return
        raise UnrecognizedFormatError(f"Unrecognized image: {path_str}")

    def recognized_extensions(self) -> list[str]:
        return [ext for loader in self._loaders for ext in loader.recognized_extensions()]

    def recognize(self, extension: str) -> Optional[ImageFramesFormatLoader]:
        """Return the first loader that handles ``extension``, or ``None``."""
        return next((l for l in self._loaders if l.recognize(extension)), None)


def create_default_loader() -> ImageFramesLoader:
    """Return a loader registry with every built-in format registered."""
    return ImageFramesLoader([GifFramesLoader()])


@dataclass
class AnimatedTexture:
    """Frames of an animated texture, each with its own delay in seconds."""

    MAX_FRAMES: ClassVar[int] = 256

    flags: int = 0
    frames: list[Frame] = field(default_factory=list)


@dataclass
class SpriteFrames:
    """Frames of one sprite animation played at a fixed speed in frames per second."""

    flags: int = 0
    frames: list[Image] = field(default_factory=list)
    speed: float = 5.0
    animation: str = "default"


def _read_exact(file: BinaryIO, count: int) -> bytes:
    data = file.read(count)
    if len(data) != count:
        raise CorruptDataError("Unexpected end of file.")
    return data


def _read_u32(file: BinaryIO) -> int:
    return struct.unpack("<I", _read_exact(file, 4))[0]


def _read_real(file: BinaryIO) -> float:
    return struct.unpack("<f", _read_exact(file, 4))[0]


def _read_image(file: BinaryIO, width: int, height: int) -> Image:
    data = _read_exact(file, _read_u32(file))
    try:
        return Image(width, height, data)
    except ValueError as error:
        raise CorruptDataError(str(error)) from error


def _resource_type_for(path: PathType, extension: str, type_name: str) -> str:
    return type_name if _extension(os.fspath(path)).lower() == extension else ""


class _ResourceLoader(ABC):
    magic: ClassVar[bytes]

    def _open_and_read(self, path: PathType):
        with open(path, "rb") as file:
            if file.read(len(self.magic)) != self.magic:
                raise UnrecognizedFormatError(f"Unrecognized resource: {os.fspath(path)}")
            return self._read(file)

    @abstractmethod
    def _read(self, file: BinaryIO):
        """Read the resource body that follows the header."""


class ImageFramesResourceLoader(_ResourceLoader):
    """Reads ``.imageframes`` files: a header, a format extension and the image data."""

    magic = IMAGE_FRAMES_MAGIC

    def __init__(self, frames_loader: Optional[ImageFramesLoader] = None) -> None:
        self.frames_loader = (
            frames_loader if frames_loader is not None else create_default_loader()
        )

    def load(self, path: PathType) -> ImageFrames:
        """Read the image frames stored at ``path``."""
        return self._open_and_read(path)

    def recognized_extensions(self) -> list[str]:
        return ["imageframes"]

    def handles_type(self, type_name: str) -> bool:
        return type_name == "ImageFrames"

    def resource_type(self, path: PathType) -> str:
        return _resource_type_for(path, "imageframes", "ImageFrames")

    def _read(self, file: BinaryIO) -> ImageFrames:
        raw = _read_exact(file, _read_u32(file))
        try:
            extension = raw.decode("utf-8")
        except UnicodeDecodeError as error:
            raise CorruptDataError("Invalid format extension.") from error
        loader = self.frames_loader.recognize(extension)
        if loader is None:
            raise UnrecognizedFormatError(f"Unrecognized image format: {extension}")
        frames = ImageFrames()
        loader.load_image_frames(frames, file)
        return frames


class AnimatedTextureResourceLoader(_ResourceLoader):
    """Reads ``.atex`` files written by the animated texture importer."""

    magic = ANIMATED_TEXTURE_MAGIC

    def load(self, path: PathType) -> AnimatedTexture:
        """Read the animated texture stored at ``path``."""
        return self._open_and_read(path)

    def recognized_extensions(self) -> list[str]:
        return ["atex"]

    def handles_type(self, type_name: str) -> bool:
        return type_name == "AnimatedTexture"

    def resource_type(self, path: PathType) -> str:
        return _resource_type_for(path, "atex", "AnimatedTexture")

    def _read(self, file: BinaryIO) -> AnimatedTexture:
        flags, count, width, height = struct.unpack("<4I", _read_exact(file, 16))
        texture = AnimatedTexture(flags=flags)
        for position in range(count):
            image = _read_image(file, width, height)
            delay = _read_real(file)
            if position < AnimatedTexture.MAX_FRAMES:
                texture.frames.append(Frame(image, delay))
        return texture


class SpriteFramesResourceLoader(_ResourceLoader):
    """Reads ``.sframes`` files written by the sprite frames importer."""

    magic = SPRITE_FRAMES_MAGIC

    def load(self, path: PathType) -> SpriteFrames:
        """Read the sprite frames stored at ``path``."""
        return self._open_and_read(path)

    def recognized_extensions(self) -> list[str]:
        return ["sframes"]

    def handles_type(self, type_name: str) -> bool:
        return type_name == "SpriteFrames"

    def resource_type(self, path: PathType) -> str:
        return _resource_type_for(path, "sframes", "SpriteFrames")

    def _read(self, file: BinaryIO) -> SpriteFrames:
        flags, count, width, height = struct.unpack("<4I", _read_exact(file, 16))
        images = [_read_image(file, width, height) for _ in range(count)]
        return SpriteFrames(flags=flags, frames=images, speed=_read_real(file))