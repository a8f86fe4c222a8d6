"""Importers that turn animated images into animated texture and sprite frame files."""

from __future__ import annotations

import os
import struct
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntFlag
from typing import Any, BinaryIO, ClassVar, Optional, Union

from goostframes.image_frames import Frame, ImageFrames
from goostframes.loaders import (
    ANIMATED_TEXTURE_MAGIC,
    SPRITE_FRAMES_MAGIC,
    AnimatedTexture,
    ImageFramesLoader,
    create_default_loader,
)

__all__ = [
    "TextureFlags",
    "ImportOption",
    "texture_flags",
    "AnimatedTextureImporter",
    "SpriteFramesImporter",
    "SPRITE_FRAMES_MAX_FRAMES",
]

SPRITE_FRAMES_MAX_FRAMES = 4096

PathType = Union[str, "os.PathLike[str]"]


class TextureFlags(IntFlag):
    """Texture flags stored in imported resource files."""

    NONE = 0
    MIPMAPS = 1
    REPEAT = 2
    FILTER = 4
    ANISOTROPIC_FILTER = 8
    CONVERT_TO_LINEAR = 16
    MIRRORED_REPEAT = 32


@dataclass(frozen=True)
class ImportOption:
    """One import setting with its type, default value and editor hint."""

    name: str
    value_type: type
    default: Any
    hint: str = ""
    hint_string: str = ""


def texture_flags(options: Mapping[str, Any]) -> TextureFlags:
    """Compute texture flags from the ``flags/*`` import options."""
    flags = TextureFlags.NONE
    repeat = int(options.get("flags/repeat", 0))
    if repeat > 0:
        flags |= TextureFlags.REPEAT
    if repeat == 2:
        flags |= TextureFlags.MIRRORED_REPEAT
    if options.get("flags/filter", False):
        flags |= TextureFlags.FILTER
    if options.get("flags/mipmaps", False):
        flags |= TextureFlags.MIPMAPS
    if options.get("flags/anisotropic", False):
        flags |= TextureFlags.ANISOTROPIC_FILTER
    if int(options.get("flags/srgb", 0)) == 1:
        flags |= TextureFlags.CONVERT_TO_LINEAR
    return flags


def _options_with_limit(limit: int) -> list[ImportOption]:
    return [
        ImportOption("flags/repeat", int, 0, "enum", "Disabled,Enabled,Mirrored"),
        ImportOption("flags/filter", bool, False),
        ImportOption("flags/mipmaps", bool, False),
        ImportOption("flags/anisotropic", bool, False),
        ImportOption("flags/srgb", int, 0, "enum", "Disable,Enable,Detect"),
        ImportOption("max_frames", int, 0, "range", f"0, {limit}, 1"),
    ]


def _write_image(file: BinaryIO, frame: Frame) -> None:
    data = frame.image.data
    file.write(struct.pack("<I", len(data)))
    file.write(data)


class _FramesImporter(ABC):
    resource_type: ClassVar[str]
    importer_name: ClassVar[str]
    visible_name: ClassVar[str]
    save_extension: ClassVar[str]
    magic: ClassVar[bytes]
    max_frames_limit: ClassVar[int]
    presets: ClassVar[tuple[str, ...]] = ()
    preset_count: ClassVar[int] = 0
    hidden_options: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, frames_loader: Optional[ImageFramesLoader] = None) -> None:
        self.frames_loader = (
            frames_loader if frames_loader is not None else create_default_loader()
        )

    def preset_name(self, index: int) -> str:
        """Name of the preset at ``index``, or an empty string if there is none."""
        if 0 <= index < len(self.presets):
            return self.presets[index]
        return ""

    def _import(
        self,
        source_file: PathType,
        save_path: PathType,
        options: Optional[Mapping[str, Any]],
    ) -> str:
        values = {
            option.name: option.default
            for option in _options_with_limit(self.max_frames_limit)
        }
        values.update(options or {})
        flags = texture_flags(values)
        max_frames = int(values["max_frames"])

        frames = ImageFrames()
        self.frames_loader.load_image_frames(source_file, frames, None, max_frames)

        if max_frames <= 0 or max_frames > self.max_frames_limit:
            max_frames = self.max_frames_limit
        selected = list(frames)[:max_frames]
        # All frames are assumed to share the size of the first one.
        first = selected[0].image

        target = f"{os.fspath(save_path)}.{self.save_extension}"
        with open(target, "wb") as file:
            file.write(self.magic)
            file.write(
                struct.pack("<4I", int(flags), len(selected), first.width, first.height)
            )
            self._write_frames(file, selected)
        return target

    @abstractmethod
    def _write_frames(self, file: BinaryIO, frames: list[Frame]) -> None:
        """Write the per-frame body of the resource file."""


class AnimatedTextureImporter(_FramesImporter):
    """Imports animated images as ``.atex`` files with a delay for every frame."""

    resource_type = "AnimatedTexture"
    importer_name = "animated_texture"
    visible_name = "AnimatedTexture"
    save_extension = "atex"
    magic = ANIMATED_TEXTURE_MAGIC
    max_frames_limit = AnimatedTexture.MAX_FRAMES

    def recognized_extensions(self) -> list[str]:
        return self.frames_loader.recognized_extensions()

    def import_options(self, preset: int = 0) -> list[ImportOption]:
        return _options_with_limit(self.max_frames_limit)

    def option_visibility(self, option: str, options: Mapping[str, Any]) -> bool:
        """Whether ``option`` is shown; no option is hidden by this importer."""
        return option not in self.hidden_options

    def import_file(
        self,
        source_file: PathType,
        save_path: PathType,
        options: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Import ``source_file`` and write ``save_path``.atex; return the file written."""
        return self._import(source_file, save_path, options)

    def _write_frames(self, file: BinaryIO, frames: list[Frame]) -> None:
        for frame in frames:
            _write_image(file, frame)
            file.write(struct.pack("<f", frame.delay))


class SpriteFramesImporter(_FramesImporter):
    """Imports animated images as ``.sframes`` files played at the average frame rate."""

    resource_type = "SpriteFrames"
    importer_name = "sprite_frames"
    visible_name = "SpriteFrames"
    save_extension = "sframes"
    magic = SPRITE_FRAMES_MAGIC
    max_frames_limit = SPRITE_FRAMES_MAX_FRAMES

    def recognized_extensions(self) -> list[str]:
        return self.frames_loader.recognized_extensions()

    def import_options(self, preset: int = 0) -> list[ImportOption]:
        return _options_with_limit(self.max_frames_limit)

    def option_visibility(self, option: str, options: Mapping[str, Any]) -> bool:
        """Whether ``option`` is shown; no option is hidden by this importer."""
        return option not in self.hidden_options

    def import_file(
        self,
        source_file: PathType,
        save_path: PathType,
        options: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Import ``source_file`` and write ``save_path``.sframes; return the file written."""
        return self._import(source_file, save_path, options)

    def _write_frames(self, file: BinaryIO, frames: list[Frame]) -> None:
        average_time = sum(frame.delay for frame in frames) / len(frames)
        for frame in frames:
            _write_image(file, frame)
        speed = 1.0 / average_time if average_time else float("inf")
        file.write(struct.pack("<f", speed))