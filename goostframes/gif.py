"""GIF decoding into image frames, with frame compositing and disposal."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import BinaryIO, Union

from goostframes.image_frames import (
    BYTES_PER_PIXEL,
    CorruptDataError,
    Image,
    ImageFrames,
)

__all__ = ["GifError", "GifLoader", "load_gif", "MAX_IMAGE_SIZE", "DEFAULT_DELAY"]

MAX_IMAGE_SIZE = 16384
DEFAULT_DELAY = 0.05

_EXTENSION_RECORD = 0x21
_IMAGE_RECORD = 0x2C
_TRAILER_RECORD = 0x3B
_GRAPHICS_EXTENSION = 0xF9
_MAX_CODES = 4096
_MAX_CODE_SIZE = 12
_INTERLACE_PASSES = ((0, 8), (4, 8), (2, 4), (1, 2))


class GifError(CorruptDataError):
    """Raised when GIF data cannot be decoded."""


class Disposal(IntEnum):
    UNSPECIFIED = 0
    DO_NOT_DISPOSE = 1
    BACKGROUND = 2
    PREVIOUS = 3


@dataclass
class _GraphicsControl:
    disposal: int = Disposal.UNSPECIFIED
    user_input: bool = False
    delay_time: int = 0
    transparent: int | None = None

    def update(self, block: bytes) -> None:
        if len(block) != 4:
            raise GifError("Invalid graphics control extension.")
        packed = block[0]
        self.disposal = (packed >> 2) & 0x07
        self.user_input = bool(packed & 0x02)
        self.delay_time = block[1] | (block[2] << 8)
        self.transparent = block[3] if packed & 0x01 else None


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def read(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise GifError("Unexpected end of GIF data.")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.read(1)[0]

    def u16(self) -> int:
        return int.from_bytes(self.read(2), "little")

    def sub_blocks(self) -> Iterator[bytes]:
        while True:
            length = self.byte()
            if length == 0:
                return
            yield self.read(length)

    def color_table(self, bits: int) -> list[bytes]:
        raw = self.read(3 * (1 << bits))
        return [raw[start:start + 3] for start in range(0, len(raw), 3)]


def _lzw_decode(data: bytes, min_code_size: int, pixel_count: int) -> bytes:
    """Decode GIF LZW ``data`` into ``pixel_count`` color indices."""
    if not 1 <= min_code_size <= 8:
        raise GifError("Invalid LZW minimum code size.")
    clear = 1 << min_code_size
    end = clear + 1
    base = [bytes([value]) for value in range(clear)] + [b"", b""]
    table = list(base)
    size = min_code_size + 1
    previous: bytes | None = None
    out = bytearray()
    buffer = 0
    bits = 0
    for byte in data:
        buffer |= byte << bits
        bits += 8
        while bits >= size:
            code = buffer & ((1 << size) - 1)
            buffer >>= size
            bits -= size
            if code == clear:
                table = list(base)
                size = min_code_size + 1
                previous = None
                continue
            if code == end:
                raise GifError("Image data ended too soon.")
            if code < len(table):
                entry = table[code]
                if previous is not None and len(table) < _MAX_CODES:
                    table.append(previous + entry[:1])
            elif code == len(table) and previous is not None:
                entry = previous + previous[:1]
                table.append(entry)
            else:
                raise GifError("Invalid LZW code.")
            out += entry
            previous = entry
            if len(table) == (1 << size) and size < _MAX_CODE_SIZE:
                size += 1
            if len(out) >= pixel_count:
                return bytes(out[:pixel_count])
    raise GifError("Image data ended too soon.")


def _interlaced_row_order(height: int) -> list[int]:
    return [
        row
        for offset, step in _INTERLACE_PASSES
        for row in range(offset, height, step)
    ]


class GifLoader:
    """Decodes every frame of a GIF, composited onto the logical screen."""

    def load_from_file(
        self, frames: ImageFrames, file: BinaryIO, max_frames: int = 0
    ) -> None:
        self._decode(frames, file.read(), max_frames)

    def load_from_buffer(
        self, frames: ImageFrames, data: bytes, max_frames: int = 0
    ) -> None:
        self._decode(frames, bytes(data), max_frames)

    def _decode(self, frames: ImageFrames, data: bytes, max_frames: int) -> None:
        reader = _Reader(data)
        if reader.read(6)[:3] != b"GIF":
            raise GifError("Data is not in GIF format.")
        width = reader.u16()
        height = reader.u16()
        packed = reader.byte()
        reader.read(2)  # Background color index and pixel aspect ratio.
        global_colors = reader.color_table((packed & 0x07) + 1) if packed & 0x80 else None

        screen = bytearray(width * height * BYTES_PER_PIXEL)
        control = _GraphicsControl()
        last_undisposed: Image | None = None
        count = 0

        while True:
            record = reader.byte()
            if record == _EXTENSION_RECORD:
                function = reader.byte()
                for block in reader.sub_blocks():
                    if function == _GRAPHICS_EXTENSION:
                        control.update(block)
            elif record == _IMAGE_RECORD:
                image = self._draw_image(reader, screen, width, height, global_colors, control)
                delay = control.delay_time / 100.0 or DEFAULT_DELAY
                frames.add_frame(image, delay)
                count += 1
                if control.disposal == Disposal.BACKGROUND:
                    self._restore(screen, None, width, *self._last_rect)
                elif control.disposal == Disposal.PREVIOUS:
                    source = last_undisposed.data if last_undisposed is not None else None
                    self._restore(screen, source, width, *self._last_rect)
                else:
                    last_undisposed = image
                control = _GraphicsControl()
            elif record != _TRAILER_RECORD:
                raise GifError("Wrong record type.")

            if count == max_frames and count > 0:
                break
            if record == _TRAILER_RECORD:
                break

        if count == 0:
            raise GifError("No frames found.")

    def _draw_image(
        self,
        reader: _Reader,
        screen: bytearray,
        width: int,
        height: int,
        global_colors: list[bytes] | None,
        control: _GraphicsControl,
    ) -> Image:
        left, top = reader.u16(), reader.u16()
        frame_width, frame_height = reader.u16(), reader.u16()
        packed = reader.byte()
        local_colors = reader.color_table((packed & 0x07) + 1) if packed & 0x80 else None
        interlaced = bool(packed & 0x40)

        if not (0 < frame_width <= MAX_IMAGE_SIZE and 0 < frame_height <= MAX_IMAGE_SIZE):
            raise GifError("Invalid image size.")
        if left + frame_width > width or top + frame_height > height:
            raise GifError("Image exceeds the logical screen.")
        colors = local_colors if local_colors is not None else global_colors
        if colors is None:
            raise GifError("No color map for image.")

        min_code_size = reader.byte()
        data = b"".join(reader.sub_blocks())
        indices = _lzw_decode(data, min_code_size, frame_width * frame_height)
        rows = [
            indices[start:start + frame_width]
            for start in range(0, len(indices), frame_width)
        ]
        if interlaced:
            ordered: list[bytes] = [b""] * frame_height
            for target, row in zip(_interlaced_row_order(frame_height), rows):
                ordered[target] = row
            rows = ordered

        for y, row in enumerate(rows, start=top):
            for x, index in enumerate(row, start=left):
                if index == control.transparent:
                    continue
                if index >= len(colors):
                    raise GifError("Color index out of range.")
                pos = (y * width + x) * BYTES_PER_PIXEL
                screen[pos:pos + 3] = colors[index]
                screen[pos + 3] = 255

        self._last_rect = (left, top, frame_width, frame_height)
        return Image(width, height, bytes(screen))

    @staticmethod
    def _restore(
        screen: bytearray,
        source: bytes | None,
        width: int,
        left: int,
        top: int,
        frame_width: int,
        frame_height: int,
    ) -> None:
        row_size = frame_width * BYTES_PER_PIXEL
        for y in range(top, top + frame_height):
            start = (y * width + left) * BYTES_PER_PIXEL
            end = start + row_size
            screen[start:end] = source[start:end] if source is not None else bytes(row_size)


def load_gif(
    frames: ImageFrames,
    source: Union[str, "os.PathLike[str]", bytes, bytearray],
    max_frames: int = 0,
) -> None:
    """Decode a GIF from a file path or from bytes into ``frames``."""
    loader = GifLoader()
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb") as file:
            loader.load_from_file(frames, file, max_frames)
    else:
        loader.load_from_buffer(frames, source, max_frames)