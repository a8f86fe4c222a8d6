import io
import struct

import pytest

from goostframes.gif import DEFAULT_DELAY, GifError, GifLoader, load_gif
from goostframes.image_frames import CorruptDataError, ImageFrames

BLACK = (0, 0, 0)
RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
PALETTE = [BLACK, RED, GREEN, BLUE]

TRANSPARENT_PIXEL_GIF = (
    b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff"
    b"!\xf9\x04\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00"
    b"\x02\x02D\x01\x00;"
)


def _table_bits(palette):
    return max(1, (len(palette) - 1).bit_length())


def _color_table(palette):
    bits = _table_bits(palette)
    padded = list(palette) + [BLACK] * ((1 << bits) - len(palette))
    return bytes(channel for color in padded for channel in color)


def _pack_codes(codes):
    buffer = 0
    bits = 0
    out = bytearray()
    for code, size in codes:
        buffer |= code << bits
        bits += size
        while bits >= 8:
            out.append(buffer & 0xFF)
            buffer >>= 8
            bits -= 8
    if bits:
        out.append(buffer & 0xFF)
    return bytes(out)


def _lzw_encode(indices, min_code_size):
    clear = 1 << min_code_size
    end = clear + 1
    size = min_code_size + 1
    table = {bytes([value]): value for value in range(clear)}
    next_code = end + 1
    codes = [(clear, size)]
    current = b""
    for index in indices:
        extended = current + bytes([index])
        if extended in table:
            current = extended
            continue
        codes.append((table[current], size))
        if next_code < 4096:
            table[extended] = next_code
            next_code += 1
            if next_code == (1 << size) + 1 and size < 12:
                size += 1
        current = bytes([index])
    if current:
        codes.append((table[current], size))
    codes.append((end, size))
    return _pack_codes(codes)


def _sub_blocks(data):
    out = bytearray()
    for start in range(0, len(data), 255):
        chunk = data[start:start + 255]
        out.append(len(chunk))
        out += chunk
    out.append(0)
    return bytes(out)


def _interlace_rows(height):
    return [
        row
        for offset, step in ((0, 8), (4, 8), (2, 4), (1, 2))
        for row in range(offset, height, step)
    ]


def _frame(width, height, indices, *, left=0, top=0, delay=0, disposal=0,
           transparent=None, palette=None, interlace=False, control=True):
    out = bytearray()
    if control:
        packed = (disposal << 2) | (1 if transparent is not None else 0)
        out += b"\x21\xf9\x04" + bytes([packed]) + struct.pack("<H", delay)
        out += bytes([transparent or 0]) + b"\x00"
    flags = 0
    if palette:
        flags |= 0x80 | (_table_bits(palette) - 1)
    if interlace:
        flags |= 0x40
    out += b"," + struct.pack("<HHHHB", left, top, width, height, flags)
    if palette:
        out += _color_table(palette)
    stream = list(indices)
    if interlace:
        rows = [indices[r * width:(r + 1) * width] for r in range(height)]
        stream = [value for r in _interlace_rows(height) for value in rows[r]]
    min_code_size = max(2, max(stream).bit_length())
    out.append(min_code_size)
    out += _sub_blocks(_lzw_encode(stream, min_code_size))
    return bytes(out)


def _gif(width, height, *frames, palette=PALETTE, trailer=True):
    flags = (0x80 | (_table_bits(palette) - 1)) if palette else 0
    out = bytearray(b"GIF89a") + struct.pack("<HHBBB", width, height, flags, 0, 0)
    if palette:
        out += _color_table(palette)
    for frame in frames:
        out += frame
    if trailer:
        out += b";"
    return bytes(out)


def _rgba(palette, indices):
    return b"".join(bytes(palette[index]) + b"\xff" for index in indices)


def _decode(data, max_frames=0):
    frames = ImageFrames()
    load_gif(frames, data, max_frames)
    return frames


def test_transparent_pixel_gif():
    frames = _decode(TRANSPARENT_PIXEL_GIF)
    assert len(frames) == 1
    assert frames[0].image.size == (1, 1)
    assert frames[0].image.data == bytes(4)
    assert frames[0].delay == DEFAULT_DELAY


def test_decodes_indices_through_global_palette():
    indices = [0, 1, 2, 3, 3, 2, 1, 0, 1, 1, 2, 2]
    frames = _decode(_gif(4, 3, _frame(4, 3, indices)))
    assert frames[0].image.size == (4, 3)
    assert frames[0].image.data == _rgba(PALETTE, indices)


@pytest.mark.parametrize(
    "indices",
    [
        [1] * 256,
        [(x * y) % 4 for y in range(16) for x in range(16)],
        [(x // 3 + y) % 4 for y in range(16) for x in range(16)],
    ],
)
def test_code_table_growth(indices):
    frames = _decode(_gif(16, 16, _frame(16, 16, indices)))
    assert frames[0].image.data == _rgba(PALETTE, indices)


def test_full_byte_palette():
    palette = [(value, value, 255 - value) for value in range(256)]
    indices = list(range(256))
    frames = _decode(_gif(16, 16, _frame(16, 16, indices), palette=palette))
    assert frames[0].image.data == _rgba(palette, indices)


def test_interlaced_matches_progressive():
    indices = [(r * 3 + c) % 4 for r in range(10) for c in range(3)]
    plain = _decode(_gif(3, 10, _frame(3, 10, indices)))
    interlaced = _decode(_gif(3, 10, _frame(3, 10, indices, interlace=True)))
    assert interlaced[0].image.data == plain[0].image.data
    assert interlaced[0].image.data == _rgba(PALETTE, indices)


def test_local_palette_overrides_global():
    local = [(10, 20, 30), (40, 50, 60)]
    frames = _decode(_gif(2, 1, _frame(2, 1, [1, 0], palette=local)))
    assert frames[0].image.data == _rgba(local, [1, 0])


def test_delay_from_graphics_control():
    frames = _decode(_gif(1, 1, _frame(1, 1, [1], delay=25), _frame(1, 1, [2])))
    assert frames[0].delay == pytest.approx(0.25)
    assert frames[1].delay == DEFAULT_DELAY


def test_transparent_index_keeps_previous_pixels():
    first = [1, 2, 3, 0]
    frames = _decode(_gif(2, 2, _frame(2, 2, first), _frame(2, 2, [0, 0, 0, 0], transparent=0)))
    assert frames[1].image.data == frames[0].image.data


def test_frame_drawn_at_offset():
    frames = _decode(_gif(3, 3, _frame(1, 1, [2], left=2, top=1)))
    assert frames[0].image.data == bytes(20) + bytes(GREEN) + b"\xff" + bytes(12)


def test_dispose_background_clears_area():
    data = _gif(2, 2, _frame(2, 2, [1] * 4, disposal=2), _frame(1, 1, [2], left=1, top=1))
    frames = _decode(data)
    assert frames[0].image.data == _rgba(PALETTE, [1] * 4)
    assert frames[1].image.data == bytes(12) + bytes(GREEN) + b"\xff"


def test_dispose_previous_restores_last_undisposed_frame():
    data = _gif(
        2, 2,
        _frame(2, 2, [1] * 4),
        _frame(2, 2, [0] * 4, disposal=3),
        _frame(1, 1, [0]),
    )
    frames = _decode(data)
    assert frames[1].image.data == _rgba(PALETTE, [0] * 4)
    assert frames[2].image.data == _rgba(PALETTE, [0, 1, 1, 1])


def test_dispose_previous_without_undisposed_frame_clears():
    data = _gif(2, 2, _frame(2, 2, [2] * 4, disposal=3), _frame(1, 1, [1]))
    frames = _decode(data)
    assert frames[1].image.data == _rgba(PALETTE, [1]) + bytes(12)


def test_other_extensions_are_ignored():
    comment = b"\x21\xfe\x05hello\x00"
    frames = _decode(_gif(1, 1, comment + _frame(1, 1, [3])))
    assert frames[0].image.data == _rgba(PALETTE, [3])


def test_max_frames_limits_count():
    data = _gif(1, 1, _frame(1, 1, [1]), _frame(1, 1, [2]), _frame(1, 1, [3]))
    assert len(_decode(data, max_frames=2)) == 2
    assert len(_decode(data)) == 3


def test_max_frames_stops_before_trailing_data():
    data = _gif(1, 1, _frame(1, 1, [1]), _frame(1, 1, [2]), trailer=False) + b"\x99\x99"
    assert len(_decode(data, max_frames=2)) == 2
    with pytest.raises(GifError):
        _decode(data)


@pytest.mark.parametrize(
    "data",
    [
        b"\x89PNG\r\n\x1a\n\x00\x00\x00\x00\x00",
        _gif(1, 1),
        _gif(1, 1, _frame(1, 1, [1]), trailer=False),
        _gif(1, 1, b"\x99"),
        _gif(1, 1, b"\x21\xf9\x03\x00\x00\x00\x00" + _frame(1, 1, [1], control=False)),
        _gif(2, 2, _frame(2, 2, [1] * 4, left=1)),
        _gif(1, 1, _frame(1, 1, [1]), palette=None),
        _gif(1, 1, _frame(1, 1, [3]), palette=[BLACK, RED]),
        _gif(1, 1, _frame(0, 1, [0])),
    ],
    ids=[
        "not-gif", "no-frames", "truncated", "wrong-record", "bad-control",
        "outside-screen", "no-color-map", "index-out-of-range", "zero-width",
    ],
)
def test_invalid_data_raises(data):
    with pytest.raises(GifError):
        _decode(data)


def test_errors_are_corrupt_data():
    with pytest.raises(CorruptDataError):
        ImageFrames().load_gif_from_buffer(_gif(1, 1))


def test_loader_from_file_object_and_buffer():
    data = _gif(2, 1, _frame(2, 1, [3, 1]))
    loader = GifLoader()
    from_file = ImageFrames()
    loader.load_from_file(from_file, io.BytesIO(data))
    from_buffer = ImageFrames()
    loader.load_from_buffer(from_buffer, bytearray(data))
    assert from_file[0].image.data == _rgba(PALETTE, [3, 1])
    assert from_buffer[0].image.data == from_file[0].image.data


def test_load_gif_from_path(tmp_path):
    path = tmp_path / "anim.gif"
    path.write_bytes(_gif(1, 1, _frame(1, 1, [1]), _frame(1, 1, [2])))
    by_path = ImageFrames()
    load_gif(by_path, path)
    by_str = ImageFrames()
    load_gif(by_str, str(path), max_frames=1)
    assert len(by_path) == 2
    assert len(by_str) == 1
    assert by_path[1].image.data == _rgba(PALETTE, [2])


def test_load_gif_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_gif(ImageFrames(), tmp_path / "missing.gif")