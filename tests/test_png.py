import io
import struct
import zlib

import numpy as np
import pytest
from PIL import Image

from pixelwrite.deflate import crc32
from pixelwrite.png import encode_png, write_png

MODES = {1: "L", 2: "LA", 3: "RGB", 4: "RGBA"}


def _image(width, height, comp, seed=0):
    rng = np.random.default_rng(seed)
    base = rng.integers(0, 256, size=(height, width, comp), dtype=np.uint8)
    # add some smooth structure so different filters win on different rows
    ramp = (np.arange(width, dtype=np.uint16)[None, :, None] * 3) % 256
    base[: height // 2] = ramp[:, :, :].astype(np.uint8).repeat(comp, axis=2)[:, :, :comp]
    return base


def _decode(data):
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def _chunks(data):
    pos = 8
    while pos < len(data):
        (length,) = struct.unpack(">I", data[pos:pos + 4])
        tag = data[pos + 4:pos + 8]
        payload = data[pos + 8:pos + 8 + length]
        (crc,) = struct.unpack(">I", data[pos + 8 + length:pos + 12 + length])
        yield tag, payload, crc
        pos += 12 + length


def test_signature_matches_png_magic():
    data = encode_png(bytes(12), 2, 2, 3)
    assert data[:8] == bytes((137, 80, 78, 71, 13, 10, 26, 10))


def test_chunk_order_and_crcs():
    data = encode_png(_image(5, 4, 3).tobytes(), 5, 4, 3)
    chunks = list(_chunks(data))
    assert [tag for tag, _, _ in chunks] == [b"IHDR", b"IDAT", b"IEND"]
    for tag, payload, crc in chunks:
        assert crc == crc32(tag + payload)


@pytest.mark.parametrize("comp,color_type", [(1, 0), (2, 4), (3, 2), (4, 6)])
def test_ihdr_fields(comp, color_type):
    data = encode_png(bytes(7 * 3 * comp), 7, 3, comp)
    _, payload, _ = next(_chunks(data))
    assert struct.unpack(">IIBBBBB", payload) == (7, 3, 8, color_type, 0, 0, 0)


@pytest.mark.parametrize("comp", [1, 2, 3, 4])
def test_round_trip_through_pillow(comp):
    pixels = _image(13, 9, comp, seed=comp)
    img = _decode(encode_png(pixels.tobytes(), 13, 9, comp))
    assert img.mode == MODES[comp]
    decoded = np.asarray(img).reshape(9, 13, comp)
    assert np.array_equal(decoded, pixels)


@pytest.mark.parametrize("force", [0, 1, 2, 3, 4])
def test_forced_filters_round_trip_and_are_recorded(force):
    pixels = _image(11, 6, 3, seed=7)
    data = encode_png(pixels.tobytes(), 11, 6, 3, force_filter=force)
    assert np.array_equal(np.asarray(_decode(data)), pixels)
    idat = b"".join(p for t, p, _ in _chunks(data) if t == b"IDAT")
    raw = zlib.decompress(idat)
    row = 11 * 3 + 1
    assert [raw[j * row] for j in range(6)] == [force] * 6


def test_force_filter_five_or_more_falls_back_to_adaptive():
    pixels = _image(10, 5, 4, seed=3).tobytes()
    assert encode_png(pixels, 10, 5, 4, force_filter=5) == encode_png(pixels, 10, 5, 4)


def test_adaptive_filter_bytes_are_valid():
    pixels = _image(16, 8, 4, seed=11)
    data = encode_png(pixels.tobytes(), 16, 8, 4)
    idat = b"".join(p for t, p, _ in _chunks(data) if t == b"IDAT")
    raw = zlib.decompress(idat)
    row = 16 * 4 + 1
    assert len(raw) == row * 8
    assert all(raw[j * row] in range(5) for j in range(8))


def test_constant_image_chooses_no_filter_on_first_row():
    data = encode_png(bytes(8 * 4 * 3), 8, 4, 3)
    idat = b"".join(p for t, p, _ in _chunks(data) if t == b"IDAT")
    raw = zlib.decompress(idat)
    assert raw[0] == 0
    assert set(raw) == {0}


def test_stride_selects_sub_rectangle():
    full = _image(10, 6, 3, seed=5)
    sub = full[:, 2:7, :]
    data = encode_png(full[:, 2:].tobytes(), 5, 6, 3, stride=8 * 3)
    assert np.array_equal(np.asarray(_decode(data)), sub)


def test_flip_vertically():
    pixels = _image(6, 5, 4, seed=9)
    data = encode_png(pixels.tobytes(), 6, 5, 4, flip_vertically=True)
    assert np.array_equal(np.asarray(_decode(data)), pixels[::-1])


def test_numpy_array_input_matches_bytes_input():
    pixels = _image(4, 4, 3, seed=2)
    assert encode_png(pixels, 4, 4, 3) == encode_png(pixels.tobytes(), 4, 4, 3)


@pytest.mark.parametrize("level", [1, 5, 8, 20])
def test_compression_levels_decode_identically(level):
    pixels = _image(20, 10, 1, seed=level)
    data = encode_png(pixels.tobytes(), 20, 10, 1, compression_level=level)
    assert np.array_equal(np.asarray(_decode(data)), pixels[:, :, 0])


def test_write_png_writes_same_bytes(tmp_path):
    pixels = _image(5, 5, 3, seed=1).tobytes()
    target = tmp_path / "out.png"
    write_png(target, pixels, 5, 5, 3)
    assert target.read_bytes() == encode_png(pixels, 5, 5, 3)


@pytest.mark.parametrize("comp", [0, 5])
def test_invalid_components(comp):
    with pytest.raises(ValueError):
        encode_png(bytes(100), 2, 2, comp)


def test_short_data_rejected():
    with pytest.raises(ValueError):
        encode_png(bytes(10), 4, 4, 3)


def test_stride_smaller_than_row_rejected():
    with pytest.raises(ValueError):
        encode_png(bytes(100), 4, 2, 3, stride=5)