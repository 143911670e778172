import numpy as np
import pytest

from pixelwrite.hdr import encode_hdr, linear_to_rgbe, write_hdr


def _decode(blob: bytes):
    """Parse an HDR file into (width, height, list of rows of RGBE tuples)."""
    assert blob.startswith(b"#?RADIANCE\n")
    head_end = blob.index(b"\n\n") + 2
    line_end = blob.index(b"\n", head_end)
    parts = blob[head_end:line_end].decode("ascii").split()
    assert parts[0] == "-Y" and parts[2] == "+X"
    height, width = int(parts[1]), int(parts[3])
    pos = line_end + 1
    rows = []
    for _ in range(height):
        if width < 8 or width >= 32768:
            chunk = blob[pos:pos + 4 * width]
            pos += 4 * width
            rows.append([tuple(chunk[i:i + 4]) for i in range(0, 4 * width, 4)])
            continue
        assert blob[pos:pos + 4] == bytes((2, 2, width >> 8, width & 0xFF))
        pos += 4
        planes = []
        for _ in range(4):
            plane = bytearray()
            while len(plane) < width:
                count = blob[pos]
                pos += 1
                if count > 128:
                    plane += bytes([blob[pos]]) * (count - 128)
                    pos += 1
                else:
                    assert count > 0
                    plane += blob[pos:pos + count]
                    pos += count
            assert len(plane) == width
            planes.append(plane)
        rows.append([tuple(p[i] for p in planes) for i in range(width)])
    assert pos == len(blob)
    return width, height, rows


def _expected_rows(image):
    return [[linear_to_rgbe(*map(float, px[:3])) for px in row] for row in image]


def test_zero_is_all_zero_bytes():
    assert linear_to_rgbe(0.0, 0.0, 0.0) == (0, 0, 0, 0)


def test_unit_white_worked_example():
    assert linear_to_rgbe(1.0, 1.0, 1.0) == (128, 128, 128, 129)


@pytest.mark.parametrize("color", [(0.3, 2.5, 0.01), (100.0, 3.0, 50.0), (0.001, 0.0, 0.0005)])
def test_rgbe_reconstructs_within_precision(color):
    r, g, b, e = linear_to_rgbe(*color)
    scale = 2.0 ** (e - 128) / 256.0
    peak = max(color)
    assert max(r, g, b) >= 128
    for mantissa, value in zip((r, g, b), color):
        assert abs(mantissa * scale - value) <= peak / 128


def test_header_and_dimensions_line():
    blob = encode_hdr(np.ones(3 * 2 * 3), 3, 2, 3)
    assert b"FORMAT=32-bit_rle_rgbe\n" in blob
    assert b"EXPOSURE=          1.0000000000000\n\n-Y 2 +X 3\n" in blob


def test_narrow_image_is_uncompressed():
    rng = np.random.default_rng(1)
    image = rng.random((4, 5, 3)).astype(np.float32)
    blob = encode_hdr(image, 5, 4, 3)
    width, height, rows = _decode(blob)
    assert (width, height) == (5, 4)
    assert rows == _expected_rows(image)


def test_wide_random_image_round_trips():
    rng = np.random.default_rng(2)
    image = (rng.random((3, 300, 3)) * 10).astype(np.float32)
    _, _, rows = _decode(encode_hdr(image, 300, 3, 3))
    assert rows == _expected_rows(image)


def test_constant_scanline_compresses_with_long_runs():
    image = np.full((2, 300, 3), 0.5, dtype=np.float32)
    blob = encode_hdr(image, 300, 2, 3)
    header_len = blob.index(b"+X 300\n") + len(b"+X 300\n")
    assert len(blob) - header_len < 2 * 300 * 4
    _, _, rows = _decode(blob)
    assert rows == _expected_rows(image)


def test_mixed_runs_and_literals_round_trip():
    row = np.concatenate([np.full(20, 2.0), np.linspace(0.1, 5.0, 30), np.full(10, 0.25)])
    image = np.stack([row, row[::-1], row * 0.5], axis=1)[None, :, :].astype(np.float32)
    _, _, rows = _decode(encode_hdr(image, 60, 1, 3))
    assert rows == _expected_rows(image)


def test_grey_is_replicated_and_alpha_dropped():
    grey = np.linspace(0.1, 4.0, 10, dtype=np.float32).reshape(1, 10, 1)
    ya = np.concatenate([grey, np.full_like(grey, 9.0)], axis=2)
    _, _, rows = _decode(encode_hdr(grey, 10, 1, 1))
    assert all(px[0] == px[1] == px[2] for px in rows[0])
    assert encode_hdr(ya, 10, 1, 2) == encode_hdr(grey, 10, 1, 1)
    rgb = np.repeat(grey, 3, axis=2)
    rgba = np.concatenate([rgb, np.zeros_like(grey)], axis=2)
    assert encode_hdr(rgba, 10, 1, 4) == encode_hdr(rgb, 10, 1, 3)


def test_flip_vertically_reverses_rows():
    rng = np.random.default_rng(3)
    image = rng.random((4, 12, 3)).astype(np.float32)
    _, _, normal = _decode(encode_hdr(image, 12, 4, 3))
    _, _, flipped = _decode(encode_hdr(image, 12, 4, 3, flip_vertically=True))
    assert flipped == normal[::-1]


@pytest.mark.parametrize(
    "width, height, components",
    [(0, 2, 3), (2, 0, 3), (-1, 2, 3), (2, 2, 5), (2, 2, 0)],
)
def test_invalid_arguments_raise(width, height, components):
    with pytest.raises(ValueError):
        encode_hdr(np.ones(64), width, height, components)


def test_missing_or_short_data_raises():
    with pytest.raises(ValueError):
        encode_hdr(None, 2, 2, 3)
    with pytest.raises(ValueError):
        encode_hdr(np.ones(5), 2, 2, 3)


def test_write_hdr_matches_encode(tmp_path):
    image = np.linspace(0.0, 3.0, 9 * 2 * 3, dtype=np.float32)
    target = tmp_path / "out.hdr"
    write_hdr(target, image, 9, 2, 3, flip_vertically=True)
    assert target.read_bytes() == encode_hdr(image, 9, 2, 3, flip_vertically=True)