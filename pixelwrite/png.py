"""PNG encoding with per-row adaptive filtering."""

from __future__ import annotations

import os
import struct

import numpy as np

from pixelwrite.deflate import crc32, zlib_compress

__all__ = ["encode_png", "write_png"]

PNG_SIGNATURE = bytes((137, 80, 78, 71, 13, 10, 26, 10))

_COLOR_TYPES = {1: 0, 2: 4, 3: 2, 4: 6}

# Filter types 3 and 4 on the first row become left-only variants (5 and 6).
_FIRST_ROW_MAP = (0, 1, 0, 5, 6)


def _as_uint8(pixels) -> np.ndarray:
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        return np.frombuffer(bytes(pixels), dtype=np.uint8)
    return np.asarray(pixels).astype(np.uint8).ravel()


def _paeth(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    p = a + b - c
    pa = np.abs(p - a)
    pb = np.abs(p - b)
    pc = np.abs(p - c)
    return np.where((pa <= pb) & (pa <= pc), a, np.where(pb <= pc, b, c))


def _filter_line(cur: np.ndarray, prev: np.ndarray | None, n: int, filter_type: int) -> np.ndarray:
    """Apply a PNG filter to one scanline; return the filtered bytes."""
    kind = filter_type if prev is not None else _FIRST_ROW_MAP[filter_type]
    if kind == 0:
        return cur.copy()

    x = cur.astype(np.int32)
    up = prev.astype(np.int32) if prev is not None else np.zeros_like(x)
    out = np.empty_like(x)

    head, tail = slice(0, n), slice(n, None)
    left = x[:-n] if len(x) > n else x[:0]
    up_left = up[:-n] if len(up) > n else up[:0]

    if kind == 1:
        out[head] = x[head]
        out[tail] = x[tail] - left
    elif kind == 2:
        out[:] = x - up
    elif kind == 3:
        out[head] = x[head] - (up[head] >> 1)
        out[tail] = x[tail] - ((left + up[tail]) >> 1)
    elif kind == 4:
        zeros = np.zeros_like(up[head])
        out[head] = x[head] - _paeth(zeros, up[head], zeros)
        out[tail] = x[tail] - _paeth(left, up[tail], up_left)
    elif kind == 5:
        out[head] = x[head]
        out[tail] = x[tail] - (left >> 1)
    else:  # kind == 6
        zeros = np.zeros_like(left)
        out[head] = x[head]
        out[tail] = x[tail] - _paeth(left, zeros, zeros)
    return (out & 0xFF).astype(np.uint8)


def _estimate(line: np.ndarray) -> int:
    return int(np.abs(line.view(np.int8).astype(np.int32)).sum())


def _chunk(tag: bytes, payload: bytes) -> bytes:
    body = tag + payload
    return struct.pack(">I", len(payload)) + body + struct.pack(">I", crc32(body))


def encode_png(
    pixels,
    width: int,
    height: int,
    components: int,
    stride: int = 0,
    *,
    compression_level: int = 8,
    force_filter: int = -1,
    flip_vertically: bool = False,
) -> bytes:
    """Encode 8-bit interleaved pixels as a PNG file and return its bytes.

    ``components`` is 1 (Y), 2 (YA), 3 (RGB) or 4 (RGBA). ``stride`` is the
    distance in bytes between row starts; 0 means tightly packed rows.
    ``force_filter`` in 0..4 forces one filter type; otherwise the filter is
    chosen per row by the smallest sum of absolute signed residuals.
    """
    if components not in _COLOR_TYPES:
        raise ValueError(f"components must be 1, 2, 3 or 4, not {components}")
    if width < 0 or height < 0:
        raise ValueError("width and height must not be negative")
    row_bytes = width * components
    if stride == 0:
        stride = row_bytes
    if stride < row_bytes:
        raise ValueError(f"stride {stride} is smaller than a row of {row_bytes} bytes")

    data = _as_uint8(pixels)
    if height and len(data) < stride * (height - 1) + row_bytes:
        raise ValueError("pixel data is too short for the given dimensions")

    if force_filter >= 5:
        force_filter = -1

    def source_row(y: int) -> np.ndarray:
        src = height - 1 - y if flip_vertically else y
        return data[src * stride:src * stride + row_bytes]

    filtered = bytearray()
    prev: np.ndarray | None = None
    for y in range(height):
        cur = source_row(y)
        if force_filter > -1:
            chosen = force_filter
            line = _filter_line(cur, prev, components, chosen)
        else:
            chosen, line, best_val = 0, None, None
            for candidate in range(5):
                trial = _filter_line(cur, prev, components, candidate)
                est = _estimate(trial)
                if best_val is None or est < best_val:
                    chosen, line, best_val = candidate, trial, est
        filtered.append(chosen)
        filtered += line.tobytes()
        prev = cur

    compressed = zlib_compress(bytes(filtered), compression_level)

    header = struct.pack(">IIBBBBB", width, height, 8, _COLOR_TYPES[components], 0, 0, 0)
    return b"".join(
        (
            PNG_SIGNATURE,
            _chunk(b"IHDR", header),
            _chunk(b"IDAT", compressed),
            _chunk(b"IEND", b""),
        )
    )


def write_png(
    path: str | os.PathLike,
    pixels,
    width: int,
    height: int,
    components: int,
    stride: int = 0,
    *,
    compression_level: int = 8,
    force_filter: int = -1,
    flip_vertically: bool = False,
) -> None:
    """Encode pixels as PNG and write the file at ``path``."""
    encoded = encode_png(
        pixels,
        width,
        height,
        components,
        stride,
        compression_level=compression_level,
        force_filter=force_filter,
        flip_vertically=flip_vertically,
    )
    with open(path, "wb") as handle:
        handle.write(encoded)