"""Radiance RGBE (.hdr) encoding with per-component run-length compression."""

from __future__ import annotations

import os

import numpy as np

__all__ = ["linear_to_rgbe", "encode_hdr", "write_hdr"]

_HEADER = b"#?RADIANCE\n# Written by pixelwrite\nFORMAT=32-bit_rle_rgbe\n"
_TINY = np.float32(1e-32)
_MAX_DUMP = 128
_MAX_RUN = 127


def _rgbe_array(linear: np.ndarray) -> np.ndarray:
    """Convert an (n, 3) float32 array of linear RGB into an (n, 4) uint8 RGBE array."""
    linear = linear.astype(np.float32, copy=False)
    maxcomp = linear.max(axis=1)
    result = np.zeros((len(linear), 4), dtype=np.uint8)
    live = maxcomp >= _TINY
    if not live.any():
        return result
    values = linear[live]
    peak = maxcomp[live]
    mantissa, exponent = np.frexp(peak)
    normalize = (mantissa.astype(np.float32) * np.float32(256.0)) / peak
    scaled = values * normalize[:, None]
    channels = np.trunc(scaled).astype(np.int64) & 0xFF
    result[live, :3] = channels.astype(np.uint8)
    result[live, 3] = ((exponent.astype(np.int64) + 128) & 0xFF).astype(np.uint8)
    return result


def linear_to_rgbe(red: float, green: float, blue: float) -> tuple[int, int, int, int]:
    """Convert one linear RGB colour to its four RGBE bytes."""
    row = np.array([[red, green, blue]], dtype=np.float32)
    return tuple(int(v) for v in _rgbe_array(row)[0])


def _linear_rows(values, width: int, height: int, components: int) -> np.ndarray:
    if values is None:
        raise ValueError("no pixel data given")
    if components not in (1, 2, 3, 4):
        raise ValueError(f"components must be 1, 2, 3 or 4, not {components}")
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive")
    data = np.asarray(values, dtype=np.float32).ravel()
    needed = width * height * components
    if len(data) < needed:
        raise ValueError("pixel data is too short for the given dimensions")
    image = data[:needed].reshape(height, width, components)
    if components >= 3:
        return image[..., :3]
    return np.repeat(image[..., 0:1], 3, axis=2)


def _rle_component(channel: bytes) -> bytes:
    """Run-length encode one component plane of a scanline."""
    out = bytearray()
    width = len(channel)
    x = 0
    while x < width:
        r = x
        while r + 2 < width:
            if channel[r] == channel[r + 1] == channel[r + 2]:
                break
            r += 1
        if r + 2 >= width:
            r = width
        while x < r:
            length = min(r - x, _MAX_DUMP)
            out.append(length)
            out += channel[x:x + length]
            x += length
        if r + 2 < width:
            while r < width and channel[r] == channel[x]:
                r += 1
            while x < r:
                length = min(r - x, _MAX_RUN)
                out.append(length + 128)
                out.append(channel[x])
                x += length
    return bytes(out)


def _scanline(rgbe: np.ndarray, width: int) -> bytes:
    if width < 8 or width >= 32768:
        return rgbe.tobytes()
    parts = [bytes((2, 2, (width >> 8) & 0xFF, width & 0xFF))]
    parts.extend(_rle_component(rgbe[:, c].tobytes()) for c in range(4))
    return b"".join(parts)


def encode_hdr(
    values,
    width: int,
    height: int,
    components: int,
    *,
    flip_vertically: bool = False,
) -> bytes:
    """Encode linear float pixels as a Radiance HDR file and return its bytes.

    Alpha is discarded; a single grey channel is replicated to RGB.
    Scanlines 8 to 32767 pixels wide are run-length compressed.
    """
    rows = _linear_rows(values, width, height, components)
    if flip_vertically:
        rows = rows[::-1]
    parts = [
        _HEADER,
        f"EXPOSURE=          1.0000000000000\n\n-Y {height} +X {width}\n".encode("ascii"),
    ]
    parts.extend(_scanline(_rgbe_array(row), width) for row in rows)
    return b"".join(parts)


def write_hdr(
    path: str | os.PathLike,
    values,
    width: int,
    height: int,
    components: int,
    *,
    flip_vertically: bool = False,
) -> None:
    """Encode linear float pixels as HDR and write the file at ``path``."""
    encoded = encode_hdr(values, width, height, components, flip_vertically=flip_vertically)
    with open(path, "wb") as handle:
        handle.write(encoded)