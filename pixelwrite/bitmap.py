"""Uncompressed BMP and (optionally RLE-compressed) TGA encoding."""

from __future__ import annotations

import os
import struct

import numpy as np

__all__ = ["encode_bmp", "write_bmp", "encode_tga", "write_tga"]

_MASK32 = 0xFFFFFFFF

# Channel order of each pixel as stored in a TGA file (BGR with trailing alpha).
_TGA_CHANNELS = {1: [0], 2: [0, 1], 3: [2, 1, 0], 4: [2, 1, 0, 3]}

_RLE_MAX = 128


def _pixel_array(pixels, width: int, height: int, components: int) -> np.ndarray:
    """Validate the arguments and return the pixels as a (height, width, components) array."""
    if components not in (1, 2, 3, 4):
        raise ValueError(f"components must be 1, 2, 3 or 4, not {components}")
    if width < 0 or height < 0:
        raise ValueError("width and height must not be negative")
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        data = np.frombuffer(bytes(pixels), dtype=np.uint8)
    else:
        data = np.asarray(pixels).astype(np.uint8).ravel()
    needed = width * height * components
    if len(data) < needed:
        raise ValueError("pixel data is too short for the given dimensions")
    return data[:needed].reshape(height, width, components)


def _file_row_order(image: np.ndarray, flip_vertically: bool) -> np.ndarray:
    """Rows are stored bottom-up unless the image is flipped."""
    return image if flip_vertically else image[::-1]


def encode_bmp(
    pixels,
    width: int,
    height: int,
    components: int,
    *,
    flip_vertically: bool = False,
) -> bytes:
    """Encode 8-bit interleaved pixels as a BMP file and return its bytes.

    Grey images are expanded to 24-bit RGB and grey alpha is dropped;
    RGBA images are written as 32-bit BGRA with a V4 header.
    """
    image = _pixel_array(pixels, width, height, components)
    rows = _file_row_order(image, flip_vertically)

    if components != 4:
        pad = (-width * 3) & 3
        if components in (1, 2):
            bgr = np.repeat(rows[..., 0:1], 3, axis=2)
        else:
            bgr = rows[..., ::-1]
        body = np.concatenate(
            (bgr.reshape(height, width * 3), np.zeros((height, pad), dtype=np.uint8)),
            axis=1,
        )
        file_size = (14 + 40 + (width * 3 + pad) * height) & _MASK32
        header = struct.pack("<2sIHHI", b"BM", file_size, 0, 0, 14 + 40)
        info = struct.pack("<IIIHHIIIIII", 40, width, height, 1, 24, 0, 0, 0, 0, 0, 0)
        return header + info + body.tobytes()

    bgra = rows[..., [2, 1, 0, 3]]
    file_size = (14 + 108 + width * height * 4) & _MASK32
    header = struct.pack("<2sIHHI", b"BM", file_size, 0, 0, 14 + 108)
    info = struct.pack(
        "<IIIHHIIIIII",
        108, width, height, 1, 32, 3, 0, 0, 0, 0, 0,
    )
    masks = struct.pack("<IIII", 0xFF0000, 0xFF00, 0xFF, 0xFF000000)
    color_space = struct.pack("<I", 0)
    endpoints = struct.pack("<9I", *([0] * 9))
    gamma = struct.pack("<III", 0, 0, 0)
    return header + info + masks + color_space + endpoints + gamma + bgra.tobytes()


def write_bmp(
    path: str | os.PathLike,
    pixels,
    width: int,
    height: int,
    components: int,
    *,
    flip_vertically: bool = False,
) -> None:
    """Encode pixels as BMP and write the file at ``path``."""
    encoded = encode_bmp(pixels, width, height, components, flip_vertically=flip_vertically)
    with open(path, "wb") as handle:
        handle.write(encoded)


def _rle_row(row: list[bytes]) -> bytes:
    """Run-length encode one scanline of already converted pixels."""
    out = bytearray()
    count = len(row)
    i = 0
    while i < count:
        length = 1
        repeat = False
        if i < count - 1:
            length = 2
            repeat = row[i] == row[i + 1]
            if repeat:
                k = i + 2
                while k < count and length < _RLE_MAX and row[k] == row[i]:
                    length += 1
                    k += 1
            else:
                prev = i
                k = i + 2
                while k < count and length < _RLE_MAX:
                    if row[prev] != row[k]:
                        prev += 1
                        length += 1
                    else:
                        length -= 1
                        break
                    k += 1
        if repeat:
            out.append(0x80 | (length - 1))
            out += row[i]
        else:
            out.append(length - 1)
            out += b"".join(row[i:i + length])
        i += length
    return bytes(out)


def encode_tga(
    pixels,
    width: int,
    height: int,
    components: int,
    *,
    rle: bool = True,
    flip_vertically: bool = False,
) -> bytes:
    """Encode 8-bit interleaved pixels as a TGA file and return its bytes.

    Grey images (1 or 2 components) are written as grey TGA, colour images
    as BGR(A). With ``rle`` the pixel data is run-length compressed.
    """
    image = _pixel_array(pixels, width, height, components)
    has_alpha = 1 if components in (2, 4) else 0
    color_bytes = components - has_alpha
    image_type = 3 if color_bytes < 2 else 2
    if rle:
        image_type += 8

    header = struct.pack(
        "<BBBHHBHHHHBB",
        0, 0, image_type,
        0, 0, 0,
        0, 0, width & 0xFFFF, height & 0xFFFF,
        (color_bytes + has_alpha) * 8, has_alpha * 8,
    )

    rows = _file_row_order(image, flip_vertically)[..., _TGA_CHANNELS[components]]
    if not rle:
        return header + np.ascontiguousarray(rows).tobytes()

    body = b"".join(_rle_row([pixel.tobytes() for pixel in row]) for row in rows)
    return header + body


def write_tga(
    path: str | os.PathLike,
    pixels,
    width: int,
    height: int,
    components: int,
    *,
    rle: bool = True,
    flip_vertically: bool = False,
) -> None:
    """Encode pixels as TGA and write the file at ``path``."""
    encoded = encode_tga(
        pixels, width, height, components, rle=rle, flip_vertically=flip_vertically
    )
    with open(path, "wb") as handle:
        handle.write(encoded)