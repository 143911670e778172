"""Baseline JPEG encoding with standard Huffman tables and optional 4:2:0 chroma subsampling."""

from __future__ import annotations

import os

import numpy as np

__all__ = ["encode_jpeg", "write_jpeg"]

_ZIGZAG = np.array(
    (
        0, 1, 5, 6, 14, 15, 27, 28, 2, 4, 7, 13, 16, 26, 29, 42,
        3, 8, 12, 17, 25, 30, 41, 43, 9, 11, 18, 24, 31, 40, 44, 53,
        10, 19, 23, 32, 39, 45, 52, 54, 20, 22, 33, 38, 46, 51, 55, 60,
        21, 34, 37, 47, 50, 56, 59, 61, 35, 36, 48, 49, 57, 58, 62, 63,
    ),
    dtype=np.intp,
)

_DC_LUM_COUNTS = (0, 1, 5, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 0)
_DC_LUM_VALUES = tuple(range(12))
_AC_LUM_COUNTS = (0, 2, 1, 3, 3, 2, 4, 3, 5, 5, 4, 4, 0, 0, 1, 0x7D)
_AC_LUM_VALUES = (
    0x01, 0x02, 0x03, 0x00, 0x04, 0x11, 0x05, 0x12, 0x21, 0x31, 0x41, 0x06, 0x13, 0x51, 0x61, 0x07,
    0x22, 0x71, 0x14, 0x32, 0x81, 0x91, 0xA1, 0x08, 0x23, 0x42, 0xB1, 0xC1, 0x15, 0x52, 0xD1, 0xF0,
    0x24, 0x33, 0x62, 0x72, 0x82, 0x09, 0x0A, 0x16, 0x17, 0x18, 0x19, 0x1A, 0x25, 0x26, 0x27, 0x28,
    0x29, 0x2A, 0x34, 0x35, 0x36, 0x37, 0x38, 0x39, 0x3A, 0x43, 0x44, 0x45, 0x46, 0x47, 0x48, 0x49,
    0x4A, 0x53, 0x54, 0x55, 0x56, 0x57, 0x58, 0x59, 0x5A, 0x63, 0x64, 0x65, 0x66, 0x67, 0x68, 0x69,
    0x6A, 0x73, 0x74, 0x75, 0x76, 0x77, 0x78, 0x79, 0x7A, 0x83, 0x84, 0x85, 0x86, 0x87, 0x88, 0x89,
    0x8A, 0x92, 0x93, 0x94, 0x95, 0x96, 0x97, 0x98, 0x99, 0x9A, 0xA2, 0xA3, 0xA4, 0xA5, 0xA6, 0xA7,
    0xA8, 0xA9, 0xAA, 0xB2, 0xB3, 0xB4, 0xB5, 0xB6, 0xB7, 0xB8, 0xB9, 0xBA, 0xC2, 0xC3, 0xC4, 0xC5,
    0xC6, 0xC7, 0xC8, 0xC9, 0xCA, 0xD2, 0xD3, 0xD4, 0xD5, 0xD6, 0xD7, 0xD8, 0xD9, 0xDA, 0xE1, 0xE2,
    0xE3, 0xE4, 0xE5, 0xE6, 0xE7, 0xE8, 0xE9, 0xEA, 0xF1, 0xF2, 0xF3, 0xF4, 0xF5, 0xF6, 0xF7, 0xF8,
    0xF9, 0xFA,
)
_DC_CHROM_COUNTS = (0, 3, 1, 1, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0)
_DC_CHROM_VALUES = tuple(range(12))
_AC_CHROM_COUNTS = (0, 2, 1, 2, 4, 4, 3, 4, 7, 5, 4, 4, 0, 1, 2, 0x77)
_AC_CHROM_VALUES = (
    0x00, 0x01, 0x02, 0x03, 0x11, 0x04, 0x05, 0x21, 0x31, 0x06, 0x12, 0x41, 0x51, 0x07, 0x61, 0x71,
    0x13, 0x22, 0x32, 0x81, 0x08, 0x14, 0x42, 0x91, 0xA1, 0xB1, 0xC1, 0x09, 0x23, 0x33, 0x52, 0xF0,
    0x15, 0x62, 0x72, 0xD1, 0x0A, 0x16, 0x24, 0x34, 0xE1, 0x25, 0xF1, 0x17, 0x18, 0x19, 0x1A, 0x26,
    0x27, 0x28, 0x29, 0x2A, 0x35, 0x36, 0x37, 0x38, 0x39, 0x3A, 0x43, 0x44, 0x45, 0x46, 0x47, 0x48,
    0x49, 0x4A, 0x53, 0x54, 0x55, 0x56, 0x57, 0x58, 0x59, 0x5A, 0x63, 0x64, 0x65, 0x66, 0x67, 0x68,
    0x69, 0x6A, 0x73, 0x74, 0x75, 0x76, 0x77, 0x78, 0x79, 0x7A, 0x82, 0x83, 0x84, 0x85, 0x86, 0x87,
    0x88, 0x89, 0x8A, 0x92, 0x93, 0x94, 0x95, 0x96, 0x97, 0x98, 0x99, 0x9A, 0xA2, 0xA3, 0xA4, 0xA5,
    0xA6, 0xA7, 0xA8, 0xA9, 0xAA, 0xB2, 0xB3, 0xB4, 0xB5, 0xB6, 0xB7, 0xB8, 0xB9, 0xBA, 0xC2, 0xC3,
    0xC4, 0xC5, 0xC6, 0xC7, 0xC8, 0xC9, 0xCA, 0xD2, 0xD3, 0xD4, 0xD5, 0xD6, 0xD7, 0xD8, 0xD9, 0xDA,
    0xE2, 0xE3, 0xE4, 0xE5, 0xE6, 0xE7, 0xE8, 0xE9, 0xEA, 0xF2, 0xF3, 0xF4, 0xF5, 0xF6, 0xF7, 0xF8,
    0xF9, 0xFA,
)

_Y_QUANT = (
    16, 11, 10, 16, 24, 40, 51, 61, 12, 12, 14, 19, 26, 58, 60, 55,
    14, 13, 16, 24, 40, 57, 69, 56, 14, 17, 22, 29, 51, 87, 80, 62,
    18, 22, 37, 56, 68, 109, 103, 77, 24, 35, 55, 64, 81, 104, 113, 92,
    49, 64, 78, 87, 103, 121, 120, 101, 72, 92, 95, 98, 112, 100, 103, 99,
)
_UV_QUANT = (
    17, 18, 24, 47, 99, 99, 99, 99, 18, 21, 26, 66, 99, 99, 99, 99,
    24, 26, 56, 99, 99, 99, 99, 99, 47, 66, 99, 99, 99, 99, 99, 99,
) + (99,) * 32

_F = np.float32
_SQRT8 = _F(2.828427125)
_AAN_SCALE = np.array(
    [
        _F(1.0) * _SQRT8, _F(1.387039845) * _SQRT8, _F(1.306562965) * _SQRT8,
        _F(1.175875602) * _SQRT8, _F(1.0) * _SQRT8, _F(0.785694958) * _SQRT8,
        _F(0.541196100) * _SQRT8, _F(0.275899379) * _SQRT8,
    ],
    dtype=np.float32,
)

_HEAD0 = bytes(
    (0xFF, 0xD8, 0xFF, 0xE0, 0, 0x10, ord("J"), ord("F"), ord("I"), ord("F"),
     0, 1, 1, 0, 0, 1, 0, 1, 0, 0, 0xFF, 0xDB, 0, 0x84, 0)
)
_HEAD2 = bytes((0xFF, 0xDA, 0, 0xC, 3, 1, 0, 2, 0x11, 3, 0x11, 0, 0x3F, 0))


def _huffman_table(counts: tuple[int, ...], values: tuple[int, ...]) -> list[tuple[int, int]]:
    """Build the canonical (code, length) table indexed by symbol."""
    table = [(0, 0)] * 256
    code = 0
    symbols = iter(values)
    for length, count in enumerate(counts, start=1):
        for _ in range(count):
            table[next(symbols)] = (code, length)
            code += 1
        code <<= 1
    return table


_YDC_HT = _huffman_table(_DC_LUM_COUNTS, _DC_LUM_VALUES)
_YAC_HT = _huffman_table(_AC_LUM_COUNTS, _AC_LUM_VALUES)
_UVDC_HT = _huffman_table(_DC_CHROM_COUNTS, _DC_CHROM_VALUES)
_UVAC_HT = _huffman_table(_AC_CHROM_COUNTS, _AC_CHROM_VALUES)


class _BitWriter:
    """MSB-first bit writer with JPEG 0xFF byte stuffing."""

    def __init__(self, out: bytearray) -> None:
        self.out = out
        self.buffer = 0
        self.count = 0

    def write(self, code: int, length: int) -> None:
        self.count += length
        self.buffer |= code << (24 - self.count)
        while self.count >= 8:
            c = (self.buffer >> 16) & 0xFF
            self.out.append(c)
            if c == 0xFF:
                self.out.append(0)
            self.buffer = (self.buffer << 8) & 0xFFFFFF
            self.count -= 8


def _calc_bits(value: int) -> tuple[int, int]:
    size = max(abs(value).bit_length(), 1)
    raw = value - 1 if value < 0 else value
    return size, raw & ((1 << size) - 1)


def _dct_last_axis(block: np.ndarray) -> np.ndarray:
    """One-dimensional AAN forward DCT along the last axis, in float32."""
    d0, d1, d2, d3, d4, d5, d6, d7 = (block[..., k] for k in range(8))
    tmp0 = d0 + d7
    tmp7 = d0 - d7
    tmp1 = d1 + d6
    tmp6 = d1 - d6
    tmp2 = d2 + d5
    tmp5 = d2 - d5
    tmp3 = d3 + d4
    tmp4 = d3 - d4

    tmp10 = tmp0 + tmp3
    tmp13 = tmp0 - tmp3
    tmp11 = tmp1 + tmp2
    tmp12 = tmp1 - tmp2

    o0 = tmp10 + tmp11
    o4 = tmp10 - tmp11
    z1 = (tmp12 + tmp13) * _F(0.707106781)
    o2 = tmp13 + z1
    o6 = tmp13 - z1

    tmp10 = tmp4 + tmp5
    tmp11 = tmp5 + tmp6
    tmp12 = tmp6 + tmp7

    z5 = (tmp10 - tmp12) * _F(0.382683433)
    z2 = tmp10 * _F(0.541196100) + z5
    z4 = tmp12 * _F(1.306562965) + z5
    z3 = tmp11 * _F(0.707106781)

    z11 = tmp7 + z3
    z13 = tmp7 - z3

    o5 = z13 + z2
    o3 = z13 - z2
    o1 = z11 + z4
    o7 = z11 - z4
    return np.stack((o0, o1, o2, o3, o4, o5, o6, o7), axis=-1)


def _quantize(blocks: np.ndarray, fdtbl: np.ndarray) -> list[list[int]]:
    """Transform, quantize and zigzag-order a stack of 8x8 blocks."""
    coeffs = _dct_last_axis(blocks.astype(np.float32))
    coeffs = _dct_last_axis(coeffs.swapaxes(-1, -2)).swapaxes(-1, -2)
    v = (coeffs * fdtbl).reshape(-1, 64)
    rounded = np.where(v < 0, v - _F(0.5), v + _F(0.5))
    q = np.trunc(rounded).astype(np.int64)
    du = np.empty_like(q)
    du[:, _ZIGZAG] = q
    return du.tolist()


def _encode_block(writer: _BitWriter, du: list[int], dc: int, dc_table, ac_table) -> int:
    eob = ac_table[0x00]
    sixteen_zeros = ac_table[0xF0]

    diff = du[0] - dc
    if diff == 0:
        writer.write(*dc_table[0])
    else:
        size, bits = _calc_bits(diff)
        writer.write(*dc_table[size])
        writer.write(bits, size)

    end = 63
    while end > 0 and du[end] == 0:
        end -= 1
    if end == 0:
        writer.write(*eob)
        return du[0]

    i = 1
    while i <= end:
        start = i
        while du[i] == 0 and i <= end:
            i += 1
        zeros = i - start
        if zeros >= 16:
            for _ in range(zeros >> 4):
                writer.write(*sixteen_zeros)
            zeros &= 15
        size, bits = _calc_bits(du[i])
        writer.write(*ac_table[(zeros << 4) + size])
        writer.write(bits, size)
        i += 1
    if end != 63:
        writer.write(*eob)
    return du[0]


def _quant_tables(quality: int) -> tuple[bytes, bytes, np.ndarray, np.ndarray]:
    y_table = bytearray(64)
    uv_table = bytearray(64)
    for i in range(64):
        yti = (_Y_QUANT[i] * quality + 50) // 100
        y_table[_ZIGZAG[i]] = min(max(yti, 1), 255)
        uvti = (_UV_QUANT[i] * quality + 50) // 100
        uv_table[_ZIGZAG[i]] = min(max(uvti, 1), 255)

    y_zz = np.array(y_table, dtype=np.float32)[_ZIGZAG].reshape(8, 8)
    uv_zz = np.array(uv_table, dtype=np.float32)[_ZIGZAG].reshape(8, 8)
    row_scale = _AAN_SCALE[:, None]
    col_scale = _AAN_SCALE[None, :]
    fdtbl_y = _F(1) / (y_zz * row_scale * col_scale)
    fdtbl_uv = _F(1) / (uv_zz * row_scale * col_scale)
    return bytes(y_table), bytes(uv_table), fdtbl_y, fdtbl_uv


def _pixel_image(pixels, width: int, height: int, components: int) -> np.ndarray:
    if pixels is None:
        raise ValueError("no pixel data given")
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive")
    if components < 1 or components > 4:
        raise ValueError(f"components must be 1, 2, 3 or 4, not {components}")
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        data = np.frombuffer(bytes(pixels), dtype=np.uint8)
    else:
        data = np.asarray(pixels).astype(np.uint8).ravel()
    needed = width * height * components
    if len(data) < needed:
        raise ValueError("pixel data is too short for the given dimensions")
    return data[:needed].reshape(height, width, components)


def _ycbcr_planes(image: np.ndarray, block: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    height, width, components = image.shape
    pad_h = -height % block
    pad_w = -width % block
    padded = np.pad(image, ((0, pad_h), (0, pad_w), (0, 0)), mode="edge").astype(np.float32)
    r = padded[..., 0]
    g = padded[..., 1] if components > 2 else r
    b = padded[..., 2] if components > 2 else r
    y = _F(0.29900) * r + _F(0.58700) * g + _F(0.11400) * b - _F(128)
    u = _F(-0.16874) * r - _F(0.33126) * g + _F(0.50000) * b
    v = _F(0.50000) * r - _F(0.41869) * g - _F(0.08131) * b
    return y, u, v


def _blocks(plane: np.ndarray) -> np.ndarray:
    """Split a plane into 8x8 blocks in raster order."""
    h, w = plane.shape
    return plane.reshape(h // 8, 8, w // 8, 8).swapaxes(1, 2).reshape(-1, 8, 8)


def encode_jpeg(
    pixels,
    width: int,
    height: int,
    components: int,
    quality: int = 90,
    *,
    flip_vertically: bool = False,
) -> bytes:
    """Encode 8-bit interleaved pixels as a baseline JPEG and return its bytes.

    Alpha is ignored. ``quality`` is clamped to 1..100, with 0 meaning 90;
    chroma is subsampled 2x2 when the requested quality is 90 or less.
    """
    image = _pixel_image(pixels, width, height, components)
    if flip_vertically:
        image = image[::-1]

    quality = quality if quality else 90
    subsample = quality <= 90
    quality = min(max(quality, 1), 100)
    quality = 5000 // quality if quality < 50 else 200 - quality * 2

    y_table, uv_table, fdtbl_y, fdtbl_uv = _quant_tables(quality)

    out = bytearray(_HEAD0)
    out += y_table
    out.append(1)
    out += uv_table
    out += bytes(
        (0xFF, 0xC0, 0, 0x11, 8, (height >> 8) & 0xFF, height & 0xFF,
         (width >> 8) & 0xFF, width & 0xFF, 3, 1, 0x22 if subsample else 0x11,
         0, 2, 0x11, 1, 3, 0x11, 1, 0xFF, 0xC4, 0x01, 0xA2, 0)
    )
    out += bytes(_DC_LUM_COUNTS) + bytes(_DC_LUM_VALUES)
    out.append(0x10)
    out += bytes(_AC_LUM_COUNTS) + bytes(_AC_LUM_VALUES)
    out.append(0x01)
    out += bytes(_DC_CHROM_COUNTS) + bytes(_DC_CHROM_VALUES)
    out.append(0x11)
    out += bytes(_AC_CHROM_COUNTS) + bytes(_AC_CHROM_VALUES)
    out += _HEAD2

    writer = _BitWriter(out)
    dc_y = dc_u = dc_v = 0

    if subsample:
        y, u, v = _ycbcr_planes(image, 16)
        mh, mw = y.shape[0] // 16, y.shape[1] // 16
        y_blocks = (
            y.reshape(mh, 2, 8, mw, 2, 8).transpose(0, 3, 1, 4, 2, 5).reshape(-1, 8, 8)
        )

        def subsampled(plane: np.ndarray) -> np.ndarray:
            total = plane[0::2, 0::2] + plane[0::2, 1::2]
            total = total + plane[1::2, 0::2]
            total = total + plane[1::2, 1::2]
            return _blocks(total * _F(0.25))

        y_du = _quantize(y_blocks, fdtbl_y)
        u_du = _quantize(subsampled(u), fdtbl_uv)
        v_du = _quantize(subsampled(v), fdtbl_uv)
        for mcu in range(mh * mw):
            for k in range(4):
                dc_y = _encode_block(writer, y_du[mcu * 4 + k], dc_y, _YDC_HT, _YAC_HT)
            dc_u = _encode_block(writer, u_du[mcu], dc_u, _UVDC_HT, _UVAC_HT)
            dc_v = _encode_block(writer, v_du[mcu], dc_v, _UVDC_HT, _UVAC_HT)
    else:
        y, u, v = _ycbcr_planes(image, 8)
        y_du = _quantize(_blocks(y), fdtbl_y)
        u_du = _quantize(_blocks(u), fdtbl_uv)
        v_du = _quantize(_blocks(v), fdtbl_uv)
        for y_block, u_block, v_block in zip(y_du, u_du, v_du):
            dc_y = _encode_block(writer, y_block, dc_y, _YDC_HT, _YAC_HT)
            dc_u = _encode_block(writer, u_block, dc_u, _UVDC_HT, _UVAC_HT)
            dc_v = _encode_block(writer, v_block, dc_v, _UVDC_HT, _UVAC_HT)

    writer.write(0x7F, 7)
    out += b"\xff\xd9"
    return bytes(out)


def write_jpeg(
    path: str | os.PathLike,
    pixels,
    width: int,
    height: int,
    components: int,
    quality: int = 90,
    *,
    flip_vertically: bool = False,
) -> None:
    """Encode pixels as JPEG and write the file at ``path``."""
    encoded = encode_jpeg(
        pixels, width, height, components, quality, flip_vertically=flip_vertically
    )
    with open(path, "wb") as handle:
        handle.write(encoded)