"""A small zlib/DEFLATE compressor with fixed Huffman codes, plus CRC-32 and Adler-32."""

from __future__ import annotations

__all__ = ["zlib_compress", "crc32", "adler32"]

_MASK32 = 0xFFFFFFFF
_HASH_SIZE = 16384
_WINDOW = 32768
_MAX_MATCH = 258
_STORED_BLOCK = 32767

_LENGTH_BASE = (
    3, 4, 5, 6, 7, 8, 9, 10, 11, 13, 15, 17, 19, 23, 27, 31, 35, 43, 51, 59,
    67, 83, 99, 115, 131, 163, 195, 227, 258, 259,
)
_LENGTH_EXTRA = (
    0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 3,
    4, 4, 4, 4, 5, 5, 5, 5, 0,
)
_DIST_BASE = (
    1, 2, 3, 4, 5, 7, 9, 13, 17, 25, 33, 49, 65, 97, 129, 193, 257, 385, 513,
    769, 1025, 1537, 2049, 3073, 4097, 6145, 8193, 12289, 16385, 24577, 32768,
)
_DIST_EXTRA = (
    0, 0, 0, 0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6, 7, 7, 8, 8,
    9, 9, 10, 10, 11, 11, 12, 12, 13, 13,
)


def _make_crc_table() -> tuple[int, ...]:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = (c >> 1) ^ (0xEDB88320 if c & 1 else 0)
        table.append(c)
    return tuple(table)


_CRC_TABLE = _make_crc_table()


def _as_bytes(data) -> bytes:
    return bytes(memoryview(data))


def crc32(data) -> int:
    """Return the CRC-32 (as used by PNG chunks) of a bytes-like object."""
    crc = _MASK32
    for byte in _as_bytes(data):
        crc = (crc >> 8) ^ _CRC_TABLE[(byte ^ crc) & 0xFF]
    return crc ^ _MASK32


def adler32(data) -> int:
    """Return the Adler-32 checksum of a bytes-like object."""
    buf = _as_bytes(data)
    s1, s2 = 1, 0
    for start in range(0, len(buf), 5552):
        for byte in buf[start:start + 5552]:
            s1 += byte
            s2 += s1
        s1 %= 65521
        s2 %= 65521
    return (s2 << 16) | s1


def _bit_reverse(code: int, bits: int) -> int:
    result = 0
    for _ in range(bits):
        result = (result << 1) | (code & 1)
        code >>= 1
    return result


def _hash3(b0: int, b1: int, b2: int) -> int:
    h = b0 + (b1 << 8) + (b2 << 16)
    h ^= (h << 3) & _MASK32
    h = (h + (h >> 5)) & _MASK32
    h ^= (h << 4) & _MASK32
    h = (h + (h >> 17)) & _MASK32
    h ^= (h << 25) & _MASK32
    h = (h + (h >> 6)) & _MASK32
    return h & (_HASH_SIZE - 1)


def _match_length(data: bytes, a: int, b: int, limit: int) -> int:
    limit = min(limit, _MAX_MATCH)
    n = 0
    while n < limit and data[a + n] == data[b + n]:
        n += 1
    return n


class _BitWriter:
    """Accumulates LSB-first bits into a byte array."""

    def __init__(self, out: bytearray) -> None:
        self.out = out
        self.buffer = 0
        self.count = 0

    def add(self, code: int, bits: int) -> None:
        self.buffer |= code << self.count
        self.count += bits
        while self.count >= 8:
            self.out.append(self.buffer & 0xFF)
            self.buffer >>= 8
            self.count -= 8

    def huffman(self, code: int, bits: int) -> None:
        self.add(_bit_reverse(code, bits), bits)

    def symbol(self, n: int) -> None:
        """Emit a literal/length symbol with the fixed Huffman table."""
        if n <= 143:
            self.huffman(0x30 + n, 8)
        elif n <= 255:
            self.huffman(0x190 + n - 144, 9)
        elif n <= 279:
            self.huffman(n - 256, 7)
        else:
            self.huffman(0xC0 + n - 280, 8)

    def pad_to_byte(self) -> None:
        while self.count:
            self.add(0, 1)


def zlib_compress(data, quality: int = 8) -> bytes:
    """Compress ``data`` into a zlib stream.

    ``quality`` bounds how many candidates each hash bucket keeps (minimum 5).
    If the compressed block would be larger than storing the data, stored
    blocks are written instead.
    """
    buf = _as_bytes(data)
    length = len(buf)
    quality = max(int(quality), 5)

    out = bytearray((0x78, 0x5E))
    bits = _BitWriter(out)
    bits.add(1, 1)  # BFINAL
    bits.add(1, 2)  # fixed Huffman

    table: dict[int, list[int]] = {}
    i = 0
    while i < length - 3:
        h = _hash3(buf[i], buf[i + 1], buf[i + 2])
        best = 3
        best_pos: int | None = None
        bucket = table.get(h)
        if bucket:
            for pos in bucket:
                if pos > i - _WINDOW:
                    d = _match_length(buf, pos, i, length - i)
                    if d >= best:
                        best, best_pos = d, pos
        if bucket is None:
            bucket = table[h] = []
        elif len(bucket) == 2 * quality:
            del bucket[:quality]
        bucket.append(i)

        if best_pos is not None:
            # lazy matching: prefer a literal if the next byte starts a longer match
            next_bucket = table.get(_hash3(buf[i + 1], buf[i + 2], buf[i + 3]), ())
            for pos in next_bucket:
                if pos > i - (_WINDOW - 1):
                    if _match_length(buf, pos, i + 1, length - i - 1) > best:
                        best_pos = None
                        break

        if best_pos is not None:
            distance = i - best_pos
            j = 0
            while best > _LENGTH_BASE[j + 1] - 1:
                j += 1
            bits.symbol(j + 257)
            if _LENGTH_EXTRA[j]:
                bits.add(best - _LENGTH_BASE[j], _LENGTH_EXTRA[j])
            j = 0
            while distance > _DIST_BASE[j + 1] - 1:
                j += 1
            bits.add(_bit_reverse(j, 5), 5)
            if _DIST_EXTRA[j]:
                bits.add(distance - _DIST_BASE[j], _DIST_EXTRA[j])
            i += best
        else:
            bits.symbol(buf[i])
            i += 1

    for byte in buf[i:]:
        bits.symbol(byte)
    bits.symbol(256)
    bits.pad_to_byte()

    stored_size = length + 2 + ((length + _STORED_BLOCK - 1) // _STORED_BLOCK) * 5
    if len(out) > stored_size:
        del out[2:]
        for start in range(0, length, _STORED_BLOCK):
            block = buf[start:start + _STORED_BLOCK]
            size = len(block)
            out.append(1 if start + size == length else 0)
            out += size.to_bytes(2, "little")
            out += (~size & 0xFFFF).to_bytes(2, "little")
            out += block

    out += adler32(buf).to_bytes(4, "big")
    return bytes(out)