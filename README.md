# pixelwrite

Small image encoders written for clarity rather than optimal output
size; the only dependency is NumPy. Pixels are given row by row, top to
bottom, with `components` interleaved 8-bit channels per pixel:
1 = grey, 2 = grey + alpha, 3 = RGB, 4 = RGBA. Pixel data may be any
bytes-like object or anything NumPy can turn into an array.

## Formats

- **PNG** – `pixelwrite.png.encode_png` and `write_png`. Uses the
  package's own deflate encoder. The filter is chosen per row (the one
  with the smallest sum of absolute signed residuals) unless
  `force_filter` is 0..4; `compression_level` (default 8) sets how many
  match candidates each hash bucket keeps. `stride` is the distance in
  bytes between row starts, 0 meaning tightly packed rows.
- **BMP** – `pixelwrite.bitmap.encode_bmp` and `write_bmp`. Grey input
  is expanded to 24-bit RGB (grey alpha is dropped); RGB is written as
  24-bit; RGBA as 32-bit BGRA with a V4 header and bit masks.
- **TGA** – `pixelwrite.bitmap.encode_tga` and `write_tga`. Grey input
  is written as a grey TGA, colour input as BGR(A). Run-length
  compression is on by default; pass `rle=False` for raw data.
- **Radiance HDR** – `pixelwrite.hdr.encode_hdr` and `write_hdr` take
  linear float values. Alpha is discarded and a single grey channel is
  replicated to RGB. Scanlines 8 to 32767 pixels wide are run-length
  compressed per component. `linear_to_rgbe(red, green, blue)` converts
  one colour to its four RGBE bytes.
- **JPEG** – `pixelwrite.jpeg.encode_jpeg` and `write_jpeg`, baseline
  with the standard Huffman tables. Alpha is ignored. `quality` is
  clamped to 1..100, with 0 meaning 90; chroma is subsampled 2x2 when
  the requested quality is 90 or less.

The `encode_*` functions return the file as `bytes`; the `write_*`
functions take a path first and write the same bytes to it. Every
encoder accepts the keyword `flip_vertically=True` to store the rows in
the opposite order. Bad dimensions, an unsupported component count or
too little pixel data raise `ValueError`.

`pixelwrite.deflate` offers the building blocks on their own:
`zlib_compress(data, quality=8)` (fixed Huffman codes, falling back to
stored blocks when that would be smaller), `crc32(data)` and
`adler32(data)`.

## Installing

```
pip install .
```

## Example

```python
from pixelwrite.png import write_png
from pixelwrite.jpeg import encode_jpeg
from pixelwrite.hdr import encode_hdr

width, height = 4, 2
pixels = bytes([255, 0, 0] * width * height)   # solid red, RGB

write_png("red.png", pixels, width, height, 3, 0)
jpeg_bytes = encode_jpeg(pixels, width, height, 3, 90)
hdr_bytes = encode_hdr([0.5, 1.0, 2.0] * width * height, width, height, 3)
```

## 3D helpers

`pixelwrite.box3.Box3` is an axis-aligned bounding box. A new box is
empty; `add_point` and `add_box` grow it, and `is_empty`, `diagonal`,
`center` and `corner(index)` (0..7) describe it. `Box3.cube(size)`
makes a cube centred on the origin.

```python
from pixelwrite.box3 import Box3

box = Box3()
box.add_point((0, 0, 0))
box.add_point((1, 2, 2))
box.diagonal()   # 3.0
```

`pixelwrite.view_manipulator.ViewManipulator` turns mouse drags into a
4x4 rotation: `mouse_press`, `mouse_move` and `mouse_release` follow the
cursor (horizontal motion yaws, vertical motion pitches), `matrix()`
returns the rotation and `apply_to_view(view)` rotates the camera of a
view matrix about its own position. `rotation_matrix(angle, axis)`
builds a 4x4 rotation about any non-zero axis.

## What it does not do

pixelwrite only writes images: it does not read or decode any format,
and it has no command-line tool, window or viewer. The 3D helpers are
plain NumPy maths and draw nothing.

## Running the tests

```
pip install .[test]
pytest
```