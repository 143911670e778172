"""Encoders for PNG, BMP, TGA, Radiance HDR and baseline JPEG images, plus small 3D helpers."""

__version__ = "1.0.0"

__all__ = ["deflate", "png", "bitmap", "hdr", "jpeg", "box3", "view_manipulator"]