"""Axis-aligned bounding box in three dimensions."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

__all__ = ["Box3"]


def _vec3(value) -> np.ndarray:
    vec = np.asarray(value, dtype=np.float64).reshape(-1)
    if vec.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {vec.shape}")
    return vec.copy()


@dataclass
class Box3:
    """A box given by its minimum and maximum corners.

    A box whose minimum x is greater than its maximum x is empty; the
    default box is empty.
    """

    minimum: np.ndarray = field(default_factory=lambda: np.full(3, 1.0))
    maximum: np.ndarray = field(default_factory=lambda: np.full(3, -1.0))

    def __post_init__(self) -> None:
        self.minimum = _vec3(self.minimum)
        self.maximum = _vec3(self.maximum)

    @classmethod
    def cube(cls, size: float) -> "Box3":
        """Return a cube of edge ``size`` centred on the origin."""
        half = size / 2.0
        return cls(np.full(3, -half), np.full(3, half))

    def add_point(self, point) -> None:
        """Grow the box so that it contains ``point``."""
        p = _vec3(point)
        if self.is_empty():
            self.minimum = p.copy()
            self.maximum = p.copy()
        else:
            self.minimum = np.minimum(self.minimum, p)
            self.maximum = np.maximum(self.maximum, p)

    def add_box(self, other: "Box3") -> None:
        """Grow the box so that it contains both corners of ``other``."""
        self.add_point(other.minimum)
        self.add_point(other.maximum)

    def is_empty(self) -> bool:
        return bool(self.minimum[0] > self.maximum[0])

    def diagonal(self) -> float:
        """Length of the segment between the two extreme corners."""
        return float(np.linalg.norm(self.minimum - self.maximum))

    def center(self) -> np.ndarray:
        return (self.minimum + self.maximum) * 0.5

    def corner(self, index: int) -> np.ndarray:
        """Return corner ``index``: bit 0 picks x, bit 1 picks y, index // 4 picks z."""
        x = self.minimum[0] if index % 2 == 0 else self.maximum[0]
        y = self.minimum[1] if (index // 2) % 2 == 0 else self.maximum[1]
        z = self.minimum[2] if index // 4 == 0 else self.maximum[2]
        return np.array([x, y, z], dtype=np.float64)