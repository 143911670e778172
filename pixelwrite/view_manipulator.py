"""Mouse-driven rotation of a view by yaw and pitch angles."""

from __future__ import annotations

import math

import numpy as np

__all__ = ["ViewManipulator", "rotation_matrix"]


def rotation_matrix(angle: float, axis) -> np.ndarray:
    """Return the 4x4 matrix rotating by ``angle`` radians about ``axis``."""
    a = np.asarray(axis, dtype=np.float64).reshape(3)
    norm = np.linalg.norm(a)
    if norm == 0.0:
        raise ValueError("rotation axis must not be zero")
    a = a / norm
    c = math.cos(angle)
    s = math.sin(angle)
    cross = np.array(
        [[0.0, -a[2], a[1]], [a[2], 0.0, -a[0]], [-a[1], a[0], 0.0]]
    )
    result = np.eye(4)
    result[:3, :3] = c * np.eye(3) + (1.0 - c) * np.outer(a, a) + s * cross
    return result


class ViewManipulator:
    """Turns mouse drags into a rotation: horizontal motion yaws, vertical motion pitches."""

    def __init__(self) -> None:
        self.is_dragged = False
        self.start_xpos = 0.0
        self.start_ypos = 0.0
        self.reset()

    def reset(self) -> None:
        self.rotation = np.eye(4)
        self.d_alpha = 0.0
        self.d_beta = 0.0

    def mouse_move(self, xpos: float, ypos: float) -> None:
        if not self.is_dragged:
            return
        self.d_alpha += (xpos - self.start_xpos) / 1000.0
        self.d_beta += (ypos - self.start_ypos) / 800.0
        self.start_xpos = float(xpos)
        self.start_ypos = float(ypos)
        self.rotation = rotation_matrix(self.d_alpha, (0.0, 1.0, 0.0)) @ rotation_matrix(
            self.d_beta, (1.0, 0.0, 0.0)
        )

    def mouse_press(self, xpos: float, ypos: float) -> None:
        self.start_xpos = float(xpos)
        self.start_ypos = float(ypos)
        self.is_dragged = True

    def mouse_release(self) -> None:
        self.is_dragged = False

    def matrix(self) -> np.ndarray:
        return self.rotation.copy()

    def apply_to_view(self, view_transformation) -> np.ndarray:
        """Rotate the camera of a view matrix about its own position."""
        view_frame = np.linalg.inv(np.asarray(view_transformation, dtype=np.float64))
        current = view_frame.copy()
        current[:, 3] = (0.0, 0.0, 0.0, 1.0)
        current = self.rotation @ current
        current[:, 3] = view_frame[:, 3]
        return np.linalg.inv(current)