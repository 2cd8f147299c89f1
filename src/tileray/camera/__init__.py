"""Camera module for view placement and keyboard-driven motion.

Components:
    camera: Camera position and orthonormal basis, per-frame input
        integration (yaw, pitch, roll, forward movement)

The camera lives on the Python side (NumPy); the tile renderer uploads
its basis to Taichi fields once per frame.
"""

from .camera import (
    DEFAULT_MOVE_SPEED,
    DEFAULT_ROTATION_SPEED,
    Camera,
    CameraInput,
    rotate_about_axis,
)

__all__ = [
    "Camera",
    "CameraInput",
    "rotate_about_axis",
    "DEFAULT_MOVE_SPEED",
    "DEFAULT_ROTATION_SPEED",
]
