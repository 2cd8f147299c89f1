"""Free-flying camera with per-frame keyboard integration.

The camera is a position plus an orthonormal basis (forward, up, right). It
is left-handed with the default basis forward = +z, up = +y, right = +x, so
right = up x forward.

Each frame, Camera.update() turns the set of held keys (a CameraInput) into:
- yaw about the up axis (rotate_left / rotate_right)
- pitch about the right axis (pitch_up / pitch_down)
- roll about the forward axis (roll_left / roll_right)
- movement along forward (move_forward / move_backward)

Rotations use Rodrigues' formula and are applied in that order. Each rotated
vector is re-normalized, and the basis is re-orthogonalized afterwards so that
floating point drift never accumulates over many frames.

All camera math runs on the Python side with NumPy; the renderer uploads the
resulting basis to its Taichi fields once per frame.

Example:
    >>> from tileray.camera.camera import Camera, CameraInput
    >>> camera = Camera()
    >>> camera.update(CameraInput(move_forward=True))
    >>> camera.position
    array([0., 0., 2.])
"""

import math
from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt

from tileray.core.ray import normalize_np, to_vec3_np

# =============================================================================
# Camera Defaults
# =============================================================================

# Radians turned per frame while a rotation key is held
DEFAULT_ROTATION_SPEED = 0.5

# World units moved per frame while a movement key is held
DEFAULT_MOVE_SPEED = 2.0


@dataclass
class CameraInput:
    """Keys held during one frame.

    Opposite keys held together cancel out.
    """

    rotate_left: bool = False
    rotate_right: bool = False
    pitch_up: bool = False
    pitch_down: bool = False
    roll_left: bool = False
    roll_right: bool = False
    move_forward: bool = False
    move_backward: bool = False
    reset: bool = False

    def is_idle(self) -> bool:
        """True when no key is held."""
        return not any(
            (
                self.rotate_left,
                self.rotate_right,
                self.pitch_up,
                self.pitch_down,
                self.roll_left,
                self.roll_right,
                self.move_forward,
                self.move_backward,
                self.reset,
            )
        )


def rotate_about_axis(
    v: npt.ArrayLike, axis: npt.ArrayLike, angle: float
) -> npt.NDArray[np.float64]:
    """Rotate a vector about a unit axis using Rodrigues' formula.

        v' = v cos(a) + (k x v) sin(a) + k (k . v)(1 - cos(a))

    A positive angle turns counter-clockwise when looking down the axis
    toward the origin in a right-handed frame.

    Args:
        v: The vector to rotate.
        axis: Unit rotation axis k.
        angle: Rotation angle in radians.

    Returns:
        The rotated vector.
    """
    v = np.asarray(v, dtype=np.float64)
    k = np.asarray(axis, dtype=np.float64)
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return v * cos_a + np.cross(k, v) * sin_a + k * float(np.dot(k, v)) * (1.0 - cos_a)


def _default_vector(x: float, y: float, z: float):
    return field(default_factory=lambda: np.array([x, y, z], dtype=np.float64))


@dataclass
class Camera:
    """Camera position and orientation.

    Attributes:
        position: Eye position in world space.
        forward: Unit view direction.
        up: Unit up vector, perpendicular to forward.
        right: Unit right vector, perpendicular to forward and up.
        rotation_speed: Radians turned per frame per held rotation key.
        move_speed: Units moved per frame per held movement key.
    """

    position: npt.NDArray[np.float64] = _default_vector(0.0, 0.0, 0.0)
    forward: npt.NDArray[np.float64] = _default_vector(0.0, 0.0, 1.0)
    up: npt.NDArray[np.float64] = _default_vector(0.0, 1.0, 0.0)
    right: npt.NDArray[np.float64] = _default_vector(1.0, 0.0, 0.0)
    rotation_speed: float = DEFAULT_ROTATION_SPEED
    move_speed: float = DEFAULT_MOVE_SPEED

    def __post_init__(self) -> None:
        self.position = to_vec3_np(self.position)
        self.forward = to_vec3_np(self.forward)
        self.up = to_vec3_np(self.up)
        self.right = to_vec3_np(self.right)
        if not np.any(self.forward) or not np.any(self.up):
            raise ValueError("Camera forward and up vectors must be non-zero")
        self.forward = normalize_np(self.forward)
        self.orthonormalize()

    @classmethod
    def looking_at(
        cls,
        position: tuple[float, float, float],
        target: tuple[float, float, float],
        up: tuple[float, float, float] = (0.0, 1.0, 0.0),
        **kwargs,
    ) -> "Camera":
        """Create a camera at a position looking toward a target point.

        Raises:
            ValueError: If target equals position.
        """
        forward = to_vec3_np(target) - to_vec3_np(position)
        if not np.any(forward):
            raise ValueError("Camera target must differ from its position")
        return cls(position=position, forward=forward, up=up, **kwargs)

    def orthonormalize(self) -> None:
        """Rebuild right and up from forward so the basis is orthonormal.

        right = up x forward, then up = forward x right.

        Raises:
            ValueError: If forward and up are parallel.
        """
        right = np.cross(self.up, self.forward)
        if float(np.linalg.norm(right)) < 1e-12:
            raise ValueError("Camera forward and up vectors must not be parallel")
        self.right = normalize_np(right)
        self.up = normalize_np(np.cross(self.forward, self.right))

    def update(self, keys: CameraInput) -> None:
        """Apply one frame of input.

        Args:
            keys: The keys held during this frame.
        """
        if keys.reset:
            self.reset()

        yaw = (int(keys.rotate_right) - int(keys.rotate_left)) * self.rotation_speed
        pitch = (int(keys.pitch_down) - int(keys.pitch_up)) * self.rotation_speed
        roll = (int(keys.roll_left) - int(keys.roll_right)) * self.rotation_speed
        move = int(keys.move_forward) - int(keys.move_backward)

        if yaw != 0.0:
            self.forward = normalize_np(rotate_about_axis(self.forward, self.up, yaw))
            self.right = normalize_np(rotate_about_axis(self.right, self.up, yaw))

        if pitch != 0.0:
            self.forward = normalize_np(rotate_about_axis(self.forward, self.right, pitch))
            self.up = normalize_np(rotate_about_axis(self.up, self.right, pitch))

        if roll != 0.0:
            self.up = normalize_np(rotate_about_axis(self.up, self.forward, roll))
            self.right = normalize_np(rotate_about_axis(self.right, self.forward, roll))

        self.orthonormalize()

        if move != 0:
            self.position = self.position + self.forward * (move * self.move_speed)

    def reset(self) -> None:
        """Move the camera back to the origin. Orientation is kept."""
        self.position = np.zeros(3, dtype=np.float64)

    def basis(self) -> dict[str, tuple[float, float, float]]:
        """Get the camera state as plain tuples (for logging and upload)."""
        return {
            "position": tuple(float(c) for c in self.position),
            "forward": tuple(float(c) for c in self.forward),
            "up": tuple(float(c) for c in self.up),
            "right": tuple(float(c) for c in self.right),
        }
