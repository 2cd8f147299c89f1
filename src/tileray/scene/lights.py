"""Light source descriptions.

Three kinds of light are supported:
- AMBIENT: contributes its intensity everywhere, never shadowed.
- POINT: positioned light; shadow rays stop at the light itself.
- DIRECTIONAL: light from a fixed direction at infinite distance.

Intensities are scalars that scale a surface's base color.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class LightType(IntEnum):
    """Enumeration of supported light types.

    Stored as integers in the scene's Taichi fields for dispatch inside
    the lighting function.
    """

    AMBIENT = 0
    POINT = 1
    DIRECTIONAL = 2


@dataclass
class Light:
    """A light in the scene.

    Attributes:
        kind: The light type.
        intensity: Scalar intensity multiplier (non-negative).
        vector: Light position for POINT lights, the direction toward the
            light for DIRECTIONAL lights, ignored for AMBIENT lights.
    """

    kind: LightType
    intensity: float
    vector: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        self.kind = LightType(self.kind)
        if self.intensity < 0.0:
            raise ValueError(f"Light intensity must be non-negative, got {self.intensity}")
        if self.kind == LightType.DIRECTIONAL and all(c == 0.0 for c in self.vector):
            raise ValueError("Directional light needs a non-zero direction")

    @classmethod
    def ambient(cls, intensity: float) -> "Light":
        """Create an ambient light."""
        return cls(LightType.AMBIENT, intensity)

    @classmethod
    def point(cls, intensity: float, position: tuple[float, float, float]) -> "Light":
        """Create a point light at a position."""
        return cls(LightType.POINT, intensity, tuple(position))

    @classmethod
    def directional(cls, intensity: float, direction: tuple[float, float, float]) -> "Light":
        """Create a directional light; direction points toward the light."""
        return cls(LightType.DIRECTIONAL, intensity, tuple(direction))

    def to_dict(self) -> dict[str, Any]:
        """Export the light to a dictionary (for JSON serialization)."""
        data: dict[str, Any] = {"type": self.kind.name.lower(), "intensity": self.intensity}
        if self.kind == LightType.POINT:
            data["position"] = list(self.vector)
        elif self.kind == LightType.DIRECTIONAL:
            data["direction"] = list(self.vector)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Light":
        """Create a light from a dictionary.

        Raises:
            ValueError: If the light type is unknown or a field is invalid.
        """
        light_type = str(data.get("type", "")).lower()
        intensity = float(data.get("intensity", 0.0))
        if light_type == "ambient":
            return cls.ambient(intensity)
        if light_type == "point":
            position = data.get("position", [0.0, 0.0, 0.0])
            return cls.point(intensity, (float(position[0]), float(position[1]), float(position[2])))
        if light_type == "directional":
            direction = data.get("direction", [0.0, 1.0, 0.0])
            return cls.directional(
                intensity, (float(direction[0]), float(direction[1]), float(direction[2]))
            )
        raise ValueError(f"Unknown light type: {light_type}")
