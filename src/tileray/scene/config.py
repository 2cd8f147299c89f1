"""Scene configuration and serialization.

A scene is described by plain dataclasses that can be built in code or loaded
from JSON. The configuration is validated when it is created; the Scene class
then turns it into Taichi fields once at startup.

JSON layout:

    {
        "background": [0, 0, 0],
        "spheres": [
            {"center": [0, -1, 3], "radius": 1,
             "material": {"color": [255, 0, 0], "specular": 500, "reflectiveness": 0.2}}
        ],
        "meshes": [
            {"path": "cube.obj", "scale": 1.0, "translate": [0, 0, 5],
             "material": {"color": [200, 200, 200], "specular": -1, "reflectiveness": 0.0}}
        ],
        "lights": [
            {"type": "ambient", "intensity": 0.2},
            {"type": "point", "intensity": 0.6, "position": [2, 1, 0]},
            {"type": "directional", "intensity": 0.2, "direction": [1, 4, 4]}
        ]
    }

Relative mesh paths are resolved against the scene file's directory.

Example:
    >>> from tileray.scene.config import load_scene_file
    >>> config = load_scene_file("scenes/spheres.json")
    >>> len(config.spheres)
    4
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tileray.scene.lights import Light

# Specular exponent value that disables the specular term
NO_SPECULAR = -1.0


def _vec3(values: Any, name: str) -> tuple[float, float, float]:
    """Convert a JSON list into a 3-tuple of floats."""
    try:
        x, y, z = (float(v) for v in values)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a list of 3 numbers, got {values!r}") from None
    return (x, y, z)


@dataclass
class MaterialConfig:
    """Surface material.

    Attributes:
        color: Base color as (R, G, B) on a 0-255 scale.
        specular: Phong exponent; -1 disables the specular term.
        reflectiveness: Fraction of the mirror-reflected color, in [0, 1].
    """

    color: tuple[float, float, float] = (255.0, 255.0, 255.0)
    specular: float = NO_SPECULAR
    reflectiveness: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.reflectiveness <= 1.0:
            raise ValueError(f"Reflectiveness must be in [0, 1], got {self.reflectiveness}")
        if self.specular != NO_SPECULAR and self.specular < 0.0:
            raise ValueError(f"Specular exponent must be -1 or non-negative, got {self.specular}")
        if any(c < 0.0 for c in self.color):
            raise ValueError(f"Color components must be non-negative, got {self.color}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "color": list(self.color),
            "specular": self.specular,
            "reflectiveness": self.reflectiveness,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MaterialConfig:
        return cls(
            color=_vec3(data.get("color", [255.0, 255.0, 255.0]), "material.color"),
            specular=float(data.get("specular", NO_SPECULAR)),
            reflectiveness=float(data.get("reflectiveness", 0.0)),
        )


@dataclass
class SphereConfig:
    """A sphere with its own material.

    Attributes:
        center: Sphere center (x, y, z).
        radius: Sphere radius (positive).
        material: The sphere's material.
    """

    center: tuple[float, float, float]
    radius: float
    material: MaterialConfig = field(default_factory=MaterialConfig)

    def __post_init__(self) -> None:
        if self.radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "center": list(self.center),
            "radius": self.radius,
            "material": self.material.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SphereConfig:
        return cls(
            center=_vec3(data.get("center", [0.0, 0.0, 0.0]), "sphere.center"),
            radius=float(data.get("radius", 1.0)),
            material=MaterialConfig.from_dict(data.get("material", {})),
        )


@dataclass
class MeshConfig:
    """A triangle mesh loaded from an OBJ file; all triangles share one material.

    Attributes:
        path: Path to the OBJ file.
        material: Material shared by every triangle of the mesh.
        scale: Uniform scale applied about the origin before translation.
        translate: Offset added to every vertex.
    """

    path: str
    material: MaterialConfig = field(default_factory=MaterialConfig)
    scale: float = 1.0
    translate: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        if self.scale <= 0.0:
            raise ValueError(f"Mesh scale must be positive, got {self.scale}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "material": self.material.to_dict(),
            "scale": self.scale,
            "translate": list(self.translate),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MeshConfig:
        if "path" not in data:
            raise ValueError("Mesh entry requires a 'path'")
        return cls(
            path=str(data["path"]),
            material=MaterialConfig.from_dict(data.get("material", {})),
            scale=float(data.get("scale", 1.0)),
            translate=_vec3(data.get("translate", [0.0, 0.0, 0.0]), "mesh.translate"),
        )


@dataclass
class SceneConfig:
    """Configuration for a complete scene.

    Attributes:
        spheres: Sphere primitives, in index order.
        meshes: Triangle meshes, appended after the spheres.
        lights: The light set.
        background: Color returned by rays that hit nothing (0-255 scale).
    """

    spheres: list[SphereConfig] = field(default_factory=list)
    meshes: list[MeshConfig] = field(default_factory=list)
    lights: list[Light] = field(default_factory=list)
    background: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return {
            "background": list(self.background),
            "spheres": [sphere.to_dict() for sphere in self.spheres],
            "meshes": [mesh.to_dict() for mesh in self.meshes],
            "lights": [light.to_dict() for light in self.lights],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: str | Path | None = None) -> SceneConfig:
        """Create a scene configuration from a dictionary.

        Args:
            data: Dictionary with optional 'background', 'spheres', 'meshes'
                and 'lights' keys.
            base_dir: Directory that relative mesh paths are resolved against.

        Raises:
            ValueError: If any entry is invalid.
        """
        meshes = [MeshConfig.from_dict(entry) for entry in data.get("meshes", [])]
        if base_dir is not None:
            for mesh in meshes:
                mesh_path = Path(mesh.path)
                if not mesh_path.is_absolute():
                    mesh.path = str(Path(base_dir) / mesh_path)

        return cls(
            spheres=[SphereConfig.from_dict(entry) for entry in data.get("spheres", [])],
            meshes=meshes,
            lights=[Light.from_dict(entry) for entry in data.get("lights", [])],
            background=_vec3(data.get("background", [0.0, 0.0, 0.0]), "background"),
        )


def load_scene_file(path: str | Path) -> SceneConfig:
    """Load a scene configuration from a JSON file.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the JSON is malformed or describes an invalid scene.
    """
    scene_path = Path(path)
    with scene_path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid scene file {scene_path}: {exc}") from exc
    return SceneConfig.from_dict(data, base_dir=scene_path.parent)


def save_scene_file(config: SceneConfig, path: str | Path) -> None:
    """Write a scene configuration to a JSON file."""
    with Path(path).open("w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=4)
