"""Scene module for scene description and ray-scene queries.

Components:
    lights: Light types and light descriptions
    config: Scene configuration dataclasses with JSON round trip
    scene: Taichi-backed scene storage with closest-hit and shadow queries
    default_scene: The reference four-sphere scene

Scene data is organized for parallel access:
    - Structure-of-Arrays layout for geometric data
    - One unified primitive index space (spheres first, then triangles)
    - Bounding spheres around each mesh for early rejection
"""

from .config import (
    NO_SPECULAR,
    MaterialConfig,
    MeshConfig,
    SceneConfig,
    SphereConfig,
    load_scene_file,
    save_scene_file,
)
from .default_scene import create_default_scene_config
from .lights import Light, LightType
from .scene import HitResult, Scene

__all__ = [
    # Lights
    "Light",
    "LightType",
    # Configuration
    "MaterialConfig",
    "MeshConfig",
    "SceneConfig",
    "SphereConfig",
    "NO_SPECULAR",
    "load_scene_file",
    "save_scene_file",
    "create_default_scene_config",
    # Scene storage
    "HitResult",
    "Scene",
]
