"""Core rendering module.

Components:
    ray: Ray data structure, vector algebra and intersection constants
    lighting: Ambient, diffuse and specular lighting with shadow rays
    tracer: Recursive (Whitted-style) ray tracing with mirror reflection
    renderer: Render configuration, frame buffer and the tile renderer

All per-ray work runs inside Taichi kernels; the outermost loop of the
frame kernel is the parallel loop over tiles.
"""

from .ray import (
    GRAZING_EPSILON,
    T_INFINITY,
    T_MIN,
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    normalize,
    normalize_np,
    ray_at,
    reflect,
    to_vec3_np,
    vec3,
)

# Note: lighting, tracer and renderer are NOT imported here to avoid circular imports
# with the scene package. Import them directly, e.g.:
#   from tileray.core.renderer import RenderConfig, TileRenderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "normalize_np",
    "to_vec3_np",
    "T_MIN",
    "T_INFINITY",
    "GRAZING_EPSILON",
]
