"""Recursive ray tracing with local shading and mirror reflection.

A ray's color is defined recursively:

    trace(O, D, depth) = background                           if nothing is hit
                       = local                                 if depth == 0 or r <= 0
                       = local * (1 - r) + trace(P, R, depth - 1) * r   otherwise

where P is the nearest hit point, local the material color scaled by the
light intensity at P, r the material's reflectiveness and R the mirror
direction of -D about the surface normal.

Taichi functions are inlined and cannot call themselves, so trace_ray()
unrolls the recursion into a loop of at most depth + 1 bounces that carries
the product of reflectiveness values seen so far (the weight of the next
bounce). Each bounce adds weight * (1 - r) * local; a terminating bounce adds
weight * local, or weight * background on a miss. This evaluates exactly the
same expression as the recursive form.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tileray.scene.default_scene import create_default_scene_config
    >>> from tileray.scene.scene import Scene
    >>> from tileray.core.tracer import Tracer
    >>> tracer = Tracer(Scene.from_config(create_default_scene_config()))
    >>> r, g, b = tracer.trace((0, 0, 0), (0, -0.2, 1))  # Looks at the red sphere
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from tileray.core.lighting import compute_lighting
from tileray.core.ray import T_INFINITY, T_MIN, make_ray, normalize, ray_at, reflect

# Type alias for 3D vectors
vec3 = tm.vec3

# Default reflection depth
DEFAULT_MAX_DEPTH = 3


@ti.func
def trace_ray(
    scene: ti.template(),
    origin: vec3,
    direction: vec3,
    depth: ti.i32,
    background: vec3,
    last_occluder: ti.i32,
):
    """Compute the color seen along a ray.

    Args:
        scene: The Scene to trace against.
        origin: Ray origin.
        direction: Ray direction; normalized before use.
        depth: Number of mirror bounces still allowed.
        background: Color returned for rays that hit nothing.
        last_occluder: Shadow cache of the calling task (-1 when empty).

    Returns:
        Tuple (color, last_occluder). The color is not clamped.
    """
    color = vec3(0.0, 0.0, 0.0)
    weight = 1.0
    ray = make_ray(origin, normalize(direction))
    remaining = depth
    occluder = last_occluder

    # Active flag for bounce continuation (no break inside ti.func loops)
    active = 1

    for _ in range(depth + 1):
        if active == 1:
            t, index = scene.closest_hit(ray.origin, ray.direction, T_MIN, T_INFINITY)

            if index < 0:
                color += weight * background
                active = 0
            else:
                point = ray_at(ray, t)
                normal = scene.surface_normal(index, point)
                material = scene.material_of(index)

                intensity, occluder = compute_lighting(
                    scene, point, normal, -ray.direction, scene.material_specular[material], occluder
                )
                local = scene.material_colors[material] * intensity
                r = scene.material_reflectiveness[material]

                if remaining <= 0 or r <= 0.0:
                    color += weight * local
                    active = 0
                else:
                    color += weight * (1.0 - r) * local
                    weight *= r
                    ray = make_ray(point, normalize(reflect(-ray.direction, normal)))
                    remaining -= 1

    return color, occluder


@ti.data_oriented
class Tracer:
    """Single-ray tracing entry point, callable from Python.

    The tile renderer calls trace_ray() directly inside its kernel; this
    wrapper exists for inspection and testing of individual rays.

    Attributes:
        scene: The Scene to trace against.
        max_depth: Reflection depth used when trace() is not given one.
    """

    def __init__(self, scene, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self.scene = scene
        self.max_depth = max_depth
        self._color = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def _trace_kernel(self, origin: vec3, direction: vec3, depth: ti.i32):
        # Single-iteration outer loop keeps the bounce loop serial
        for _ in range(1):
            color, _occluder = trace_ray(self.scene, origin, direction, depth, self.scene.background[None], -1)
            self._color[None] = color

    def trace(
        self,
        origin: Sequence[float],
        direction: Sequence[float],
        depth: int | None = None,
    ) -> tuple[float, float, float]:
        """Trace one ray and return its unclamped color.

        Args:
            origin: Ray origin (x, y, z).
            direction: Ray direction (x, y, z); need not be normalized.
            depth: Reflection depth; defaults to max_depth.

        Returns:
            Tuple of (R, G, B) color values on the 0-255 scale.
        """
        if depth is None:
            depth = self.max_depth
        if depth < 0:
            raise ValueError(f"depth must be non-negative, got {depth}")
        self._trace_kernel(vec3(*origin), vec3(*direction), depth)
        color = self._color[None]
        return (float(color[0]), float(color[1]), float(color[2]))
