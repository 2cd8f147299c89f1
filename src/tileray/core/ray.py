"""Ray data structure and vector algebra shared by every tracing stage.

This module provides the Ray dataclass, the small set of vector operations the
tracer needs (dot, cross, length, normalize, reflect) and the numeric
constants used for intersection bounds. The Taichi versions are called from
inside kernels; the NumPy twins serve Python-side setup code such as the
camera model and mesh preprocessing.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, 1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# =============================================================================
# Intersection Constants
# =============================================================================

# Smallest accepted hit distance; suppresses self-intersection ("shadow acne")
T_MIN = 0.05

# Upper bound for unbounded rays, also the "no hit" distance sentinel
T_INFINITY = 1.0e30

# Rays closer than this to a triangle's plane (|n.d| / |d|) are treated as misses
GRAZING_EPSILON = 0.05


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; the tracer normalizes primary and reflected rays.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length (magnitude) of a vector."""
    return ti.sqrt(tm.dot(v, v))


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Unlike tm.normalize, the zero vector is returned unchanged instead of
    producing NaNs.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or v itself when its
        length is zero.
    """
    result = v
    mag = length(v)
    if mag > 0.0:
        result = v / mag
    return result


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(v: vec3, normal: vec3) -> vec3:
    """Mirror a vector about a normal.

    Both vectors point away from the surface, so the result is the outgoing
    mirror direction for a vector pointing back toward the viewer:
    2 * n * (n . v) - v.

    Args:
        v: The vector to reflect (e.g. the light vector or -ray direction).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected vector.
    """
    return 2.0 * normal * tm.dot(normal, v) - v


# =============================================================================
# NumPy Twins (Python-side setup code)
# =============================================================================


def to_vec3_np(values) -> npt.NDArray[np.float64]:
    """Convert a 3-sequence into a float64 NumPy vector.

    Raises:
        ValueError: If the input does not have exactly three components.
    """
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected 3 components, got {arr.shape[0]}")
    return arr


def normalize_np(v: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Normalize a NumPy vector, leaving the zero vector unchanged."""
    mag = float(np.linalg.norm(v))
    if mag == 0.0:
        return v
    return v / mag
