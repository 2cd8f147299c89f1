"""Triangle primitive with ray-triangle intersection.

A triangle stores its three vertices together with two values precomputed when
the mesh is built:
- normal: the unit face normal normalize((v1 - v0) x (v2 - v0))
- centroid: (v0 + v1 + v2) / 3, used as the point on the triangle's plane

Ray-triangle intersection is a two-stage test:
1. Intersect the ray with the supporting plane, rejecting near-grazing rays.
2. Express the hit point in barycentric coordinates (dot-product/Cramer's
   rule form) and accept it only if all three coordinates are non-negative.

The containment test does not depend on vertex winding; only the sign of the
stored normal (used for lighting) does.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tileray.geometry.triangle import hit_triangle
    >>> # Use hit_triangle within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from tileray.core.ray import GRAZING_EPSILON, T_INFINITY, length

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Barycentric denominators below this mark a degenerate (zero-area) triangle
DEGENERATE_EPSILON = 1e-12


@ti.dataclass
class Triangle:
    """A triangle with its precomputed face normal and centroid.

    Attributes:
        v0: First vertex (vec3).
        v1: Second vertex (vec3).
        v2: Third vertex (vec3).
        normal: Unit face normal (vec3).
        centroid: Average of the three vertices (vec3).
    """

    v0: vec3
    v1: vec3
    v2: vec3
    normal: vec3
    centroid: vec3



@ti.func
def barycentric(p: vec3, v0: vec3, v1: vec3, v2: vec3):
    """Compute the barycentric coordinates of a point in a triangle's plane.

    Solves p = u * v0 + v * v1 + w * v2 with u + v + w = 1 using
        d00 = e1.e1, d01 = e1.e2, d11 = e2.e2, d20 = (p-v0).e1, d21 = (p-v0).e2
    where e1 = v1 - v0 and e2 = v2 - v0.

    Args:
        p: The point (assumed to lie in the triangle's plane).
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.

    Returns:
        Tuple (u, v, w, valid). valid is 0 for a degenerate triangle, in
        which case the coordinates are all zero.
    """
    e1 = v1 - v0
    e2 = v2 - v0
    ep = p - v0

    d00 = tm.dot(e1, e1)
    d01 = tm.dot(e1, e2)
    d11 = tm.dot(e2, e2)
    d20 = tm.dot(ep, e1)
    d21 = tm.dot(ep, e2)

    denom = d00 * d11 - d01 * d01

    u = 0.0
    v = 0.0
    w = 0.0
    valid = 0

    if ti.abs(denom) > DEGENERATE_EPSILON:
        v = (d11 * d20 - d01 * d21) / denom
        w = (d00 * d21 - d01 * d20) / denom
        u = 1.0 - v - w
        valid = 1

    return u, v, w, valid


@ti.func
def hit_triangle(
    origin: vec3,
    direction: vec3,
    triangle: Triangle,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.f32:
    """Test a ray against a triangle.

    The plane test uses the stored normal and centroid:
        t = dot(centroid - origin, normal) / dot(normal, direction)
    Rays with |dot(normal, direction)| < GRAZING_EPSILON * |direction| are
    rejected to avoid dividing by a vanishing denominator.

    Args:
        origin: The starting point of the ray.
        direction: The direction vector of the ray.
        triangle: The triangle to test.
        t_min: Hits at or below this distance are ignored.
        t_max: Hits at or above this distance are ignored.

    Returns:
        The hit distance strictly inside (t_min, t_max), or T_INFINITY.
    """
    result = T_INFINITY

    denom = tm.dot(triangle.normal, direction)
    if ti.abs(denom) >= GRAZING_EPSILON * length(direction):
        t = tm.dot(triangle.centroid - origin, triangle.normal) / denom
        if t_min < t < t_max:
            p = origin + direction * t
            u, v, w, valid = barycentric(p, triangle.v0, triangle.v1, triangle.v2)
            if valid == 1 and u >= 0.0 and v >= 0.0 and w >= 0.0:
                result = t

    return result
