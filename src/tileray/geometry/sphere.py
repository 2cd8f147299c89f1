"""Sphere primitive with ray-sphere intersection.

This module provides a Sphere dataclass and the two-step intersection used by
the scene: sphere_roots() solves the quadratic and returns both roots, and
hit_sphere() picks the nearest root inside the caller's [t_min, t_max] window.

The roots come from the numerically stable quadratic formula from Ray Tracing
Gems, which avoids catastrophic cancellation for the large floor sphere of the
reference scene (radius 5000) where b^2 is nearly equal to 4ac.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tileray.geometry.sphere import make_sphere, hit_sphere
    >>> sphere = make_sphere(ti.math.vec3(0, 0, 3), 1.0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from tileray.core.ray import T_INFINITY

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        radius_sq: The squared radius, cached for the intersection test.
    """

    center: vec3
    radius: ti.f32
    radius_sq: ti.f32


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere with its squared radius filled in."""
    return Sphere(center=center, radius=radius, radius_sq=radius * radius)


@ti.func
def sphere_roots(origin: vec3, direction: vec3, center: vec3, radius_sq: ti.f32):
    """Solve |origin + t * direction - center|^2 = radius^2 for t.

    Expanding gives a*t^2 + 2*h*t + c = 0 with
        a = dot(direction, direction)
        h = dot(direction, origin - center)
        c = dot(origin - center, origin - center) - radius^2

    Args:
        origin: The ray origin.
        direction: The ray direction (need not be normalized).
        center: The sphere center.
        radius_sq: The squared sphere radius.

    Returns:
        Tuple (t0, t1) of both roots in no particular order. When the
        discriminant is negative both are T_INFINITY.
    """
    oc = origin - center
    a = tm.dot(direction, direction)
    h = tm.dot(direction, oc)
    c = tm.dot(oc, oc) - radius_sq

    discriminant = h * h - a * c

    t0 = T_INFINITY
    t1 = T_INFINITY

    if discriminant >= 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        # q = -(h + sign(h) * sqrt(discriminant))
        sign_h = ti.select(h < 0.0, -1.0, 1.0)
        q = -(h + sign_h * sqrt_d)

        if ti.abs(q) < 1e-10:
            # Tangent ray through the center plane; fall back to the textbook formula
            t0 = (-h - sqrt_d) / a
            t1 = (-h + sqrt_d) / a
        else:
            t0 = q / a
            t1 = c / q

    return t0, t1


@ti.func
def hit_sphere(
    origin: vec3,
    direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.f32:
    """Test a ray against a sphere.

    Args:
        origin: The starting point of the ray.
        direction: The direction vector of the ray.
        sphere: The sphere to test.
        t_min: Roots at or below this are ignored (self-intersection guard).
        t_max: Roots at or above this are ignored.

    Returns:
        The smallest root strictly inside (t_min, t_max), or T_INFINITY when
        there is none.
    """
    t0, t1 = sphere_roots(origin, direction, sphere.center, sphere.radius_sq)

    result = T_INFINITY
    if t_min < t0 < t_max:
        result = t0
    if t_min < t1 < t_max and t1 < result:
        result = t1

    return result
