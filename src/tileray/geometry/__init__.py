"""Geometry module for shape primitives and mesh loading.

Components:
    sphere: Sphere primitive with ray-sphere intersection
    triangle: Triangle primitive with plane + barycentric intersection
    mesh: OBJ loading, fan triangulation and bounding spheres (NumPy side)

Intersection routines are Taichi functions (@ti.func) returning the hit
distance, or T_INFINITY when the ray misses inside the search window.
"""

from .mesh import (
    MeshLoadError,
    TriangleMesh,
    bounding_sphere,
    build_mesh,
    load_obj,
    parse_obj,
)
from .sphere import Sphere, hit_sphere, make_sphere, sphere_roots
from .triangle import Triangle, barycentric, hit_triangle

__all__ = [
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "sphere_roots",
    "Triangle",
    "barycentric",
    "hit_triangle",
    "MeshLoadError",
    "TriangleMesh",
    "bounding_sphere",
    "build_mesh",
    "load_obj",
    "parse_obj",
]
