"""Scene storage and ray-scene queries.

The Scene owns every primitive, material and light as Taichi fields in a
Structure-of-Arrays layout, built once from a SceneConfig and read-only
afterwards. Primitives share one index space:

    [0, num_spheres)                             spheres
    [num_spheres, num_spheres + num_triangles)   triangles

so a hit is reported as a single primitive index regardless of its kind, and
intersect_primitive() dispatches on that index.

Acceleration: each mesh's triangles form a bounding group with an enclosing
sphere. A group's triangles are only tested when the ray meets the group's
sphere inside the current search window. Spheres are their own bound and are
always tested directly. Turning bounds off (set_use_bounds(False)) gives the
exhaustive scan, which returns identical results.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tileray.scene.default_scene import create_default_scene_config
    >>> from tileray.scene.scene import Scene
    >>> scene = Scene.from_config(create_default_scene_config())
    >>> scene.query_closest_hit((0, 0, 0), (0, -0.2, 1)).index
    0
"""


import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from tileray.core.ray import T_INFINITY, T_MIN, normalize
from tileray.geometry.mesh import TriangleMesh, bounding_sphere, load_obj
from tileray.geometry.sphere import Sphere, hit_sphere, make_sphere, sphere_roots
from tileray.geometry.triangle import Triangle, hit_triangle
from tileray.scene.config import MaterialConfig, SceneConfig, SphereConfig
from tileray.scene.lights import Light

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass
class HitResult:
    """Result of a closest-hit query made from Python.

    Attributes:
        t: Distance along the ray to the nearest hit (T_INFINITY on a miss).
        index: Unified primitive index of the hit, or -1 on a miss.
    """

    t: float
    index: int

    @property
    def hit(self) -> bool:
        """Whether anything was hit."""
        return self.index >= 0


def _field_size(count: int) -> int:
    """Taichi fields cannot be empty; keep one unused slot for empty sets."""
    return max(count, 1)


@ti.data_oriented
class Scene:
    """Read-only scene of spheres, triangle meshes and lights.

    Attributes:
        num_spheres: Number of spheres.
        num_triangles: Number of triangles across all meshes.
        num_groups: Number of bounding groups (one per non-empty mesh).
        num_lights: Number of lights.
        num_materials: Number of materials (one per sphere, one per mesh).
    """

    def __init__(
        self,
        spheres: Sequence[SphereConfig] = (),
        meshes: Sequence[tuple[TriangleMesh, MaterialConfig]] = (),
        lights: Sequence[Light] = (),
        background: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> None:
        """Build the scene fields.

        Args:
            spheres: Sphere primitives, each with its own material.
            meshes: Pairs of (mesh, material); every triangle of a mesh uses
                the mesh's material.
            lights: The light set.
            background: Color for rays that escape the scene (0-255 scale).
        """
        meshes = [(mesh, material) for mesh, material in meshes if mesh.triangle_count > 0]

        self.num_spheres = len(spheres)
        self.num_triangles = sum(mesh.triangle_count for mesh, _ in meshes)
        self.num_groups = len(meshes)
        self.num_lights = len(lights)
        self.num_materials = len(spheres) + len(meshes)
        self.lights = list(lights)

        # Sphere storage
        self.sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=_field_size(self.num_spheres))
        self.sphere_radii = ti.field(dtype=ti.f32, shape=_field_size(self.num_spheres))
        self.sphere_materials = ti.field(dtype=ti.i32, shape=_field_size(self.num_spheres))

        # Triangle storage
        tri_shape = _field_size(self.num_triangles)
        self.tri_v0 = ti.Vector.field(3, dtype=ti.f32, shape=tri_shape)
        self.tri_v1 = ti.Vector.field(3, dtype=ti.f32, shape=tri_shape)
        self.tri_v2 = ti.Vector.field(3, dtype=ti.f32, shape=tri_shape)
        self.tri_normals = ti.Vector.field(3, dtype=ti.f32, shape=tri_shape)
        self.tri_centroids = ti.Vector.field(3, dtype=ti.f32, shape=tri_shape)
        self.tri_materials = ti.field(dtype=ti.i32, shape=tri_shape)

        # Bounding groups: triangle index range [start, end) plus enclosing sphere
        group_shape = _field_size(self.num_groups)
        self.group_centers = ti.Vector.field(3, dtype=ti.f32, shape=group_shape)
        self.group_radii_sq = ti.field(dtype=ti.f32, shape=group_shape)
        self.group_start = ti.field(dtype=ti.i32, shape=group_shape)
        self.group_end = ti.field(dtype=ti.i32, shape=group_shape)

        # Materials
        material_shape = _field_size(self.num_materials)
        self.material_colors = ti.Vector.field(3, dtype=ti.f32, shape=material_shape)
        self.material_specular = ti.field(dtype=ti.f32, shape=material_shape)
        self.material_reflectiveness = ti.field(dtype=ti.f32, shape=material_shape)

        # Lights
        light_shape = _field_size(self.num_lights)
        self.light_kinds = ti.field(dtype=ti.i32, shape=light_shape)
        self.light_intensities = ti.field(dtype=ti.f32, shape=light_shape)
        self.light_vectors = ti.Vector.field(3, dtype=ti.f32, shape=light_shape)

        self.background = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._use_bounds = ti.field(dtype=ti.i32, shape=())

        # Python-side query results
        self._query_t = ti.field(dtype=ti.f32, shape=())
        self._query_index = ti.field(dtype=ti.i32, shape=())
        self._query_vec = ti.Vector.field(3, dtype=ti.f32, shape=())

        self._upload(spheres, meshes, lights, background)
        self._use_bounds[None] = 1

        logger.info(
            "Scene built: %d spheres, %d triangles in %d mesh(es), %d lights",
            self.num_spheres,
            self.num_triangles,
            self.num_groups,
            self.num_lights,
        )

    @classmethod
    def from_config(cls, config: SceneConfig) -> "Scene":
        """Build a scene from a configuration, loading any OBJ meshes.

        Raises:
            MeshLoadError: If a mesh file is unreadable or malformed.
        """
        meshes = []
        for mesh_config in config.meshes:
            mesh = load_obj(mesh_config.path).transformed(mesh_config.scale, mesh_config.translate)
            meshes.append((mesh, mesh_config.material))
        return cls(
            spheres=config.spheres,
            meshes=meshes,
            lights=config.lights,
            background=config.background,
        )

    def _upload(
        self,
        spheres: Sequence[SphereConfig],
        meshes: Sequence[tuple[TriangleMesh, MaterialConfig]],
        lights: Sequence[Light],
        background: tuple[float, float, float],
    ) -> None:
        """Copy the Python-side description into the Taichi fields."""
        materials = [sphere.material for sphere in spheres] + [material for _, material in meshes]
        if materials:
            self.material_colors.from_numpy(
                np.asarray([m.color for m in materials], dtype=np.float32)
            )
            self.material_specular.from_numpy(
                np.asarray([m.specular for m in materials], dtype=np.float32)
            )
            self.material_reflectiveness.from_numpy(
                np.asarray([m.reflectiveness for m in materials], dtype=np.float32)
            )

        if spheres:
            self.sphere_centers.from_numpy(np.asarray([s.center for s in spheres], dtype=np.float32))
            self.sphere_radii.from_numpy(np.asarray([s.radius for s in spheres], dtype=np.float32))
            self.sphere_materials.from_numpy(np.arange(len(spheres), dtype=np.int32))

        if meshes:
            vertices = np.concatenate([mesh.vertices for mesh, _ in meshes]).astype(np.float32)
            self.tri_v0.from_numpy(np.ascontiguousarray(vertices[:, 0]))
            self.tri_v1.from_numpy(np.ascontiguousarray(vertices[:, 1]))
            self.tri_v2.from_numpy(np.ascontiguousarray(vertices[:, 2]))
            self.tri_normals.from_numpy(
                np.concatenate([mesh.normals for mesh, _ in meshes]).astype(np.float32)
            )
            self.tri_centroids.from_numpy(
                np.concatenate([mesh.centroids for mesh, _ in meshes]).astype(np.float32)
            )
            self.tri_materials.from_numpy(
                np.concatenate(
                    [
                        np.full(mesh.triangle_count, len(spheres) + k, dtype=np.int32)
                        for k, (mesh, _) in enumerate(meshes)
                    ]
                )
            )

            start = 0
            for g, (mesh, _) in enumerate(meshes):
                center, radius = bounding_sphere(mesh.vertices)
                self.group_centers[g] = center.tolist()
                self.group_radii_sq[g] = radius * radius
                self.group_start[g] = start
                self.group_end[g] = start + mesh.triangle_count
                start += mesh.triangle_count

        if lights:
            self.light_kinds.from_numpy(np.asarray([int(light.kind) for light in lights], dtype=np.int32))
            self.light_intensities.from_numpy(
                np.asarray([light.intensity for light in lights], dtype=np.float32)
            )
            self.light_vectors.from_numpy(np.asarray([light.vector for light in lights], dtype=np.float32))

        self.background[None] = list(background)

    # =========================================================================
    # Configuration
    # =========================================================================

    @property
    def primitive_count(self) -> int:
        """Total number of primitives (spheres plus triangles)."""
        return self.num_spheres + self.num_triangles

    def set_use_bounds(self, enabled: bool) -> None:
        """Enable or disable the bounding-sphere rejection test."""
        self._use_bounds[None] = 1 if enabled else 0

    def uses_bounds(self) -> bool:
        """Whether bounding-sphere rejection is active."""
        return bool(self._use_bounds[None])

    # =========================================================================
    # Primitive Access (Taichi scope)
    # =========================================================================

    @ti.func
    def sphere_at(self, index: ti.i32) -> Sphere:
        """Assemble the sphere stored at a sphere index."""
        return make_sphere(self.sphere_centers[index], self.sphere_radii[index])

    @ti.func
    def triangle_at(self, index: ti.i32) -> Triangle:
        """Assemble the triangle stored at a triangle index (not the unified index)."""
        return Triangle(
            v0=self.tri_v0[index],
            v1=self.tri_v1[index],
            v2=self.tri_v2[index],
            normal=self.tri_normals[index],
            centroid=self.tri_centroids[index],
        )

    @ti.func
    def intersect_primitive(
        self, index: ti.i32, origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32
    ) -> ti.f32:
        """Intersect one primitive by its unified index.

        Returns:
            The hit distance in (t_min, t_max), or T_INFINITY.
        """
        t = T_INFINITY
        if index < self.num_spheres:
            t = hit_sphere(origin, direction, self.sphere_at(index), t_min, t_max)
        else:
            t = hit_triangle(origin, direction, self.triangle_at(index - self.num_spheres), t_min, t_max)
        return t

    @ti.func
    def group_may_hit(
        self, group: ti.i32, origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32
    ) -> ti.i32:
        """Bounding-sphere test for a group of triangles.

        Returns 0 only if the ray's chord through the group's sphere lies
        entirely outside (t_min, t_max), so no enclosed triangle can be hit
        inside that window. Always returns 1 when bounds are disabled.
        """
        result = 1
        if self._use_bounds[None] == 1:
            t0, t1 = sphere_roots(origin, direction, self.group_centers[group], self.group_radii_sq[group])
            near = ti.min(t0, t1)
            far = ti.max(t0, t1)
            # A miss returns (T_INFINITY, T_INFINITY), which fails near < t_max
            if near >= t_max or far <= t_min:
                result = 0
        return result

    @ti.func
    def closest_hit(self, origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
        """Find the nearest primitive hit in (t_min, t_max).

        Args:
            origin: Ray origin.
            direction: Ray direction.
            t_min: Lower bound of the search window (exclusive).
            t_max: Upper bound of the search window (exclusive).

        Returns:
            Tuple (t, index). index is -1 and t is T_INFINITY on a miss.
        """
        closest_t = t_max
        hit_index = -1

        for i in range(self.num_spheres):
            t = hit_sphere(origin, direction, self.sphere_at(i), t_min, closest_t)
            if t < closest_t:
                closest_t = t
                hit_index = i

        for g in range(self.num_groups):
            if self.group_may_hit(g, origin, direction, t_min, closest_t) == 1:
                for k in range(self.group_start[g], self.group_end[g]):
                    t = hit_triangle(origin, direction, self.triangle_at(k), t_min, closest_t)
                    if t < closest_t:
                        closest_t = t
                        hit_index = self.num_spheres + k

        hit_t = T_INFINITY
        if hit_index >= 0:
            hit_t = closest_t
        return hit_t, hit_index

    @ti.func
    def occluded(
        self, origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32, last_occluder: ti.i32
    ):
        """Shadow-ray query: is anything hit inside (t_min, t_max)?

        The primitive that blocked the previous shadow ray is tested first;
        neighbouring shadow rays are usually blocked by the same occluder.
        Only when it misses does the full scan run. The answer is the same
        as the full scan's either way.

        Args:
            origin: Shadow ray origin (the shaded point).
            direction: Vector toward the light.
            t_min: Lower bound of the search window (exclusive).
            t_max: Upper bound of the search window (exclusive).
            last_occluder: Unified index of the previous occluder, or -1.

        Returns:
            Tuple (blocked, occluder): blocked is 1 when the light is hidden;
            occluder is the updated cache value to pass to the next query.
        """
        blocked = 0
        occluder = last_occluder

        if occluder >= 0:
            if self.intersect_primitive(occluder, origin, direction, t_min, t_max) < T_INFINITY:
                blocked = 1

        if blocked == 0:
            for i in range(self.num_spheres):
                if blocked == 0:
                    if hit_sphere(origin, direction, self.sphere_at(i), t_min, t_max) < T_INFINITY:
                        blocked = 1
                        occluder = i

            for g in range(self.num_groups):
                if blocked == 0 and self.group_may_hit(g, origin, direction, t_min, t_max) == 1:
                    for k in range(self.group_start[g], self.group_end[g]):
                        if blocked == 0:
                            if hit_triangle(origin, direction, self.triangle_at(k), t_min, t_max) < T_INFINITY:
                                blocked = 1
                                occluder = self.num_spheres + k

        return blocked, occluder

    @ti.func
    def surface_normal(self, index: ti.i32, point: vec3) -> vec3:
        """Surface normal at a hit point: radial for spheres, the face normal for triangles."""
        normal = vec3(0.0, 0.0, 0.0)
        if index < self.num_spheres:
            normal = normalize(point - self.sphere_centers[index])
        else:
            normal = self.tri_normals[index - self.num_spheres]
        return normal

    @ti.func
    def material_of(self, index: ti.i32) -> ti.i32:
        """Material ID of a primitive by unified index."""
        material = 0
        if index < self.num_spheres:
            material = self.sphere_materials[index]
        else:
            material = self.tri_materials[index - self.num_spheres]
        return material

    # =========================================================================
    # Python-side Queries (testing and debugging)
    # =========================================================================

    @ti.kernel
    def _closest_hit_kernel(self, origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
        # Single-iteration outer loop keeps the scans below serial
        for _ in range(1):
            t, index = self.closest_hit(origin, direction, t_min, t_max)
            self._query_t[None] = t
            self._query_index[None] = index

    @ti.kernel
    def _occluded_kernel(
        self, origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32, last_occluder: ti.i32
    ):
        for _ in range(1):
            blocked, occluder = self.occluded(origin, direction, t_min, t_max, last_occluder)
            self._query_t[None] = ti.cast(blocked, ti.f32)
            self._query_index[None] = occluder

    @ti.kernel
    def _surface_normal_kernel(self, index: ti.i32, point: vec3):
        for _ in range(1):
            self._query_vec[None] = self.surface_normal(index, point)

    def query_closest_hit(
        self,
        origin: Sequence[float],
        direction: Sequence[float],
        t_min: float = T_MIN,
        t_max: float = T_INFINITY,
    ) -> HitResult:
        """Run a closest-hit query from Python.

        Args:
            origin: Ray origin (x, y, z).
            direction: Ray direction (x, y, z).
            t_min: Lower bound of the search window.
            t_max: Upper bound of the search window.

        Returns:
            The HitResult for the ray.
        """
        self._closest_hit_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
        return HitResult(t=float(self._query_t[None]), index=int(self._query_index[None]))

    def query_occluded(
        self,
        origin: Sequence[float],
        direction: Sequence[float],
        t_max: float,
        last_occluder: int = -1,
        t_min: float = T_MIN,
    ) -> tuple[bool, int]:
        """Run a shadow-ray query from Python.

        Returns:
            Tuple (blocked, occluder) as returned by occluded().
        """
        self._occluded_kernel(vec3(*origin), vec3(*direction), t_min, t_max, last_occluder)
        return bool(self._query_t[None] > 0.5), int(self._query_index[None])

    def query_surface_normal(self, index: int, point: Sequence[float]) -> tuple[float, float, float]:
        """Surface normal of a primitive at a point, from Python."""
        if not 0 <= index < self.primitive_count:
            raise ValueError(f"Primitive index {index} out of range [0, {self.primitive_count})")
        self._surface_normal_kernel(index, vec3(*point))
        n = self._query_vec[None]
        return (float(n[0]), float(n[1]), float(n[2]))
