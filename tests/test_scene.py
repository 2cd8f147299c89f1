"""Unit tests for the Taichi-backed Scene.

Tests cover:
- Construction from configuration (counts, unified primitive indices)
- Closest-hit queries across spheres and triangles
- Bounding-sphere rejection gives identical results to exhaustive testing
- Shadow queries and the last-occluder cache
- Surface normals
"""

import math

import numpy as np
import pytest


@pytest.fixture
def mixed_scene(cube_obj):
    """A sphere at z = 5 and a unit cube at z = 10 behind it, offset in x."""
    from tileray.geometry.mesh import load_obj
    from tileray.scene.config import MaterialConfig, SphereConfig
    from tileray.scene.lights import Light
    from tileray.scene.scene import Scene

    cube = load_obj(cube_obj).transformed(2.0, (3.0, 0.0, 10.0))
    return Scene(
        spheres=[
            SphereConfig(center=(0.0, 0.0, 5.0), radius=1.0, material=MaterialConfig(color=(255.0, 0.0, 0.0))),
        ],
        meshes=[(cube, MaterialConfig(color=(0.0, 255.0, 0.0)))],
        lights=[Light.ambient(1.0)],
        background=(10.0, 20.0, 30.0),
    )


class TestSceneConstruction:
    """Tests for building scene fields."""

    def test_counts(self, mixed_scene):
        """Test primitive, group and light counts."""
        assert mixed_scene.num_spheres == 1
        assert mixed_scene.num_triangles == 12
        assert mixed_scene.num_groups == 1
        assert mixed_scene.num_lights == 1
        assert mixed_scene.num_materials == 2
        assert mixed_scene.primitive_count == 13

    def test_from_config_loads_meshes(self, cube_obj):
        """Test Scene.from_config loads and transforms mesh files."""
        from tileray.scene.config import MeshConfig, SceneConfig
        from tileray.scene.scene import Scene

        config = SceneConfig(meshes=[MeshConfig(path=str(cube_obj), translate=(0.0, 0.0, 5.0))])
        scene = Scene.from_config(config)

        assert scene.num_triangles == 12
        hit = scene.query_closest_hit((0.1, -0.2, 0.0), (0.0, 0.0, 1.0))
        assert hit.hit
        assert abs(hit.t - 4.5) < 1e-4

    def test_from_config_bad_mesh(self, tmp_path):
        """Test a missing mesh file fails scene construction."""
        from tileray.geometry.mesh import MeshLoadError
        from tileray.scene.config import MeshConfig, SceneConfig
        from tileray.scene.scene import Scene

        config = SceneConfig(meshes=[MeshConfig(path=str(tmp_path / "missing.obj"))])
        with pytest.raises(MeshLoadError):
            Scene.from_config(config)

    def test_empty_scene_misses(self):
        """Test a scene with no primitives reports no hit."""
        from tileray.scene.scene import Scene

        scene = Scene()
        hit = scene.query_closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))

        assert not hit.hit
        assert hit.index == -1

    def test_background_stored(self, mixed_scene):
        """Test the background color is uploaded."""
        bg = mixed_scene.background[None]
        assert (bg[0], bg[1], bg[2]) == (10.0, 20.0, 30.0)


class TestClosestHit:
    """Tests for closest-hit queries."""

    def test_hits_sphere(self, mixed_scene):
        """Test a ray straight ahead hits the sphere (index 0) at t = 4."""
        hit = mixed_scene.query_closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))

        assert hit.index == 0
        assert abs(hit.t - 4.0) < 1e-5

    def test_hits_triangle_with_unified_index(self, mixed_scene):
        """Test triangle hits are reported after the sphere indices."""
        hit = mixed_scene.query_closest_hit((3.0, 0.3, 0.0), (0.0, 0.0, 1.0))

        assert mixed_scene.num_spheres <= hit.index < mixed_scene.primitive_count
        # The cube's front face sits at z = 10 - 1
        assert abs(hit.t - 9.0) < 1e-4

    def test_nearest_of_overlapping(self, mixed_scene):
        """Test the nearer of two primitives along the ray wins."""
        from tileray.scene.config import SphereConfig
        from tileray.scene.scene import Scene

        scene = Scene(
            spheres=[
                SphereConfig(center=(0.0, 0.0, 10.0), radius=1.0),
                SphereConfig(center=(0.0, 0.0, 5.0), radius=1.0),
            ]
        )
        hit = scene.query_closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))

        assert hit.index == 1
        assert abs(hit.t - 4.0) < 1e-5

    def test_miss(self, mixed_scene):
        """Test a ray pointing away from everything misses."""
        from tileray.core.ray import T_INFINITY

        hit = mixed_scene.query_closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert not hit.hit
        assert hit.t >= T_INFINITY * 0.99

    def test_t_max_window(self, mixed_scene):
        """Test hits beyond t_max are ignored."""
        hit = mixed_scene.query_closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), t_max=3.0)
        assert not hit.hit


class TestBoundsEquivalence:
    """Tests that bounding-sphere rejection never changes results."""

    def test_uses_bounds_by_default(self, mixed_scene):
        """Test bounds are enabled after construction and can be toggled."""
        assert mixed_scene.uses_bounds()
        mixed_scene.set_use_bounds(False)
        assert not mixed_scene.uses_bounds()
        mixed_scene.set_use_bounds(True)
        assert mixed_scene.uses_bounds()

    def test_random_rays_identical(self, mixed_scene):
        """Test closest hits match exactly with and without bounds."""
        rng = np.random.default_rng(7)
        origins = rng.uniform(-4.0, 4.0, size=(60, 3))
        targets = np.array([3.0, 0.0, 10.0]) + rng.uniform(-2.0, 2.0, size=(60, 3))

        with_bounds = []
        mixed_scene.set_use_bounds(True)
        for origin, target in zip(origins, targets):
            hit = mixed_scene.query_closest_hit(origin, target - origin)
            with_bounds.append((hit.t, hit.index))

        without_bounds = []
        mixed_scene.set_use_bounds(False)
        for origin, target in zip(origins, targets):
            hit = mixed_scene.query_closest_hit(origin, target - origin)
            without_bounds.append((hit.t, hit.index))
        mixed_scene.set_use_bounds(True)

        assert with_bounds == without_bounds
        # The sample must actually exercise the mesh
        assert any(index >= mixed_scene.num_spheres for _, index in with_bounds)

    def test_bounds_reject_rays_that_miss_group(self, mixed_scene):
        """Test a ray far from the cube still resolves correctly with bounds on."""
        hit = mixed_scene.query_closest_hit((-20.0, 0.0, 10.0), (0.0, 1.0, 0.0))
        assert not hit.hit


class TestOcclusion:
    """Tests for shadow queries and the last-occluder cache."""

    def test_blocked(self, mixed_scene):
        """Test a shadow ray through the sphere is blocked by index 0."""
        blocked, occluder = mixed_scene.query_occluded((0.0, 0.0, 0.0), (0.0, 0.0, 10.0), t_max=1.0)

        assert blocked
        assert occluder == 0

    def test_unblocked_keeps_cache(self, mixed_scene):
        """Test an unblocked query leaves the cached occluder untouched."""
        blocked, occluder = mixed_scene.query_occluded(
            (0.0, 0.0, 0.0), (0.0, 10.0, 0.0), t_max=1.0, last_occluder=0
        )

        assert not blocked
        assert occluder == 0

    def test_point_light_window_stops_at_light(self, mixed_scene):
        """Test occluders beyond the light (t >= 1) do not block."""
        # Light at z = 3 sits in front of the sphere
        blocked, _ = mixed_scene.query_occluded((0.0, 0.0, 0.0), (0.0, 0.0, 3.0), t_max=1.0)
        assert not blocked

    def test_stale_cache_falls_back_to_scan(self, mixed_scene):
        """Test a cached primitive that misses does not hide the real occluder."""
        # Cache the sphere, then query a ray blocked only by the cube
        blocked, occluder = mixed_scene.query_occluded(
            (3.0, 0.3, 0.0), (0.0, 0.0, 20.0), t_max=1.0, last_occluder=0
        )

        assert blocked
        assert occluder >= mixed_scene.num_spheres

    def test_cache_does_not_change_answer(self, mixed_scene):
        """Test the visibility answer is the same for every cache value."""
        rays = [
            ((0.0, 0.0, 0.0), (0.0, 0.0, 10.0)),
            ((3.0, 0.3, 0.0), (0.0, 0.0, 20.0)),
            ((0.0, 0.0, 0.0), (0.0, 10.0, 0.0)),
            ((0.0, 5.0, 5.0), (0.0, -10.0, 0.0)),
        ]
        for origin, direction in rays:
            answers = {
                mixed_scene.query_occluded(origin, direction, t_max=1.0, last_occluder=cache)[0]
                for cache in range(-1, mixed_scene.primitive_count)
            }
            assert len(answers) == 1


class TestSurfaceNormal:
    """Tests for surface normals by primitive kind."""

    def test_sphere_normal_is_radial(self, mixed_scene):
        """Test the sphere normal points from the center through the point."""
        n = mixed_scene.query_surface_normal(0, (0.0, 1.0, 5.0))
        assert n == pytest.approx((0.0, 1.0, 0.0), abs=1e-6)

    def test_triangle_normal_is_face_normal(self, mixed_scene):
        """Test a triangle returns its unit face normal."""
        hit = mixed_scene.query_closest_hit((3.0, 0.3, 0.0), (0.0, 0.0, 1.0))
        n = mixed_scene.query_surface_normal(hit.index, (3.0, 0.3, hit.t))

        assert n == pytest.approx((0.0, 0.0, -1.0), abs=1e-6)
        assert math.isclose(math.sqrt(sum(c * c for c in n)), 1.0, rel_tol=1e-6)

    def test_index_out_of_range(self, mixed_scene):
        """Test an invalid primitive index raises ValueError."""
        with pytest.raises(ValueError, match="out of range"):
            mixed_scene.query_surface_normal(99, (0.0, 0.0, 0.0))
