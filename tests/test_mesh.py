"""Unit tests for OBJ mesh loading and preprocessing.

Tests cover:
- Fan triangulation of polygons
- Face normals and centroids
- v/vt/vn face tokens and negative indices
- Degenerate triangle removal
- Malformed input (all-or-nothing loading)
- Bounding spheres and transforms
"""

import numpy as np
import pytest


class TestBuildMesh:
    """Tests for build_mesh triangulation and precomputation."""

    def test_single_triangle(self):
        """Test one triangle keeps its vertices, unit normal and centroid."""
        from tileray.geometry.mesh import build_mesh

        mesh = build_mesh([[0, 0, 0], [3, 0, 0], [0, 3, 0]], [[0, 1, 2]])

        assert mesh.triangle_count == 1
        np.testing.assert_allclose(mesh.normals[0], [0.0, 0.0, 1.0])
        np.testing.assert_allclose(mesh.centroids[0], [1.0, 1.0, 0.0])

    def test_quad_fan_triangulated(self):
        """Test a quad (a, b, c, d) becomes (a, b, c) and (a, c, d)."""
        from tileray.geometry.mesh import build_mesh

        positions = [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]]
        mesh = build_mesh(positions, [[0, 1, 2, 3]])

        assert mesh.triangle_count == 2
        np.testing.assert_allclose(mesh.vertices[0], [positions[0], positions[1], positions[2]])
        np.testing.assert_allclose(mesh.vertices[1], [positions[0], positions[2], positions[3]])

    def test_pentagon_gives_three_triangles(self):
        """Test an n-gon yields n - 2 triangles."""
        from tileray.geometry.mesh import build_mesh

        angles = np.linspace(0.0, 2.0 * np.pi, 5, endpoint=False)
        positions = np.stack([np.cos(angles), np.sin(angles), np.zeros(5)], axis=1)
        mesh = build_mesh(positions, [[0, 1, 2, 3, 4]])

        assert mesh.triangle_count == 3

    def test_degenerate_triangle_dropped(self, caplog):
        """Test a zero-area triangle is removed with a warning."""
        from tileray.geometry.mesh import build_mesh

        positions = [[0, 0, 0], [1, 0, 0], [2, 0, 0], [0, 1, 0]]
        with caplog.at_level("WARNING", logger="tileray.geometry.mesh"):
            mesh = build_mesh(positions, [[0, 1, 2], [0, 1, 3]])

        assert mesh.triangle_count == 1
        assert "degenerate" in caplog.text

    def test_face_with_two_vertices_rejected(self):
        """Test a face with fewer than three vertices raises MeshLoadError."""
        from tileray.geometry.mesh import MeshLoadError, build_mesh

        with pytest.raises(MeshLoadError, match="at least 3"):
            build_mesh([[0, 0, 0], [1, 0, 0]], [[0, 1]])

    def test_out_of_range_index_rejected(self):
        """Test a face referencing a missing vertex raises MeshLoadError."""
        from tileray.geometry.mesh import MeshLoadError, build_mesh

        with pytest.raises(MeshLoadError, match="references vertex"):
            build_mesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1, 5]])

    def test_mesh_load_error_is_value_error(self):
        """Test MeshLoadError can be caught as ValueError."""
        from tileray.geometry.mesh import MeshLoadError

        assert issubclass(MeshLoadError, ValueError)


class TestParseObj:
    """Tests for OBJ text parsing."""

    def test_vertices_and_faces(self):
        """Test v and f records are parsed with 1-based indices."""
        from tileray.geometry.mesh import parse_obj

        positions, faces = parse_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")

        assert positions.shape == (3, 3)
        assert faces == [[0, 1, 2]]

    def test_slash_tokens_use_position_index(self):
        """Test v/vt/vn and v//vn tokens use only the position index."""
        from tileray.geometry.mesh import parse_obj

        text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nvt 0 0\nvn 0 0 1\nf 1/1/1 2//1 3/1\n"
        _, faces = parse_obj(text)

        assert faces == [[0, 1, 2]]

    def test_negative_indices_are_relative(self):
        """Test -1 refers to the most recently defined vertex."""
        from tileray.geometry.mesh import parse_obj

        _, faces = parse_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nf -3 -2 -1\n")

        assert faces == [[0, 1, 2]]

    def test_comments_and_other_records_ignored(self):
        """Test comments, groups and material records are skipped."""
        from tileray.geometry.mesh import parse_obj

        text = "# comment\no thing\ng group\nusemtl red\nv 0 0 0\nv 1 0 0\nv 0 1 0\ns off\nf 1 2 3\n"
        positions, faces = parse_obj(text)

        assert positions.shape == (3, 3)
        assert len(faces) == 1

    @pytest.mark.parametrize(
        "text,message",
        [
            ("v 0 0\n", "3 coordinates"),
            ("v 0 zero 0\n", "malformed vertex"),
            ("v 0 0 0\nv 1 0 0\nf 1 2\n", "at least 3"),
            ("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 x\n", "malformed face"),
            ("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 0 1 2\n", "index 0"),
            ("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 4\n", "out of range"),
        ],
    )
    def test_malformed_records(self, text, message):
        """Test malformed records raise MeshLoadError naming the problem."""
        from tileray.geometry.mesh import MeshLoadError, parse_obj

        with pytest.raises(MeshLoadError, match=message):
            parse_obj(text)


class TestLoadObj:
    """Tests for loading OBJ files from disk."""

    def test_load_cube(self, cube_obj):
        """Test the six-quad cube loads as twelve outward-facing triangles."""
        from tileray.geometry.mesh import load_obj

        mesh = load_obj(cube_obj)

        assert mesh.triangle_count == 12
        np.testing.assert_allclose(np.linalg.norm(mesh.normals, axis=1), 1.0)
        # Every face of this cube is wound counter-clockwise seen from outside
        outward = np.einsum("ij,ij->i", mesh.normals, mesh.centroids)
        assert np.all(outward > 0.0)

    def test_missing_file(self, tmp_path):
        """Test an unreadable path raises MeshLoadError."""
        from tileray.geometry.mesh import MeshLoadError, load_obj

        with pytest.raises(MeshLoadError, match="Cannot read"):
            load_obj(tmp_path / "missing.obj")

    def test_malformed_file_returns_nothing(self, tmp_path):
        """Test a bad record anywhere in the file fails the whole load."""
        from tileray.geometry.mesh import MeshLoadError, load_obj

        path = tmp_path / "bad.obj"
        path.write_text("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\nf 1 2 9\n")

        with pytest.raises(MeshLoadError):
            load_obj(path)


class TestMeshTransformAndBounds:
    """Tests for transformed() and bounding_sphere()."""

    def test_transformed(self, cube_obj):
        """Test scale then translate moves vertices and centroids, not normals."""
        from tileray.geometry.mesh import load_obj

        mesh = load_obj(cube_obj)
        moved = mesh.transformed(2.0, (0.0, 0.0, 5.0))

        np.testing.assert_allclose(moved.vertices, mesh.vertices * 2.0 + [0.0, 0.0, 5.0])
        np.testing.assert_allclose(moved.centroids, mesh.centroids * 2.0 + [0.0, 0.0, 5.0])
        np.testing.assert_allclose(moved.normals, mesh.normals)

    def test_transformed_rejects_non_positive_scale(self, cube_obj):
        """Test a zero scale raises ValueError."""
        from tileray.geometry.mesh import load_obj

        with pytest.raises(ValueError, match="positive"):
            load_obj(cube_obj).transformed(0.0)

    def test_bounding_sphere_contains_all_vertices(self, cube_obj):
        """Test every vertex lies inside the bounding sphere."""
        from tileray.geometry.mesh import bounding_sphere, load_obj

        mesh = load_obj(cube_obj).transformed(3.0, (1.0, 2.0, 3.0))
        center, radius = bounding_sphere(mesh.vertices)

        np.testing.assert_allclose(center, [1.0, 2.0, 3.0], atol=1e-9)
        distances = np.linalg.norm(mesh.vertices.reshape(-1, 3) - center, axis=1)
        assert np.all(distances < radius)

    def test_bounding_sphere_empty(self):
        """Test bounding an empty vertex set raises ValueError."""
        from tileray.geometry.mesh import bounding_sphere

        with pytest.raises(ValueError):
            bounding_sphere(np.zeros((0, 3, 3)))
