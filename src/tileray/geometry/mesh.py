"""Triangle meshes: Wavefront OBJ loading and triangle preprocessing.

This module runs on the Python side with NumPy. It turns vertex positions and
polygonal faces into the flat per-triangle arrays the scene uploads to Taichi
fields: vertices, unit face normals and centroids.

Loading is all-or-nothing. Any malformed record raises MeshLoadError and no
partial mesh is returned. Zero-area triangles are not errors; they are dropped
while the mesh is built so the intersection code never sees them.

Example:
    >>> from tileray.geometry.mesh import load_obj
    >>> mesh = load_obj("models/teapot.obj")
    >>> mesh.triangle_count
    6320
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

# Triangles whose doubled area is below this are dropped as degenerate
MIN_DOUBLE_AREA = 1e-10

# Relative padding applied to mesh bounding spheres
BOUNDS_PADDING = 1e-4


class MeshLoadError(ValueError):
    """Raised when a mesh source cannot be read or contains malformed data."""


@dataclass
class TriangleMesh:
    """Preprocessed triangles ready for upload to the scene.

    Attributes:
        vertices: Array of shape (T, 3, 3): three vertex positions per triangle.
        normals: Array of shape (T, 3): unit face normals.
        centroids: Array of shape (T, 3): triangle centroids.
    """

    vertices: npt.NDArray[np.float64]
    normals: npt.NDArray[np.float64]
    centroids: npt.NDArray[np.float64]

    @property
    def triangle_count(self) -> int:
        """Number of triangles in the mesh."""
        return int(self.vertices.shape[0])

    def transformed(self, scale: float = 1.0, translate: Sequence[float] = (0.0, 0.0, 0.0)) -> TriangleMesh:
        """Return a copy scaled uniformly about the origin, then translated.

        A positive uniform scale keeps face normals unchanged.

        Raises:
            ValueError: If scale is not positive.
        """
        if scale <= 0.0:
            raise ValueError(f"Mesh scale must be positive, got {scale}")
        offset = np.asarray(translate, dtype=np.float64)
        return TriangleMesh(
            vertices=self.vertices * scale + offset,
            normals=self.normals.copy(),
            centroids=self.centroids * scale + offset,
        )


def build_mesh(
    positions: npt.ArrayLike,
    faces: Sequence[Sequence[int]],
) -> TriangleMesh:
    """Fan-triangulate polygonal faces and precompute normals and centroids.

    Args:
        positions: Vertex positions, shape (N, 3).
        faces: Faces as lists of 0-based vertex indices, each with at least
            three entries. Face (a, b, c, d) becomes triangles (a, b, c) and
            (a, c, d).

    Returns:
        The TriangleMesh with degenerate triangles removed.

    Raises:
        MeshLoadError: If positions are not (N, 3), a face has fewer than
            three vertices, or an index is out of range.
    """
    verts = np.asarray(positions, dtype=np.float64)
    if verts.size == 0:
        verts = verts.reshape(0, 3)
    if verts.ndim != 2 or verts.shape[1] != 3:
        raise MeshLoadError(f"Vertex positions must have shape (N, 3), got {verts.shape}")

    vertex_count = verts.shape[0]
    triangle_indices: list[tuple[int, int, int]] = []
    for face_number, face in enumerate(faces):
        if len(face) < 3:
            raise MeshLoadError(f"Face {face_number} has {len(face)} vertices; at least 3 required")
        for index in face:
            if not 0 <= index < vertex_count:
                raise MeshLoadError(
                    f"Face {face_number} references vertex {index}, "
                    f"but the mesh has {vertex_count} vertices"
                )
        for k in range(1, len(face) - 1):
            triangle_indices.append((face[0], face[k], face[k + 1]))

    if not triangle_indices:
        empty = np.zeros((0, 3), dtype=np.float64)
        return TriangleMesh(vertices=np.zeros((0, 3, 3)), normals=empty, centroids=empty.copy())

    tris = verts[np.asarray(triangle_indices, dtype=np.int64)]
    face_normals = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    double_areas = np.linalg.norm(face_normals, axis=1)

    keep = double_areas > MIN_DOUBLE_AREA
    dropped = int(np.count_nonzero(~keep))
    if dropped:
        logger.warning("Dropped %d degenerate triangle(s) with zero area", dropped)

    tris = tris[keep]
    normals = face_normals[keep] / double_areas[keep][:, np.newaxis]
    centroids = tris.mean(axis=1)

    return TriangleMesh(vertices=tris, normals=normals, centroids=centroids)


def _parse_face_index(token: str, vertex_count: int, line_number: int) -> int:
    """Resolve one OBJ face token (v, v/vt, v//vn or v/vt/vn) to a 0-based index."""
    raw = token.split("/")[0]
    try:
        index = int(raw)
    except ValueError:
        raise MeshLoadError(f"Line {line_number}: malformed face index {token!r}") from None

    # OBJ indices are 1-based; negative values count back from the last vertex
    if index > 0:
        resolved = index - 1
    elif index < 0:
        resolved = vertex_count + index
    else:
        raise MeshLoadError(f"Line {line_number}: face index 0 is not valid in OBJ")

    if not 0 <= resolved < vertex_count:
        raise MeshLoadError(
            f"Line {line_number}: face index {index} out of range "
            f"({vertex_count} vertices defined so far)"
        )
    return resolved


def parse_obj(text: str) -> tuple[npt.NDArray[np.float64], list[list[int]]]:
    """Parse the vertex positions and faces of OBJ source text.

    Records other than "v" and "f" (normals, texture coordinates, groups,
    materials, comments) are ignored.

    Args:
        text: The OBJ file contents.

    Returns:
        Tuple (positions, faces) with 0-based face indices.

    Raises:
        MeshLoadError: On a malformed vertex or face record.
    """
    positions: list[list[float]] = []
    faces: list[list[int]] = []

    for line_number, line in enumerate(text.splitlines(), start=1):
        parts = line.split()
        if not parts or parts[0].startswith("#"):
            continue

        if parts[0] == "v":
            if len(parts) < 4:
                raise MeshLoadError(f"Line {line_number}: vertex needs 3 coordinates")
            try:
                positions.append([float(value) for value in parts[1:4]])
            except ValueError:
                raise MeshLoadError(f"Line {line_number}: malformed vertex {line.strip()!r}") from None
        elif parts[0] == "f":
            if len(parts) < 4:
                raise MeshLoadError(f"Line {line_number}: face needs at least 3 vertices")
            faces.append([_parse_face_index(token, len(positions), line_number) for token in parts[1:]])

    return np.asarray(positions, dtype=np.float64).reshape(-1, 3), faces


def load_obj(path: str | Path) -> TriangleMesh:
    """Load a Wavefront OBJ file into a TriangleMesh.

    Args:
        path: Path to the .obj file.

    Returns:
        The fan-triangulated mesh.

    Raises:
        MeshLoadError: If the file cannot be read or is malformed.
    """
    obj_path = Path(path)
    try:
        text = obj_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MeshLoadError(f"Cannot read mesh file {obj_path}: {exc}") from exc

    positions, faces = parse_obj(text)
    mesh = build_mesh(positions, faces)
    logger.info(
        "Loaded %s: %d vertices, %d faces, %d triangles",
        obj_path.name,
        positions.shape[0],
        len(faces),
        mesh.triangle_count,
    )
    return mesh


def bounding_sphere(vertices: npt.NDArray[np.float64]) -> tuple[npt.NDArray[np.float64], float]:
    """Compute an enclosing sphere for a set of triangle vertices.

    The center is the middle of the axis-aligned bounding box and the radius
    the largest vertex distance, padded slightly so float32 round-off in the
    kernels never rejects a ray that hits an enclosed triangle.

    Args:
        vertices: Array of shape (T, 3, 3) or (N, 3).

    Returns:
        Tuple (center, radius).

    Raises:
        ValueError: If there are no vertices.
    """
    points = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    if points.shape[0] == 0:
        raise ValueError("Cannot bound an empty vertex set")
    center = (points.min(axis=0) + points.max(axis=0)) / 2.0
    radius = float(np.linalg.norm(points - center, axis=1).max())
    radius = radius * (1.0 + BOUNDS_PADDING) + BOUNDS_PADDING
    return center, radius
