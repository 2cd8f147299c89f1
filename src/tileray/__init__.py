"""Tile-parallel recursive ray tracer built on Taichi.

This package renders scenes of spheres and triangle meshes with:
- Hard shadows from point and directional lights
- Diffuse and Phong specular shading
- Mirror reflection up to a bounded depth
- Frame rendering as independent square tiles processed in parallel

Subpackages:
    core: Vector algebra, lighting, the ray tracer and the tile renderer
    geometry: Sphere and triangle primitives, OBJ mesh loading
    scene: Scene configuration, lights and Taichi-backed scene storage
    camera: Free-flying camera with per-frame input integration
    preview: PNG export and Matplotlib preview
"""

__version__ = "0.1.0"
