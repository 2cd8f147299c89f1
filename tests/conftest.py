"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu)
    yield


@pytest.fixture(scope="session")
def reference_scene():
    """The reference four-sphere scene, built once per session.

    Scenes are read-only after construction, so sharing one is safe as long
    as tests that toggle bounds restore them.
    """
    from tileray.scene.default_scene import create_default_scene_config
    from tileray.scene.scene import Scene

    return Scene.from_config(create_default_scene_config())


@pytest.fixture
def cube_obj(tmp_path):
    """Write a unit cube OBJ (quad faces) centered on the origin."""
    path = tmp_path / "cube.obj"
    path.write_text(
        "\n".join(
            [
                "# unit cube",
                "v -0.5 -0.5 -0.5",
                "v 0.5 -0.5 -0.5",
                "v 0.5 0.5 -0.5",
                "v -0.5 0.5 -0.5",
                "v -0.5 -0.5 0.5",
                "v 0.5 -0.5 0.5",
                "v 0.5 0.5 0.5",
                "v -0.5 0.5 0.5",
                "f 1 4 3 2",
                "f 5 6 7 8",
                "f 1 2 6 5",
                "f 4 8 7 3",
                "f 1 5 8 4",
                "f 2 3 7 6",
            ]
        )
        + "\n"
    )
    return path
