"""Reference scene: three colored spheres on a large yellow floor sphere.

This is the classic "Computer Graphics from Scratch" scene, used as the
renderer's default when no scene file is given and as a fixture in tests.

The scene consists of:
- Red sphere in front of the camera, slightly below eye level
- Blue sphere to the right and green sphere to the left, further back
- A radius-5000 yellow sphere acting as the floor
- One ambient, one point and one directional light (total intensity 1.0)

Example:
    >>> from tileray.scene.default_scene import create_default_scene_config
    >>> config = create_default_scene_config()
    >>> [s.material.color for s in config.spheres][:2]
    [(255.0, 0.0, 0.0), (0.0, 0.0, 255.0)]
"""

from tileray.scene.config import MaterialConfig, SceneConfig, SphereConfig
from tileray.scene.lights import Light

# =============================================================================
# Scene Parameters
# =============================================================================

BACKGROUND_COLOR = (0.0, 0.0, 0.0)

RED = (255.0, 0.0, 0.0)
BLUE = (0.0, 0.0, 255.0)
GREEN = (0.0, 255.0, 0.0)
YELLOW = (255.0, 255.0, 0.0)

FLOOR_RADIUS = 5000.0


def create_default_scene_config() -> SceneConfig:
    """Create the reference scene configuration.

    Returns:
        SceneConfig with four spheres, three lights and a black background.
    """
    spheres = [
        SphereConfig(
            center=(0.0, -1.0, 3.0),
            radius=1.0,
            material=MaterialConfig(color=RED, specular=500.0, reflectiveness=0.2),
        ),
        SphereConfig(
            center=(2.0, 0.0, 4.0),
            radius=1.0,
            material=MaterialConfig(color=BLUE, specular=500.0, reflectiveness=0.3),
        ),
        SphereConfig(
            center=(-2.0, 0.0, 4.0),
            radius=1.0,
            material=MaterialConfig(color=GREEN, specular=10.0, reflectiveness=0.4),
        ),
        # Floor: the top of this sphere sits at y = -1
        SphereConfig(
            center=(0.0, -FLOOR_RADIUS - 1.0, 0.0),
            radius=FLOOR_RADIUS,
            material=MaterialConfig(color=YELLOW, specular=1000.0, reflectiveness=0.5),
        ),
    ]

    lights = [
        Light.ambient(0.2),
        Light.point(0.6, (2.0, 1.0, 0.0)),
        Light.directional(0.2, (1.0, 4.0, 4.0)),
    ]

    return SceneConfig(spheres=spheres, meshes=[], lights=lights, background=BACKGROUND_COLOR)
