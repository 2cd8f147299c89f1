"""Tile-parallel frame rendering.

A frame is split into square tiles (clipped at the right and top edges). One
kernel launch renders the whole frame: its outermost loop runs over tiles and
is parallelized by Taichi, one task per tile; inside a task the tile's pixels
are traced serially. Tasks share the read-only scene and write disjoint
rectangles of the frame buffer, so no synchronization is needed beyond the
end of the launch, where ti.sync() joins all tasks.

Every task keeps its own last-occluder shadow cache, starting empty, so tasks
never share mutable state.

Primary rays: for pixel (i, j) with j = 0 at the bottom,

    u = ((i + 0.5) / W * 2 - 1) * half_width
    v = ((j + 0.5) / H * 2 - 1) * half_height
    direction = forward + right * u + up * v

with half_height = tan(fov / 2) and half_width = half_height * W / H.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tileray.camera.camera import Camera
    >>> from tileray.core.renderer import RenderConfig, TileRenderer
    >>> from tileray.scene.default_scene import create_default_scene_config
    >>> from tileray.scene.scene import Scene
    >>> scene = Scene.from_config(create_default_scene_config())
    >>> renderer = TileRenderer(scene, RenderConfig(width=320, height=240))
    >>> image = renderer.render_frame(Camera()).to_numpy()
    >>> image.shape
    (240, 320, 3)
"""

import logging
import math
import time
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from tileray.camera.camera import DEFAULT_MOVE_SPEED, DEFAULT_ROTATION_SPEED, Camera
from tileray.core.tracer import DEFAULT_MAX_DEPTH, trace_ray

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Render Configuration
# =============================================================================


@dataclass
class RenderConfig:
    """Settings for rendering frames.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        fov: Vertical field of view in degrees.
        tile_size: Edge length of the square tiles, in pixels.
        max_depth: Maximum number of mirror bounces per primary ray.
        num_threads: CPU worker bound passed to ti.init(); None leaves
            Taichi's default (all hardware threads).
        rotation_speed: Camera radians per frame per held rotation key.
        move_speed: Camera units per frame per held movement key.
    """

    width: int = 640
    height: int = 480
    fov: float = 110.0
    tile_size: int = 128
    max_depth: int = DEFAULT_MAX_DEPTH
    num_threads: int | None = None
    rotation_speed: float = DEFAULT_ROTATION_SPEED
    move_speed: float = DEFAULT_MOVE_SPEED

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.tile_size <= 0:
            raise ValueError(f"Tile size must be positive, got {self.tile_size}")
        if not 0.0 < self.fov < 180.0:
            raise ValueError(f"Field of view must be in (0, 180) degrees, got {self.fov}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.num_threads is not None and self.num_threads < 1:
            raise ValueError(f"num_threads must be at least 1, got {self.num_threads}")
        if self.rotation_speed < 0.0 or self.move_speed < 0.0:
            raise ValueError("Camera speeds must be non-negative")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def to_dict(self) -> dict[str, Any]:
        """Export the configuration to a dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderConfig":
        """Create a configuration from a dictionary; missing keys keep defaults.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown render settings: {', '.join(sorted(unknown))}")
        return cls(**data)


# =============================================================================
# Frame Buffer
# =============================================================================


@ti.data_oriented
class FrameBuffer:
    """An RGB frame of 8-bit channels.

    The pixel field is indexed [i, j] with i the column and j the row counted
    from the bottom, matching Taichi's image convention.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.pixels = ti.Vector.field(3, dtype=ti.u8, shape=(width, height))
        self.frame_count = 0

    @property
    def rendered(self) -> bool:
        """Whether at least one frame has been written."""
        return self.frame_count > 0

    def to_numpy(self) -> npt.NDArray[np.uint8]:
        """Get the frame as an image array.

        Returns:
            Array of shape (height, width, 3), dtype uint8, top row first.

        Raises:
            RuntimeError: If no frame has been rendered yet.
        """
        if not self.rendered:
            raise RuntimeError("No frame has been rendered yet")

        # (width, height, 3) -> (height, width, 3), then flip to top-left origin
        image = np.transpose(self.pixels.to_numpy(), (1, 0, 2))
        return np.ascontiguousarray(np.flipud(image)).astype(np.uint8)


# =============================================================================
# Tile Renderer
# =============================================================================


@ti.data_oriented
class TileRenderer:
    """Renders frames of a scene as parallel tiles.

    Attributes:
        scene: The Scene being rendered.
        config: The RenderConfig.
        frame: The FrameBuffer every frame is written into.
    """

    def __init__(self, scene, config: RenderConfig | None = None) -> None:
        self.scene = scene
        self.config = config if config is not None else RenderConfig()
        self.frame = FrameBuffer(self.config.width, self.config.height)

        self.width = self.config.width
        self.height = self.config.height
        self.tile_size = self.config.tile_size
        self.tiles_x = math.ceil(self.width / self.tile_size)
        self.tiles_y = math.ceil(self.height / self.tile_size)

        self.half_height = math.tan(math.radians(self.config.fov) / 2.0)
        self.half_width = self.half_height * self.config.aspect_ratio

        # Camera state, uploaded before each frame
        self._cam_position = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._cam_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._cam_up = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._cam_right = ti.Vector.field(3, dtype=ti.f32, shape=())

    @property
    def num_tiles(self) -> int:
        """Number of tiles per frame."""
        return self.tiles_x * self.tiles_y

    def tile_rects(self) -> list[tuple[int, int, int, int]]:
        """List the tile rectangles of a frame.

        Returns:
            Rectangles (x0, y0, x1, y1) in frame buffer coordinates (row 0
            at the bottom), half-open on the upper bounds, in task order.
            Together they cover every pixel exactly once.
        """
        rects = []
        for tile in range(self.num_tiles):
            x0 = (tile % self.tiles_x) * self.tile_size
            y0 = (tile // self.tiles_x) * self.tile_size
            rects.append((x0, y0, min(x0 + self.tile_size, self.width), min(y0 + self.tile_size, self.height)))
        return rects

    def _upload_camera(self, camera: Camera) -> None:
        self._cam_position[None] = camera.position.tolist()
        self._cam_forward[None] = camera.forward.tolist()
        self._cam_up[None] = camera.up.tolist()
        self._cam_right[None] = camera.right.tolist()

    @ti.func
    def primary_direction(self, i: ti.i32, j: ti.i32) -> vec3:
        """Direction of the primary ray through the center of pixel (i, j)."""
        u = ((i + 0.5) / self.width * 2.0 - 1.0) * self.half_width
        v = ((j + 0.5) / self.height * 2.0 - 1.0) * self.half_height
        return self._cam_forward[None] + self._cam_right[None] * u + self._cam_up[None] * v

    @ti.kernel
    def _render_tiles(self, max_depth: ti.i32):
        """Render every tile; the outer loop is the parallel loop over tasks."""
        for tile in range(self.tiles_x * self.tiles_y):
            x0 = (tile % self.tiles_x) * self.tile_size
            y0 = (tile // self.tiles_x) * self.tile_size
            x1 = ti.min(x0 + self.tile_size, self.width)
            y1 = ti.min(y0 + self.tile_size, self.height)

            origin = self._cam_position[None]
            background = self.scene.background[None]

            # Shadow cache private to this task
            last_occluder = -1

            for j in range(y0, y1):
                for i in range(x0, x1):
                    color, last_occluder = trace_ray(
                        self.scene,
                        origin,
                        self.primary_direction(i, j),
                        max_depth,
                        background,
                        last_occluder,
                    )
                    self.frame.pixels[i, j] = ti.cast(tm.clamp(color, 0.0, 255.0), ti.u8)

    def render_frame(self, camera: Camera) -> FrameBuffer:
        """Render one frame from a camera.

        Returns after every tile has finished.

        Args:
            camera: The camera to render from.

        Returns:
            The FrameBuffer holding the new frame.
        """
        self._upload_camera(camera)

        start = time.perf_counter()
        self._render_tiles(self.config.max_depth)
        ti.sync()
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        self.frame.frame_count += 1
        logger.debug(
            "Frame %d: %dx%d in %d tiles, %.1f ms",
            self.frame.frame_count,
            self.width,
            self.height,
            self.num_tiles,
            elapsed_ms,
        )
        return self.frame
