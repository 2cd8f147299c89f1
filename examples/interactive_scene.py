#!/usr/bin/env python3
"""Fly a camera through a scene in a live Taichi GGUI window.

Every frame the held keys are read, the camera is updated and the whole
frame is re-rendered with the tile renderer.

Usage:
    python examples/interactive_scene.py [--scene SCENE] [--width W] [--height H]

Controls:
    A / D       Turn left / right (yaw)
    R / F       Look up / down (pitch)
    Q / E       Roll left / right
    W / S       Move forward / backward
    Space       Return to the origin
    Escape      Quit
"""

import argparse
import os
import sys

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Interactive ray tracer preview.")
    parser.add_argument("--scene", type=str, default=None, help="Scene JSON file (default: built-in scene)")
    parser.add_argument("--width", type=int, default=640, help="Window width in pixels (default: 640)")
    parser.add_argument("--height", type=int, default=480, help="Window height in pixels (default: 480)")
    parser.add_argument("--depth", type=int, default=3, help="Maximum reflection depth (default: 3)")
    parser.add_argument("--threads", type=int, default=None, help="CPU worker threads (default: all)")
    return parser.parse_args()


def is_display_available() -> bool:
    """Check if a display is available for GUI rendering."""
    if os.name == "nt" or sys.platform == "darwin":
        return True
    return bool(os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"))


@ti.kernel
def _to_display(src: ti.template(), dst: ti.template()):
    for i, j in src:
        dst[i, j] = ti.cast(src[i, j], ti.f32) / 255.0


def read_keys(window: ti.ui.Window):
    """Map held keys to a CameraInput."""
    from tileray.camera.camera import CameraInput

    return CameraInput(
        rotate_left=window.is_pressed("a"),
        rotate_right=window.is_pressed("d"),
        pitch_up=window.is_pressed("r"),
        pitch_down=window.is_pressed("f"),
        roll_left=window.is_pressed("q"),
        roll_right=window.is_pressed("e"),
        move_forward=window.is_pressed("w"),
        move_backward=window.is_pressed("s"),
        reset=window.is_pressed(ti.ui.SPACE),
    )


def build_renderer(args: argparse.Namespace):
    """Load the scene and create the tile renderer.

    Returns:
        The TileRenderer, or None after printing the error when the scene or
        settings are invalid.
    """
    from tileray.core.renderer import RenderConfig, TileRenderer
    from tileray.scene.config import load_scene_file
    from tileray.scene.default_scene import create_default_scene_config
    from tileray.scene.scene import Scene

    try:
        scene_config = create_default_scene_config() if args.scene is None else load_scene_file(args.scene)
        config = RenderConfig(width=args.width, height=args.height, max_depth=args.depth, num_threads=args.threads)
        scene = Scene.from_config(scene_config)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    return TileRenderer(scene, config)


def main() -> int:
    """Main entry point for the interactive viewer.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    args = parse_args()

    if args.threads is None:
        ti.init(arch=ti.cpu)
    else:
        ti.init(arch=ti.cpu, cpu_max_num_threads=args.threads)

    # Import after Taichi initialization
    from tileray.camera.camera import Camera

    if not is_display_available():
        print("Error: No display available. Cannot run interactive preview.", file=sys.stderr)
        return 1

    renderer = build_renderer(args)
    if renderer is None:
        return 1
    config = renderer.config

    camera = Camera(rotation_speed=config.rotation_speed, move_speed=config.move_speed)

    display_image = ti.Vector.field(3, dtype=ti.f32, shape=(config.width, config.height))
    window = ti.ui.Window(name="tileray", res=(config.width, config.height), vsync=True)
    canvas = window.get_canvas()

    print("Controls: A/D yaw, R/F pitch, Q/E roll, W/S move, Space reset, Esc quit")

    while window.running:
        if window.is_pressed(ti.ui.ESCAPE):
            break

        camera.update(read_keys(window))
        frame = renderer.render_frame(camera)

        _to_display(frame.pixels, display_image)
        canvas.set_image(display_image)
        window.show()

    print("Preview window closed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
