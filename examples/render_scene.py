#!/usr/bin/env python3
"""Render a scene to a PNG file.

This script renders one frame of a scene file (or the built-in reference
scene of three spheres on a yellow floor) and saves it as a PNG.

Usage:
    python examples/render_scene.py [options]

Options:
    --scene SCENE         Scene JSON file (default: built-in reference scene)
    --width WIDTH         Image width in pixels (default: 640)
    --height HEIGHT       Image height in pixels (default: 480)
    --fov FOV             Vertical field of view in degrees (default: 110)
    --depth DEPTH         Maximum reflection depth (default: 3)
    --tile-size SIZE      Tile edge length in pixels (default: 128)
    --threads N           CPU worker threads (default: all)
    --position X Y Z      Camera position (default: 0 0 0)
    --output OUTPUT       Output file path (default: render.png)
    --cpu                 Force the CPU backend
    --show                Also open a Matplotlib preview
    --quiet               Suppress progress output

Example:
    python examples/render_scene.py --scene scenes/spheres_and_cube.json --width 320 --height 240
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene with the tile-parallel ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--scene", type=str, default=None, help="Scene JSON file (default: built-in scene)")
    parser.add_argument("--width", type=int, default=640, help="Image width in pixels (default: 640)")
    parser.add_argument("--height", type=int, default=480, help="Image height in pixels (default: 480)")
    parser.add_argument("--fov", type=float, default=110.0, help="Vertical field of view in degrees (default: 110)")
    parser.add_argument("--depth", type=int, default=3, help="Maximum reflection depth (default: 3)")
    parser.add_argument("--tile-size", type=int, default=128, help="Tile edge length in pixels (default: 128)")
    parser.add_argument("--threads", type=int, default=None, help="CPU worker threads (default: all)")
    parser.add_argument(
        "--position",
        type=float,
        nargs=3,
        default=(0.0, 0.0, 0.0),
        metavar=("X", "Y", "Z"),
        help="Camera position (default: 0 0 0)",
    )
    parser.add_argument("--output", type=str, default="render.png", help="Output file path (default: render.png)")
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--show", action="store_true", help="Also open a Matplotlib preview")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def initialize_taichi(force_cpu: bool, num_threads: int | None) -> str:
    """Initialize Taichi, preferring a GPU backend unless told otherwise.

    Returns:
        Name of the backend being used.
    """
    cpu_kwargs = {} if num_threads is None else {"cpu_max_num_threads": num_threads}
    if not force_cpu and num_threads is None:
        try:
            ti.init(arch=ti.gpu)
            return "GPU"
        except Exception:
            pass
    ti.init(arch=ti.cpu, **cpu_kwargs)
    return "CPU"


def render_scene(args: argparse.Namespace) -> Path:
    """Render the requested scene and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before fields are created
    from tileray.camera.camera import Camera
    from tileray.core.renderer import RenderConfig, TileRenderer
    from tileray.preview.display import show_frame
    from tileray.preview.export import save_png
    from tileray.scene.config import load_scene_file
    from tileray.scene.default_scene import create_default_scene_config
    from tileray.scene.scene import Scene

    config = RenderConfig(
        width=args.width,
        height=args.height,
        fov=args.fov,
        tile_size=args.tile_size,
        max_depth=args.depth,
        num_threads=args.threads,
    )

    if args.scene is None:
        scene_config = create_default_scene_config()
        scene_name = "reference scene"
    else:
        scene_config = load_scene_file(args.scene)
        scene_name = args.scene

    if not args.quiet:
        print(f"Building {scene_name}...")
    scene = Scene.from_config(scene_config)

    renderer = TileRenderer(scene, config)
    camera = Camera(position=args.position)

    if not args.quiet:
        print(f"Rendering {config.width}x{config.height} in {renderer.num_tiles} tiles...")

    start_time = time.time()
    frame = renderer.render_frame(camera)
    render_time = time.time() - start_time

    output_file = Path(args.output)
    save_png(frame, output_file)

    if not args.quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Render time: {render_time:.2f}s (includes kernel compilation)")

    if args.show:
        show_frame(frame, title=scene_name)

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    backend = initialize_taichi(args.cpu, args.threads)
    if not args.quiet:
        print(f"Using {backend} backend")

    try:
        render_scene(args)
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
