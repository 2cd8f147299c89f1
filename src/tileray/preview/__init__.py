"""Preview module for output and visualization.

Components:
    export: PNG export via Pillow
    display: Matplotlib-based static preview

Example:
    >>> from tileray.preview import save_png, show_frame
    >>> frame = renderer.render_frame(camera)
    >>> save_png(frame, "output.png")
    >>> show_frame(frame)
"""

from tileray.preview.display import show_comparison, show_frame
from tileray.preview.export import compute_rmse, frame_to_image, save_png

__all__ = [
    "show_frame",
    "show_comparison",
    "frame_to_image",
    "save_png",
    "compute_rmse",
]
