"""Image export for rendered frames.

Frames are already 8-bit sRGB-range values (colors are clamped to [0, 255]
when written), so export is a layout conversion followed by a Pillow save.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from tileray.preview.export import save_png
    >>> frame = renderer.render_frame(camera)
    >>> save_png(frame, "output.png")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from tileray.core.renderer import FrameBuffer


def frame_to_image(frame: FrameBuffer | npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    """Get a (H, W, 3) uint8 image, top row first, from a frame or array.

    Args:
        frame: A rendered FrameBuffer, or an image array already in
            (H, W, 3) layout.

    Returns:
        The image array.

    Raises:
        ValueError: If an array does not have shape (H, W, 3).
        RuntimeError: If the FrameBuffer has not been rendered.
    """
    if isinstance(frame, np.ndarray):
        image = frame
    else:
        image = frame.to_numpy()

    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")

    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)
    return image


def save_png(frame: FrameBuffer | npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save a frame as a PNG file.

    Args:
        frame: A rendered FrameBuffer or a (H, W, 3) image array.
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(frame_to_image(frame))
    pil_image.save(str(filepath))


def compute_rmse(
    image_a: npt.NDArray[np.generic],
    image_b: npt.NDArray[np.generic],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
