"""Matplotlib-based static preview of rendered frames.

Matplotlib is imported when a preview is shown, so the rest of the package
never pays for it (and headless renders never need a display backend).

Example:
    >>> from tileray.preview.display import show_frame
    >>> frame = renderer.render_frame(camera)
    >>> show_frame(frame, title="Reference scene")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from tileray.preview.export import compute_rmse, frame_to_image

if TYPE_CHECKING:
    from tileray.core.renderer import FrameBuffer


def show_frame(
    frame: FrameBuffer | npt.NDArray[np.uint8],
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display a frame in a Matplotlib figure.

    Args:
        frame: A rendered FrameBuffer or a (H, W, 3) image array.
        title: Custom title (default shows the resolution).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    image = frame_to_image(frame)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(image)
    ax.axis("off")

    if title is None:
        title = f"Render Preview - {image.shape[1]}x{image.shape[0]}"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)


def show_comparison(
    image_a: npt.NDArray[np.uint8],
    image_b: npt.NDArray[np.uint8],
    *,
    labels: tuple[str, str] = ("A", "B"),
    diff_scale: float = 10.0,
    figsize: tuple[float, float] = (16, 5),
    block: bool = True,
) -> float:
    """Display two frames side by side with their amplified difference.

    Returns:
        RMSE between the two images on the 0-255 scale.
    """
    import matplotlib.pyplot as plt

    rmse = compute_rmse(image_a, image_b)

    diff = np.abs(image_a.astype(np.float64) - image_b.astype(np.float64))
    diff_amplified = np.clip(diff * diff_scale, 0.0, 255.0).astype(np.uint8)

    fig, axes = plt.subplots(1, 3, figsize=figsize)

    axes[0].imshow(image_a)
    axes[0].set_title(labels[0])
    axes[0].axis("off")

    axes[1].imshow(image_b)
    axes[1].set_title(labels[1])
    axes[1].axis("off")

    axes[2].imshow(diff_amplified)
    axes[2].set_title(f"Difference ({diff_scale}x) - RMSE: {rmse:.3f}")
    axes[2].axis("off")

    plt.tight_layout()
    plt.show(block=block)

    return rmse
