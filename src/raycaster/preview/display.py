"""Matplotlib-based preview display for rendered images.

This module provides functions for displaying rendered images using Matplotlib.
Scene colors are display values already, so the default pipeline only clamps;
gamma encoding is available for callers that want it.

Features:
    - Static preview window
    - Output clamping to [0, 1]
    - Optional gamma correction
    - Frame count display

Example:
    >>> from src.raycaster.preview.display import show_preview
    >>> from src.raycaster.core.renderer import FrameRenderer
    >>>
    >>> renderer = FrameRenderer(800, 600)
    >>> renderer.render()
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from src.raycaster.core.renderer import FrameRenderer


def clamp_image(
    image: npt.NDArray[np.float32],
) -> npt.NDArray[np.float32]:
    """Clamp every channel to [0, 1].

    The compositor accumulates linear color without clamping; this is the
    single place where values leave that range for output.
    """
    return np.clip(image, 0.0, 1.0).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Apply gamma correction for display.

    Args:
        image: Image array of shape (H, W, 3).
        gamma: Gamma value (2.2 for sRGB-like output). Must be positive.

    Returns:
        Gamma corrected image.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")

    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)

    result = np.power(image, 1.0 / gamma)

    return result.astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    gamma: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Process an image for display.

    Applies the display pipeline:
    1. Clamping to [0, 1]
    2. Gamma correction (skipped for gamma 1.0)

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value (default 1.0, no correction).

    Returns:
        Processed image ready for display, in [0, 1] range.
    """
    result = clamp_image(image)
    result = apply_gamma(result, gamma)
    return result.astype(np.float32)


def show_preview(
    renderer: FrameRenderer,
    *,
    gamma: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    Args:
        renderer: The FrameRenderer instance to display.
        gamma: Gamma correction value (default 1.0).
        title: Custom title (default shows size and frame count).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.

    Example:
        >>> renderer = FrameRenderer(800, 600)
        >>> renderer.render()
        >>> show_preview(renderer, title="Demo scene")
    """
    import matplotlib.pyplot as plt

    image = renderer.get_image_numpy()
    display_image = process_image_for_display(image, gamma=gamma)

    fig, ax = plt.subplots(1, 1, figsize=figsize)

    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = (
            f"Render Preview - {renderer.width}x{renderer.height}, "
            f"frame {renderer.frame_count}"
        )
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
