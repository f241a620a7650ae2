"""Image export utilities for rendered images.

This module provides functions for saving rendered images to files.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from src.raycaster.preview.export import save_png
    >>> from src.raycaster.core.renderer import FrameRenderer
    >>>
    >>> renderer = FrameRenderer(800, 600)
    >>> renderer.render()
    >>> save_png(renderer, "output.png")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.raycaster.preview.display import process_image_for_display

if TYPE_CHECKING:
    from src.raycaster.core.renderer import FrameRenderer

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float32 image to uint8 for display/export.

    Values are clamped to [0, 1], optionally gamma encoded and rounded to
    the nearest 8-bit level.

    Args:
        image: Image array of shape (H, W, 3).
        gamma: Gamma correction value (default 1.0).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    processed = process_image_for_display(image, gamma=gamma)
    return np.round(processed * 255.0).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str,
    *,
    gamma: float = 1.0,
) -> None:
    """Save a NumPy array as a PNG file.

    Args:
        image: Image array of shape (H, W, 3), top row first.
        filepath: Output file path (should end in .png).
        gamma: Gamma correction value (default 1.0).
    """
    image_uint8 = image_to_uint8(image, gamma=gamma)

    pil_image = PILImage.fromarray(image_uint8, mode="RGB")
    pil_image.save(filepath)
    logger.info("Saved %dx%d image to %s", image_uint8.shape[1], image_uint8.shape[0], filepath)


def save_png(
    renderer: FrameRenderer,
    filepath: str,
    *,
    gamma: float = 1.0,
) -> None:
    """Save the rendered image as a PNG file.

    Args:
        renderer: The FrameRenderer instance to save.
        filepath: Output file path (should end in .png).
        gamma: Gamma correction value (default 1.0).

    Example:
        >>> renderer = FrameRenderer(800, 600)
        >>> renderer.render()
        >>> save_png(renderer, "output.png")
    """
    save_png_from_array(renderer.get_image_numpy(), filepath, gamma=gamma)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
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
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
