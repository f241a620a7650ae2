"""Preview module for output and visualization.

This module handles rendering output and interactive preview:

Components:
    display: Output clamping, gamma and a Matplotlib-based preview
    export: PNG export utilities
    interactive: Taichi GGUI-based interactive preview window

Every conversion for output clamps to [0, 1]; the compositor's color
buffer itself is linear and unclamped.

Example:
    >>> from src.raycaster.preview import show_preview, save_png
    >>> from src.raycaster.core.renderer import FrameRenderer
    >>>
    >>> renderer = FrameRenderer(800, 600)
    >>> renderer.render()
    >>> show_preview(renderer)
    >>> save_png(renderer, "output.png")

For interactive GGUI preview:
    >>> from src.raycaster.preview import InteractivePreview
    >>> preview = InteractivePreview(800, 600)
    >>> preview.run_reactive()
"""

from src.raycaster.preview.display import (
    apply_gamma,
    clamp_image,
    process_image_for_display,
    show_preview,
)
from src.raycaster.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_png,
    save_png_from_array,
)
from src.raycaster.preview.interactive import InteractivePreview, is_display_available

__all__ = [
    # Interactive preview
    "InteractivePreview",
    "is_display_available",
    # Display functions
    "show_preview",
    "clamp_image",
    "apply_gamma",
    "process_image_for_display",
    # Export functions
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
    "compute_rmse",
]
