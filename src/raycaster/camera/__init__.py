"""Camera module for primary ray generation.

Components:
    pinhole: Pinhole (perspective) camera model

Camera responsibilities:
    - Validate the view configuration once per frame (not per pixel)
    - Build the forward/right/up basis from position, target and up vector
    - Map pixel centers to height-normalized coordinates
    - Produce unit-length world-space rays through those coordinates

Ray generation runs inside the render kernel, one ray per pixel.
"""

from .pinhole import (
    PinholeCamera,
    compute_camera_basis,
    get_camera_info,
    get_ray,
    get_ray_for_pixel,
    pixel_to_uv,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "compute_camera_basis",
    "setup_camera",
    "pixel_to_uv",
    "get_ray",
    "get_ray_for_pixel",
    "get_camera_info",
]
