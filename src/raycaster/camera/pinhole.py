"""Pinhole camera model for primary ray generation.

This module implements the pinhole camera that casts one ray through the
center of every pixel. The camera supports:
- Look-at positioning (position, target, up)
- Vertical field of view, anchored to the image height
- Arbitrary aspect ratios

The camera builds an orthonormal basis from the view parameters:
- forward: normalize(target - position)
- right: normalize(cross(forward, up))
- true_up: normalize(cross(right, forward))

Pixel coordinates are mapped to a centered coordinate uv where the vertical
extent spans [-1, 1] and the horizontal extent spans [-aspect, aspect].
The ray direction is normalize(uv.x * right + uv.y * true_up +
focal_length * forward) with focal_length = 1 / tan(fov / 2).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycaster.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> camera = PinholeCamera(
    ...     position=(0.0, 0.5, 4.0),
    ...     target=(0.0, 0.0, 0.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     fov=60.0,
    ... )
    >>> setup_camera(camera, aspect_ratio=800 / 600)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(ti.math.vec2(0.0, 0.0))  # Ray through image center
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.raycaster.core.ray import Ray, make_ray, vec2, vec3

logger = logging.getLogger(__name__)

# Cross products shorter than this mean the up vector is parallel to the view
_DEGENERATE_LENGTH = 1e-6

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        position: Camera position in world space (x, y, z).
        target: Point the camera is looking at in world space (x, y, z).
        up: Up direction vector; must not be parallel to the view direction.
        fov: Vertical field of view in degrees, 0 < fov < 180.
    """

    position: tuple[float, float, float]
    target: tuple[float, float, float]
    up: tuple[float, float, float]
    fov: float

    def to_dict(self) -> dict[str, list[float] | float]:
        return {
            "position": list(self.position),
            "target": list(self.target),
            "up": list(self.up),
            "fov": self.fov,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PinholeCamera":
        position = data.get("position", [0.0, 0.0, 5.0])
        target = data.get("target", [0.0, 0.0, 0.0])
        up = data.get("up", [0.0, 1.0, 0.0])
        return cls(
            position=(float(position[0]), float(position[1]), float(position[2])),
            target=(float(target[0]), float(target[1]), float(target[2])),
            up=(float(up[0]), float(up[1]), float(up[2])),
            fov=float(data.get("fov", 60.0)),
        )


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_position = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())

_focal_length = ti.field(dtype=ti.f32, shape=())
_aspect_ratio = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per frame configuration)
# =============================================================================


def compute_camera_basis(
    camera: PinholeCamera,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, float]:
    """Validate the camera and derive its basis.

    Args:
        camera: Camera configuration.

    Returns:
        Tuple (forward, right, true_up, focal_length). Vectors are float64
        unit-length NumPy arrays.

    Raises:
        ValueError: If the field of view is outside (0, 180), the position
            equals the target, or the up vector is parallel to the view.
    """
    if not 0.0 < camera.fov < 180.0:
        raise ValueError(f"Field of view must be in (0, 180) degrees, got {camera.fov}")

    position = np.array(camera.position, dtype=np.float64)
    target = np.array(camera.target, dtype=np.float64)
    up = np.array(camera.up, dtype=np.float64)

    view = target - position
    view_length = np.linalg.norm(view)
    if view_length < _DEGENERATE_LENGTH:
        raise ValueError("Camera position and target must differ")
    forward = view / view_length

    right = np.cross(forward, up)
    right_length = np.linalg.norm(right)
    if right_length < _DEGENERATE_LENGTH:
        raise ValueError(f"Up vector {camera.up} is parallel to the view direction")
    right = right / right_length

    true_up = np.cross(right, forward)
    true_up = true_up / np.linalg.norm(true_up)

    focal_length = 1.0 / math.tan(math.radians(camera.fov) / 2.0)

    return forward, right, true_up, focal_length


def setup_camera(camera: PinholeCamera, aspect_ratio: float = 1.0) -> None:
    """Initialize camera state from configuration.

    Must be called before rendering, and again whenever the camera or the
    output aspect ratio changes.

    Args:
        camera: Camera configuration with position, orientation, and FOV.
        aspect_ratio: Output width divided by height. Only recorded for
            get_camera_info(); ray generation derives it from the pixel grid.

    Raises:
        ValueError: If the camera configuration is degenerate or the aspect
            ratio is not positive.

    Note:
        This function writes to Taichi fields and should be called from
        Python (not from within a Taichi kernel).
    """
    if aspect_ratio <= 0.0:
        raise ValueError(f"Aspect ratio must be positive, got {aspect_ratio}")

    forward, right, true_up, focal_length = compute_camera_basis(camera)

    _camera_position[None] = list(camera.position)
    _camera_forward[None] = forward.tolist()
    _camera_right[None] = right.tolist()
    _camera_up[None] = true_up.tolist()
    _focal_length[None] = focal_length
    _aspect_ratio[None] = aspect_ratio

    logger.debug(
        "Camera at %s: forward=%s right=%s up=%s focal_length=%.4f",
        camera.position,
        forward.round(4).tolist(),
        right.round(4).tolist(),
        true_up.round(4).tolist(),
        focal_length,
    )


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def pixel_to_uv(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> vec2:
    """Map a pixel center to centered, height-normalized coordinates.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        uv with uv.y in [-1, 1] and uv.x in [-width/height, width/height].
    """
    px = ti.cast(pixel_i, ti.f32) + 0.5
    py = ti.cast(pixel_j, ti.f32) + 0.5
    w = ti.cast(width, ti.f32)
    h = ti.cast(height, ti.f32)
    return vec2((2.0 * px - w) / h, (2.0 * py - h) / h)


@ti.func
def get_ray(uv: vec2) -> Ray:
    """Generate the camera ray through centered coordinates uv.

    Args:
        uv: Coordinates from pixel_to_uv (0, 0 is the image center).

    Returns:
        A Ray from the camera position with a unit-length direction.
    """
    direction = tm.normalize(
        uv.x * _camera_right[None] + uv.y * _camera_up[None] + _focal_length[None] * _camera_forward[None]
    )
    return make_ray(_camera_position[None], direction)


@ti.func
def get_ray_for_pixel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the camera ray through the center of a pixel."""
    return get_ray(pixel_to_uv(pixel_i, pixel_j, width, height))


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with position, forward, right, up, focal_length and
        aspect_ratio.
    """

    def _as_tuple(field: ti.MatrixField) -> tuple[float, float, float]:
        v = field[None]
        return (float(v[0]), float(v[1]), float(v[2]))

    return {
        "position": _as_tuple(_camera_position),
        "forward": _as_tuple(_camera_forward),
        "right": _as_tuple(_camera_right),
        "up": _as_tuple(_camera_up),
        "focal_length": float(_focal_length[None]),
        "aspect_ratio": float(_aspect_ratio[None]),
    }
