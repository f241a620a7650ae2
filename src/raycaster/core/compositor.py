"""See-through compositor and render kernels.

This module implements the per-pixel evaluation: a camera ray is followed
straight through the scene for a bounded number of surface interactions,
accumulating transmittance-weighted color.

For each iteration (up to the scene's bounce budget):
    1. Stop if transmittance has dropped below MIN_TRANSMITTANCE.
    2. Find the closest sphere or box.
    3. On a hit, add transmittance * color * alpha, multiply transmittance
       by (1 - alpha) and move the ray origin just past the hit point. The
       direction never changes.
    4. Otherwise add transmittance * (plane checker color or background)
       and stop; the backdrop is opaque.

Key features:
    - Pure function of the scene and camera: rendering the same frame twice
      gives identical pixels
    - One ray through each pixel center, no jitter
    - Linear, unclamped color buffer; host-side readers clamp to [0, 1]

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycaster.core.compositor import render_frame, setup_render_target
    >>> from src.raycaster.scene.demo import create_demo_scene
    >>> from src.raycaster.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_demo_scene()
    >>> setup_camera(camera, aspect_ratio=800 / 600)
    >>> setup_render_target(800, 600)
    >>> render_frame()
"""

import logging

import taichi as ti

from src.raycaster.camera.pinhole import get_ray_for_pixel
from src.raycaster.core.ray import EPSILON, T_MAX, make_ray, ray_at, vec3
from src.raycaster.scene.intersection import (
    MAX_BOUNCES_LIMIT,
    intersect_backdrop,
    intersect_objects,
    scene_background,
    scene_max_bounces,
)

logger = logging.getLogger(__name__)

# Remaining transmittance below which a ray stops
MIN_TRANSMITTANCE = 0.01


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Per-iteration trace of a single ray, filled by trace_ray_steps()
_step_transmittance = ti.field(dtype=ti.f32, shape=MAX_BOUNCES_LIMIT)
_step_color = ti.Vector.field(3, dtype=ti.f32, shape=MAX_BOUNCES_LIMIT)

# Frames rendered since the render target was set up (host side)
_frame_count = 0


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffer.

    Sets the active image dimensions and clears the buffer. The buffer is
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug("Render target set up at %dx%d", width, height)


def clear_render_target() -> None:
    """Clear the color buffer and the frame counter."""
    global _frame_count
    _color_buffer.fill(0.0)
    _frame_count = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_frame_count() -> int:
    """Get the number of frames rendered since the last clear."""
    return _frame_count


# =============================================================================
# Compositing Core
# =============================================================================


@ti.func
def _composite(origin: vec3, direction: vec3, max_bounces: ti.i32, record: ti.template()):
    """Accumulate color along one unrefracted ray.

    Args:
        origin: Ray origin.
        direction: Ray direction.
        max_bounces: Bounce budget.
        record: Compile-time flag; when true, the transmittance and
            accumulated color after every executed iteration are written to
            the step-trace fields.

    Returns:
        Tuple (color, steps): the accumulated color and the number of
        iterations that ran.
    """
    accumulated = vec3(0.0, 0.0, 0.0)
    transmittance = 1.0
    current_origin = origin
    steps = 0

    # Taichi functions cannot break out of loops, so an active flag is used
    active = 1

    for bounce in range(max_bounces):
        if active == 1 and transmittance < MIN_TRANSMITTANCE:
            active = 0

        if active == 1:
            rec = intersect_objects(current_origin, direction, EPSILON, T_MAX)

            if rec.hit == 1:
                accumulated += transmittance * rec.color * rec.alpha
                transmittance *= 1.0 - rec.alpha
                current_origin = ray_at(make_ray(current_origin, direction), rec.t + 2.0 * EPSILON)
            else:
                backdrop = intersect_backdrop(current_origin, direction, EPSILON, T_MAX)
                if backdrop.hit == 1:
                    accumulated += transmittance * backdrop.color
                else:
                    accumulated += transmittance * scene_background[None]
                active = 0

            if ti.static(record):
                _step_transmittance[bounce] = transmittance
                _step_color[bounce] = accumulated
            steps += 1

    return accumulated, steps


@ti.func
def composite(origin: vec3, direction: vec3, max_bounces: ti.i32) -> vec3:
    """Composite the color seen along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction.
        max_bounces: Maximum number of surface interactions.

    Returns:
        The accumulated linear RGB color.
    """
    color, _ = _composite(origin, direction, max_bounces, False)
    return color


@ti.func
def trace_pixel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    """Evaluate the color of one pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The pixel's linear RGB color.
    """
    ray = get_ray_for_pixel(pixel_i, pixel_j, width, height)
    return composite(ray.origin, ray.direction, scene_max_bounces[None])


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_frame(width: ti.i32, height: ti.i32):
    """Evaluate every pixel of the active region into the color buffer."""
    for i, j in ti.ndrange(width, height):
        _color_buffer[i, j] = trace_pixel(i, j, width, height)


@ti.kernel
def _render_single_pixel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    return trace_pixel(pixel_i, pixel_j, width, height)


@ti.kernel
def _trace_ray(origin: vec3, direction: vec3) -> vec3:
    return composite(origin, direction, scene_max_bounces[None])


@ti.kernel
def _trace_ray_steps(origin: vec3, direction: vec3) -> ti.i32:
    _, steps = _composite(origin, direction, scene_max_bounces[None], True)
    return steps


# =============================================================================
# Public Rendering API
# =============================================================================


def render_frame() -> None:
    """Render one full frame into the color buffer.

    Every pixel is recomputed from the current scene and camera; nothing
    carries over from earlier frames.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    global _frame_count
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    _render_frame(width, height)
    _frame_count += 1


def render_pixel(pixel_i: int, pixel_j: int) -> tuple[float, float, float]:
    """Render a single pixel of the current render target.

    This is a Python-callable function for testing. For production rendering,
    use render_frame() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height)

    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> tuple[float, float, float]:
    """Composite the color seen along an arbitrary ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (need not be normalized).

    Returns:
        Tuple of (R, G, B) color values.
    """
    color = _trace_ray(vec3(*origin), vec3(*direction))
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray_steps(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> list[tuple[float, tuple[float, float, float]]]:
    """Composite a ray and report the state after every iteration.

    Args:
        origin: Ray origin.
        direction: Ray direction.

    Returns:
        One (transmittance, accumulated_color) pair per executed iteration.
    """
    steps = _trace_ray_steps(vec3(*origin), vec3(*direction))

    trace = []
    for k in range(steps):
        c = _step_color[k]
        trace.append(
            (float(_step_transmittance[k]), (float(c[0]), float(c[1]), float(c[2])))
        )
    return trace


def get_normalized_image_numpy():
    """Get the rendered image as a NumPy array clamped to [0, 1].

    The raw buffer holds linear, unclamped color. This is the host-facing
    conversion and always clamps. The array shape is (height, width, 3)
    with dtype float32, top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    import numpy as np

    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Taichi uses bottom-left origin, images use top-left
    image = np.flipud(image)

    image = np.clip(image, 0.0, 1.0)

    return image.astype(np.float32)
