"""Frame renderer for the host frame loop.

This module provides a convenient wrapper around the compositor that supports:
- Rendering whole frames (every pixel re-evaluated each frame)
- Rendering several frames with a per-frame callback
- A generator interface for host loops that interleave other work
- Image output in float, 8-bit and PNG form

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycaster.core.renderer import FrameRenderer
    >>> from src.raycaster.scene.demo import create_demo_scene
    >>> from src.raycaster.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_demo_scene()
    >>> renderer = FrameRenderer(800, 600)
    >>> setup_camera(camera, renderer.aspect_ratio)
    >>> renderer.render()
    >>> image = renderer.get_image_numpy()
"""

import logging
import time
from collections.abc import Callable, Generator
from typing import Any

import numpy as np
import numpy.typing as npt

from src.raycaster.core.compositor import (
    clear_render_target,
    get_frame_count,
    get_image,
    get_normalized_image_numpy,
    render_frame,
    setup_render_target,
)
from src.raycaster.preview.display import apply_gamma
from src.raycaster.preview.export import image_to_uint8, save_png_from_array

logger = logging.getLogger(__name__)

# Callback receives (frames_rendered, frames_requested)
FrameCallback = Callable[[int, int], None]


class FrameRenderer:
    """Owns the render target and renders full frames into it.

    The renderer delegates to the compositor's global buffer (a Taichi
    field), so only one FrameRenderer is meaningful at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Initialize the renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).

        Raises:
            ValueError: If dimensions are not positive or exceed the
                maximum supported size.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height; pass this to setup_camera()."""
        return self._width / self._height

    @property
    def frame_count(self) -> int:
        """Number of frames rendered since creation or the last reset."""
        return get_frame_count()

    def reset(self) -> None:
        """Clear the color buffer and the frame counter."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and clear it.

        The camera's aspect ratio is not updated; call setup_camera() again
        with the new aspect_ratio.

        Raises:
            ValueError: If dimensions are not positive or exceed the
                maximum supported size.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(self) -> None:
        """Render one frame from the current scene and camera."""
        render_frame()

    def render_frames(
        self,
        num_frames: int = 1,
        callback: FrameCallback | None = None,
    ) -> None:
        """Render several frames back to back.

        Frames are independent; rendering more than one only makes sense
        when the callback changes the scene or camera between frames.

        Args:
            num_frames: Number of frames to render.
            callback: Optional callback called after each frame with
                (frames_rendered, num_frames).
        """
        if num_frames <= 0:
            return

        start = time.perf_counter()
        for done in range(1, num_frames + 1):
            render_frame()
            if callback is not None:
                callback(done, num_frames)

        elapsed = time.perf_counter() - start
        logger.info(
            "Rendered %d frame(s) at %dx%d in %.3fs",
            num_frames,
            self._width,
            self._height,
            elapsed,
        )

    def frames(self, num_frames: int | None = None) -> Generator[int, None, None]:
        """Render frames, yielding the running frame count after each one.

        Args:
            num_frames: Number of frames to render, or None to render until
                the caller stops iterating.

        Yields:
            The total frame count after each rendered frame.

        Example:
            >>> for frame in renderer.frames():
            ...     update_scene(frame)
            ...     if frame >= 100:
            ...         break
        """
        rendered = 0
        while num_frames is None or rendered < num_frames:
            render_frame()
            rendered += 1
            yield self.frame_count

    def get_image(self) -> Any:
        """Get the raw Taichi color buffer field (full preallocated size)."""
        return get_image()

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Values are clamped to [0, 1] and optionally gamma encoded. The array
        shape is (height, width, 3).

        Args:
            gamma: Gamma value. Default 1.0 (linear). Use 2.2 for sRGB.
        """
        return apply_gamma(get_normalized_image_numpy(), gamma=gamma)

    def get_image_uint8(self, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit NumPy array.

        The default gamma is 1.0: scene colors are already display values,
        as in a fragment shader writing to an 8-bit framebuffer.
        """
        return image_to_uint8(get_normalized_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str, gamma: float = 1.0) -> None:
        """Save the rendered image to a file (format from the extension)."""
        save_png_from_array(get_normalized_image_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        return (
            f"FrameRenderer(width={self.width}, height={self.height}, "
            f"frames={self.frame_count})"
        )
