"""Interactive preview window using Taichi GGUI.

This module provides an interactive preview window for real-time rendering
using Taichi's ti.ui.Window and canvas system.

Features:
    - One full frame rendered and presented per loop iteration
    - Taichi GGUI-based window (GPU-accelerated)
    - Support for updating display from numpy arrays
    - Reactive rendering with parameter change detection
    - ESC or closing the window ends the loop

Example:
    >>> import numpy as np
    >>> from src.raycaster.preview.interactive import InteractivePreview
    >>>
    >>> preview = InteractivePreview(800, 600)
    >>> image = np.zeros((600, 800, 3), dtype=np.float32)
    >>> preview.update_image(image)
    >>> preview.run()

Reactive Rendering Example:
    >>> from src.raycaster.preview.interactive import InteractivePreview
    >>> from src.raycaster.scene.demo import DemoSceneParams
    >>>
    >>> preview = InteractivePreview(800, 600)
    >>> preview.set_params(DemoSceneParams(sphere_alpha=0.3))
    >>> preview.run_reactive()  # Renders continuously until window closed
"""

import copy
import dataclasses
import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING, Any

import numpy as np
import taichi as ti

if TYPE_CHECKING:
    import numpy.typing as npt

    from src.raycaster.core.renderer import FrameRenderer
    from src.raycaster.scene.demo import DemoSceneParams

logger = logging.getLogger(__name__)


# Lazy kernel holder - kernel is created on first use after Taichi is initialized
_copy_field_kernel: Any = None


def _get_copy_field_kernel() -> Any:
    """Get or create the field copy kernel.

    The kernel is created lazily to ensure Taichi is initialized first.
    """
    global _copy_field_kernel
    if _copy_field_kernel is None:

        @ti.kernel
        def _kernel(src: ti.template(), dst: ti.template()):
            for i, j in dst:
                dst[i, j] = ti.math.clamp(src[i, j], 0.0, 1.0)

        _copy_field_kernel = _kernel
    return _copy_field_kernel


def is_display_available() -> bool:
    """Check if a display is available for GUI rendering.

    Returns:
        True if a display is available, False for headless environments.
    """
    display = os.environ.get("DISPLAY")
    wayland = os.environ.get("WAYLAND_DISPLAY")

    # Windows generally always has a display
    if os.name == "nt":
        return True

    # On macOS, display is always available if not in SSH
    if os.uname().sysname == "Darwin":
        ssh_connection = os.environ.get("SSH_CONNECTION")
        if ssh_connection and not display:
            return False
        return True

    # On Linux, check for X11 or Wayland
    return bool(display or wayland)


class InteractivePreview:
    """Interactive preview window using Taichi GGUI.

    This class wraps ti.ui.Window to provide a simple interface for
    displaying rendered images in real-time. It manages the window,
    canvas, and display buffer.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        window: The Taichi GGUI window instance.
        canvas: The canvas for rendering.
        display_image: Taichi field storing the display image (RGB float).

    Example:
        >>> preview = InteractivePreview(800, 600)
        >>> preview.update_image(my_numpy_array)
        >>> preview.run()
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        title: str = "Translucent Ray Caster",
    ) -> None:
        """Initialize the interactive preview window.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            title: Window title.

        Note:
            The window is created but not shown until run() is called.
        """
        self.width = width
        self.height = height
        self._title = title
        self._is_initialized = False

        # Defer window creation until run() to support headless checks
        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None

        self._pending_params: DemoSceneParams | None = None
        self._current_params: DemoSceneParams | None = None
        self._renderer: FrameRenderer | None = None

        # Shape is (width, height) for Taichi field, RGB values stored as vec3
        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(width, height)
        )

    def _initialize_window(self) -> None:
        """Initialize the Taichi GGUI window and canvas."""
        if self._is_initialized:
            return

        self._window = ti.ui.Window(
            name=self._title,
            res=(self.width, self.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()
        self._is_initialized = True

    @property
    def window(self) -> ti.ui.Window:
        """Get the Taichi GGUI window, initializing if needed."""
        if self._window is None:
            self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Get the canvas for rendering."""
        if self._canvas is None:
            self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def update_image(self, image: "npt.NDArray[np.float32]") -> None:
        """Update the display image from a numpy array.

        Args:
            image: NumPy array of shape (height, width, 3) with dtype float32,
                top row first. Values are clamped to [0, 1].

        Raises:
            ValueError: If image shape doesn't match (height, width, 3).
        """
        expected_shape = (self.height, self.width, 3)
        if image.shape != expected_shape:
            raise ValueError(
                f"Image shape {image.shape} doesn't match expected {expected_shape}"
            )

        # NumPy images are (height, width, channels) with the top row first;
        # Taichi fields are (x, y) with the origin at bottom-left
        image_transposed = np.ascontiguousarray(
            np.transpose(np.flipud(np.clip(image, 0.0, 1.0)), (1, 0, 2)).astype(np.float32)
        )
        self.display_image.from_numpy(image_transposed)

    def update_image_from_field(self, field: ti.MatrixField) -> None:
        """Update the display image from a Taichi field, clamping to [0, 1].

        Avoids a host round trip when the source is already a Taichi field.
        Only the (width, height) region of the source is read, so the
        compositor's preallocated color buffer can be passed directly.
        """
        kernel = _get_copy_field_kernel()
        kernel(field, self.display_image)

    def is_running(self) -> bool:
        """Check if the window is still open."""
        return self.window.running

    def handle_events(self) -> None:
        """Process pending key presses; ESC closes the window."""
        while self.window.get_event(ti.ui.PRESS):
            if self.window.event.key == ti.ui.ESCAPE:
                self.window.running = False

    def show_frame(self) -> None:
        """Present the current display image."""
        self.canvas.set_image(self.display_image)
        self.window.show()

    def run(self) -> None:
        """Run the main window event loop.

        This blocks until the window is closed or ESC is pressed. The
        display image is shown on each frame.
        """
        self._initialize_window()

        while self.is_running():
            self.handle_events()
            self.show_frame()

    def close(self) -> None:
        """Close the preview window."""
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Check if a display is available for GUI rendering."""
        return is_display_available()

    # =========================================================================
    # Reactive Rendering Support
    # =========================================================================

    def set_params(self, params: "DemoSceneParams") -> None:
        """Set the scene parameters for reactive rendering.

        When parameters change, the scene is rebuilt before the next frame.

        Args:
            params: The DemoSceneParams to use for scene configuration.
        """
        # Store a deep copy to prevent external mutation
        self._pending_params = copy.deepcopy(params)

    def _params_changed(self) -> bool:
        """Check if parameters have changed since the last scene build."""
        if self._pending_params is None:
            return False
        return self._pending_params != self._current_params

    def _rebuild_scene(self) -> None:
        """Rebuild the demo scene from the pending parameters."""
        from src.raycaster.camera.pinhole import setup_camera
        from src.raycaster.scene.demo import DemoSceneParams, create_demo_scene

        if self._pending_params is None:
            self._pending_params = DemoSceneParams()
        params = self._pending_params

        scene, camera = create_demo_scene(params=params)
        setup_camera(camera, aspect_ratio=self.width / self.height)

        self._scene = scene
        self._camera = camera
        self._current_params = copy.deepcopy(params)
        logger.debug("Rebuilt demo scene with %s", params)

    def _ensure_renderer(self) -> None:
        """Ensure the frame renderer is initialized."""
        from src.raycaster.core.renderer import FrameRenderer

        if self._renderer is None:
            self._renderer = FrameRenderer(self.width, self.height)

    def get_renderer(self) -> "FrameRenderer | None":
        """Get the underlying frame renderer, or None if not initialized."""
        return self._renderer

    def get_frame_count(self) -> int:
        """Get the number of frames rendered so far."""
        if self._renderer is None:
            return 0
        return self._renderer.frame_count

    def run_reactive(self) -> None:
        """Run the reactive rendering loop.

        On each frame:
        - Reads slider values from GUI controls
        - Rebuilds the scene if the parameters changed
        - Renders one full frame and presents it
        Continues until the window is closed or ESC is pressed.

        GUI Controls:
            - Sphere Alpha and Box Alpha sliders (0.0 to 1.0)
            - Checker Scale slider (0.25 to 8.0)
            - Export PNG button
        """
        from src.raycaster.scene.demo import DemoSceneParams

        self._initialize_window()
        self._ensure_renderer()
        assert self._renderer is not None

        if self._pending_params is None:
            self._pending_params = DemoSceneParams()

        self._rebuild_scene()

        while self.is_running():
            self.handle_events()

            if self._params_changed():
                self._rebuild_scene()

            self._renderer.render()
            self.update_image_from_field(self._renderer.get_image())

            self._draw_gui_panel()
            self.show_frame()

    def _draw_gui_panel(self) -> None:
        """Draw the GUI panel with scene controls and export options."""
        assert self._pending_params is not None
        params = self._pending_params

        with self.window.GUI.sub_window("Scene", 0.02, 0.02, 0.3, 0.2) as gui:
            sphere_alpha = gui.slider_float(
                "Sphere Alpha", params.sphere_alpha, minimum=0.0, maximum=1.0
            )
            box_alpha = gui.slider_float(
                "Box Alpha", params.box_alpha, minimum=0.0, maximum=1.0
            )
            checker_scale = gui.slider_float(
                "Checker Scale", params.checker_scale, minimum=0.25, maximum=8.0
            )
            if gui.button("Export PNG"):
                self._export_png()

        changed = (
            abs(sphere_alpha - params.sphere_alpha) > 1e-6
            or abs(box_alpha - params.box_alpha) > 1e-6
            or abs(checker_scale - params.checker_scale) > 1e-6
        )
        if changed:
            self._pending_params = dataclasses.replace(
                params,
                sphere_alpha=sphere_alpha,
                box_alpha=box_alpha,
                checker_scale=checker_scale,
            )

    def _export_png(self) -> None:
        """Export the current frame to a timestamped PNG file."""
        from src.raycaster.preview.export import save_png

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"raycaster_{timestamp}.png"

        renderer = self.get_renderer()
        if renderer is not None:
            save_png(renderer, filename)
            print(f"Exported: {filename} (frame {renderer.frame_count})")
        else:
            print("Error: No renderer available for export")
