"""Demo scene configuration.

This module provides a factory function for the demo scene: a translucent
red sphere beside a translucent blue box, seen in front of a checkered
backdrop plane.

The demo consists of:
- A red sphere on the left, half transparent
- A blue box on the right, mostly opaque
- A grey checkered plane behind both objects (z = -2)
- A dark blue-grey background for rays that miss everything

The camera sits slightly above the scene at z = 4 and looks at the origin,
so the backdrop is seen through both objects.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.raycaster.scene.demo import create_demo_scene
    >>> from src.raycaster.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_demo_scene()
    >>> setup_camera(camera, aspect_ratio=DEMO_WIDTH / DEMO_HEIGHT)
    >>> # Now render using the scene and camera
"""

from dataclasses import dataclass

from src.raycaster.camera.pinhole import PinholeCamera
from src.raycaster.scene.manager import SceneManager

# =============================================================================
# Demo Scene Parameters (for interactive preview)
# =============================================================================


@dataclass
class DemoSceneParams:
    """Parameters for configuring the demo scene.

    All parameters have defaults matching the classic demo configuration.
    The interactive preview edits an instance of this class and rebuilds
    the scene from it.

    Attributes:
        sphere_color: RGB color of the sphere. Default is (1.0, 0.3, 0.3).
        sphere_alpha: Opacity of the sphere. Default is 0.5.
        box_color: RGB color of the box. Default is (0.3, 0.3, 1.0).
        box_alpha: Opacity of the box. Default is 0.65.
        checker_color_a: First checker color of the backdrop.
        checker_color_b: Second checker color of the backdrop.
        checker_scale: Checker cells per world unit. Default is 1.5.
        background: Color for rays that miss everything.
        max_bounces: Surface interactions per ray. Default is 3.

    Example:
        >>> params = DemoSceneParams()
        >>> params.sphere_alpha
        0.5

        >>> # Opaque objects on a finer checkerboard
        >>> custom = DemoSceneParams(sphere_alpha=1.0, box_alpha=1.0, checker_scale=4.0)
    """

    sphere_color: tuple[float, float, float] = (1.0, 0.3, 0.3)
    sphere_alpha: float = 0.5
    box_color: tuple[float, float, float] = (0.3, 0.3, 1.0)
    box_alpha: float = 0.65
    checker_color_a: tuple[float, float, float] = (0.8, 0.8, 0.8)
    checker_color_b: tuple[float, float, float] = (0.3, 0.3, 0.3)
    checker_scale: float = 1.5
    background: tuple[float, float, float] = (0.1, 0.1, 0.15)
    max_bounces: int = 3


# =============================================================================
# Demo Scene Constants
# =============================================================================

DEMO_WIDTH = 800
DEMO_HEIGHT = 600

SPHERE_CENTER = (-0.8, 0.0, 0.0)
SPHERE_RADIUS = 0.7

BOX_MIN = (0.4, -0.6, -0.4)
BOX_MAX = (1.4, 0.6, 0.6)

# Backdrop plane z = -2
BACKDROP_NORMAL = (0.0, 0.0, 1.0)
BACKDROP_OFFSET = -2.0

CAMERA_POSITION = (0.0, 0.5, 4.0)
CAMERA_TARGET = (0.0, 0.0, 0.0)
CAMERA_UP = (0.0, 1.0, 0.0)
CAMERA_FOV = 60.0


# =============================================================================
# Demo Scene Factory
# =============================================================================


def create_demo_scene(
    params: DemoSceneParams | None = None,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the demo scene.

    Args:
        params: Optional DemoSceneParams for customizing colors, opacities
            and the checker pattern. If None, uses default DemoSceneParams().

    Returns:
        A tuple of (SceneManager, PinholeCamera). The camera still needs
        setup_camera() with the image aspect ratio.

    Raises:
        ValueError: If params holds an out-of-range value.

    Example:
        >>> scene, camera = create_demo_scene()
        >>> scene.get_primitive_count()
        3
    """
    if params is None:
        params = DemoSceneParams()

    scene = SceneManager()
    scene.set_background(params.background)
    scene.set_max_bounces(params.max_bounces)

    scene.add_sphere(
        center=SPHERE_CENTER,
        radius=SPHERE_RADIUS,
        color=params.sphere_color,
        alpha=params.sphere_alpha,
    )

    scene.add_box(
        box_min=BOX_MIN,
        box_max=BOX_MAX,
        color=params.box_color,
        alpha=params.box_alpha,
    )

    scene.add_plane(
        normal=BACKDROP_NORMAL,
        offset=BACKDROP_OFFSET,
        checker_color_a=params.checker_color_a,
        checker_color_b=params.checker_color_b,
        checker_scale=params.checker_scale,
    )

    camera = PinholeCamera(
        position=CAMERA_POSITION,
        target=CAMERA_TARGET,
        up=CAMERA_UP,
        fov=CAMERA_FOV,
    )

    return scene, camera
