"""Scene module for primitive storage, scene configuration and the demo scene.

Components:
    intersection: Primitive storage in Taichi fields, scene-wide settings
        and nearest-hit resolution
    manager: Validated scene configuration with dict/JSON round-trip
    demo: Factory for the demo scene (sphere, box and checkered backdrop)

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout per primitive kind
    - Fixed capacities so kernels never recompile as the scene changes
"""

from .intersection import (
    DEFAULT_BACKGROUND,
    MAX_BOUNCES,
    MAX_BOUNCES_LIMIT,
    MAX_BOXES,
    MAX_PLANES,
    MAX_SPHERES,
    PrimitiveKind,
    SceneHitRecord,
    add_box,
    add_plane,
    add_sphere,
    clear_scene,
    get_background,
    get_box_count,
    get_max_bounces,
    get_plane_count,
    get_sphere_count,
    intersect_backdrop,
    intersect_objects,
    intersect_scene,
    reset_scene_settings,
    set_background,
    set_max_bounces,
)
from .manager import BoxInfo, PlaneInfo, SceneConfig, SceneManager, SphereInfo
from .demo import DEMO_HEIGHT, DEMO_WIDTH, DemoSceneParams, create_demo_scene

__all__ = [
    # Intersection module
    "PrimitiveKind",
    "SceneHitRecord",
    "add_sphere",
    "add_box",
    "add_plane",
    "clear_scene",
    "get_sphere_count",
    "get_box_count",
    "get_plane_count",
    "intersect_objects",
    "intersect_backdrop",
    "intersect_scene",
    "set_background",
    "get_background",
    "set_max_bounces",
    "get_max_bounces",
    "reset_scene_settings",
    "MAX_SPHERES",
    "MAX_BOXES",
    "MAX_PLANES",
    "MAX_BOUNCES",
    "MAX_BOUNCES_LIMIT",
    "DEFAULT_BACKGROUND",
    # Manager module
    "SceneManager",
    "SphereInfo",
    "BoxInfo",
    "PlaneInfo",
    "SceneConfig",
    # Demo module
    "DemoSceneParams",
    "create_demo_scene",
    "DEMO_WIDTH",
    "DEMO_HEIGHT",
]
