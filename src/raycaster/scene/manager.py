"""Scene manager: validated scene configuration on top of primitive storage.

This module provides the high-level scene API. It validates every value at
configuration time, so the render kernel never sees an invalid primitive,
and keeps a Python-side description of the scene that can be exported to
and loaded from plain dictionaries (JSON compatible).

The SceneManager maintains:
- Sphere, box and plane descriptions mirrored into the Taichi fields
- The background color and bounce budget
- Scene serialization/configuration support

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycaster.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere(center=(0, 0, 0), radius=1.0, color=(1, 0, 0), alpha=0.5)
    >>> scene.add_plane(normal=(0, 0, 1), offset=-2.0)
    >>> scene.set_background((0.1, 0.1, 0.15))
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import taichi.math as tm

from src.raycaster.scene.intersection import (
    DEFAULT_BACKGROUND,
    MAX_BOUNCES,
    MAX_BOUNCES_LIMIT,
    MAX_BOXES,
    MAX_PLANES,
    MAX_SPHERES,
    add_box,
    add_plane,
    add_sphere,
    clear_scene,
    get_box_count,
    get_plane_count,
    get_sphere_count,
    reset_scene_settings,
    set_background,
    set_max_bounces,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

Color = tuple[float, float, float]
Point = tuple[float, float, float]

DEFAULT_CHECKER_COLOR_A = (0.8, 0.8, 0.8)
DEFAULT_CHECKER_COLOR_B = (0.3, 0.3, 0.3)
DEFAULT_CHECKER_SCALE = 1.5


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    try:
        x, y, z = (float(v) for v in values)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be three numbers, got {values!r}") from e
    if not all(math.isfinite(v) for v in (x, y, z)):
        raise ValueError(f"{name} must be finite, got {values!r}")
    return (x, y, z)


def _validate_color(color: Any, name: str = "color") -> Color:
    rgb = _as_triple(color, name)
    if any(c < 0.0 or c > 1.0 for c in rgb):
        raise ValueError(f"{name} components must be in [0, 1], got {rgb}")
    return rgb


def _validate_alpha(alpha: float) -> float:
    alpha = float(alpha)
    if not 0.0 <= alpha <= 1.0:
        raise ValueError(f"alpha must be in [0, 1], got {alpha}")
    return alpha


def _validate_sphere(center: Any, radius: float, color: Any, alpha: float):
    """Return (center, radius, color, alpha) as validated floats."""
    center = _as_triple(center, "center")
    radius = float(radius)
    if not radius > 0.0:
        raise ValueError(f"radius must be positive, got {radius}")
    return center, radius, _validate_color(color), _validate_alpha(alpha)


def _validate_box(box_min: Any, box_max: Any, color: Any, alpha: float):
    """Return (box_min, box_max, color, alpha) as validated floats."""
    box_min = _as_triple(box_min, "box_min")
    box_max = _as_triple(box_max, "box_max")
    if any(lo > hi for lo, hi in zip(box_min, box_max)):
        raise ValueError(f"box_min {box_min} must not exceed box_max {box_max}")
    return box_min, box_max, _validate_color(color), _validate_alpha(alpha)


def _validate_plane(
    normal: Any,
    offset: float,
    checker_color_a: Any,
    checker_color_b: Any,
    checker_scale: float,
):
    """Return the plane with a unit normal and the offset rescaled to match."""
    normal = _as_triple(normal, "normal")
    norm = math.sqrt(sum(n * n for n in normal))
    if norm < 1e-8:
        raise ValueError("Plane normal must be non-zero")
    unit_normal = (normal[0] / norm, normal[1] / norm, normal[2] / norm)
    unit_offset = float(offset) / norm

    checker_color_a = _validate_color(checker_color_a, "checker_color_a")
    checker_color_b = _validate_color(checker_color_b, "checker_color_b")
    checker_scale = float(checker_scale)
    if not checker_scale > 0.0:
        raise ValueError(f"checker_scale must be positive, got {checker_scale}")
    return unit_normal, unit_offset, checker_color_a, checker_color_b, checker_scale


def _validate_max_bounces(max_bounces: int) -> int:
    max_bounces = int(max_bounces)
    if not 1 <= max_bounces <= MAX_BOUNCES_LIMIT:
        raise ValueError(
            f"max_bounces must be in [1, {MAX_BOUNCES_LIMIT}], got {max_bounces}"
        )
    return max_bounces


def _check_capacity(count: int, capacity: int, kind: str) -> None:
    if count > capacity:
        raise RuntimeError(f"Maximum number of {kind} ({capacity}) exceeded")


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        color: RGB color in [0, 1].
        alpha: Opacity in [0, 1].
    """

    sphere_index: int
    center: Point
    radius: float
    color: Color
    alpha: float


@dataclass
class BoxInfo:
    """Information about an axis-aligned box in the scene."""

    box_index: int
    box_min: Point
    box_max: Point
    color: Color
    alpha: float


@dataclass
class PlaneInfo:
    """Information about a checkered plane in the scene.

    Attributes:
        plane_index: The index in the plane storage arrays.
        normal: Unit plane normal.
        offset: Signed offset d of the plane dot(p, normal) = d.
        checker_color_a: Checker color where the pattern is 0.
        checker_color_b: Checker color where the pattern is 1.
        checker_scale: Checker cells per world unit.
    """

    plane_index: int
    normal: Point
    offset: float
    checker_color_a: Color
    checker_color_b: Color
    checker_scale: float


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        spheres: List of sphere configurations.
        boxes: List of box configurations.
        planes: List of plane configurations.
        background: Background color.
        max_bounces: Bounce budget.
    """

    spheres: list[dict[str, Any]] = field(default_factory=list)
    boxes: list[dict[str, Any]] = field(default_factory=list)
    planes: list[dict[str, Any]] = field(default_factory=list)
    background: Color = DEFAULT_BACKGROUND
    max_bounces: int = MAX_BOUNCES


class SceneManager:
    """Validated scene description backed by the Taichi primitive storage.

    Creating a SceneManager clears the scene; there is one live scene at a
    time. The scene must not be modified while a frame is rendering.

    Attributes:
        spheres: List of SphereInfo for all spheres in the scene.
        boxes: List of BoxInfo for all boxes in the scene.
        planes: List of PlaneInfo for all planes in the scene.
        background: Current background color.
        max_bounces: Current bounce budget.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_sphere((-0.8, 0, 0), 0.7, color=(1.0, 0.3, 0.3), alpha=0.5)
        >>> scene.add_box((0.4, -0.6, -0.4), (1.4, 0.6, 0.6), color=(0.3, 0.3, 1.0), alpha=0.65)
        >>> scene.add_plane((0, 0, 1), -2.0, checker_scale=1.5)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.spheres: list[SphereInfo] = []
        self.boxes: list[BoxInfo] = []
        self.planes: list[PlaneInfo] = []
        self.background: Color = DEFAULT_BACKGROUND
        self.max_bounces: int = MAX_BOUNCES
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        reset_scene_settings()
        self.spheres.clear()
        self.boxes.clear()
        self.planes.clear()
        self.background = DEFAULT_BACKGROUND
        self.max_bounces = MAX_BOUNCES

    def clear(self) -> None:
        """Clear all primitives and restore default settings."""
        self._clear_all()

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: Point,
        radius: float,
        color: Color,
        alpha: float = 1.0,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (must be positive).
            color: RGB color with components in [0, 1].
            alpha: Opacity in [0, 1]; 0 is invisible, 1 is opaque.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If any parameter is out of range.
        """
        center, radius, color, alpha = _validate_sphere(center, radius, color, alpha)

        sphere_index = add_sphere(vec3(*center), radius, vec3(*color), alpha)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=radius,
                color=color,
                alpha=alpha,
            )
        )
        logger.debug("Added sphere %d at %s r=%.3f alpha=%.2f", sphere_index, center, radius, alpha)
        return sphere_index

    def add_box(
        self,
        box_min: Point,
        box_max: Point,
        color: Color,
        alpha: float = 1.0,
    ) -> int:
        """Add an axis-aligned box to the scene.

        Args:
            box_min: The corner with the smallest coordinates.
            box_max: The corner with the largest coordinates.
            color: RGB color with components in [0, 1].
            alpha: Opacity in [0, 1].

        Returns:
            The index of the added box.

        Raises:
            RuntimeError: If the maximum number of boxes is exceeded.
            ValueError: If box_min exceeds box_max on any axis or a color
                or alpha is out of range.
        """
        box_min, box_max, color, alpha = _validate_box(box_min, box_max, color, alpha)

        box_index = add_box(vec3(*box_min), vec3(*box_max), vec3(*color), alpha)
        self.boxes.append(
            BoxInfo(
                box_index=box_index,
                box_min=box_min,
                box_max=box_max,
                color=color,
                alpha=alpha,
            )
        )
        logger.debug("Added box %d %s-%s alpha=%.2f", box_index, box_min, box_max, alpha)
        return box_index

    def add_plane(
        self,
        normal: Point,
        offset: float,
        checker_color_a: Color = DEFAULT_CHECKER_COLOR_A,
        checker_color_b: Color = DEFAULT_CHECKER_COLOR_B,
        checker_scale: float = DEFAULT_CHECKER_SCALE,
    ) -> int:
        """Add an infinite checkered plane dot(p, normal) = offset.

        A non-unit normal is normalized and the offset divided by the same
        length, so the described plane is unchanged.

        Args:
            normal: Plane normal (non-zero).
            offset: Signed offset for the given normal.
            checker_color_a: Checker color where the pattern is 0.
            checker_color_b: Checker color where the pattern is 1.
            checker_scale: Checker cells per world unit (must be positive).

        Returns:
            The index of the added plane.

        Raises:
            RuntimeError: If the maximum number of planes is exceeded.
            ValueError: If the normal is zero, the scale is not positive or
                a color is out of range.
        """
        (
            unit_normal,
            unit_offset,
            checker_color_a,
            checker_color_b,
            checker_scale,
        ) = _validate_plane(normal, offset, checker_color_a, checker_color_b, checker_scale)

        plane_index = add_plane(
            vec3(*unit_normal),
            unit_offset,
            vec3(*checker_color_a),
            vec3(*checker_color_b),
            checker_scale,
        )
        self.planes.append(
            PlaneInfo(
                plane_index=plane_index,
                normal=unit_normal,
                offset=unit_offset,
                checker_color_a=checker_color_a,
                checker_color_b=checker_color_b,
                checker_scale=checker_scale,
            )
        )
        logger.debug("Added plane %d normal=%s d=%.3f", plane_index, unit_normal, unit_offset)
        return plane_index

    # =========================================================================
    # Scene Settings
    # =========================================================================

    def set_background(self, color: Color) -> None:
        """Set the color seen by rays that hit nothing.

        Raises:
            ValueError: If a component is outside [0, 1].
        """
        color = _validate_color(color, "background")
        set_background(color)
        self.background = color

    def set_max_bounces(self, max_bounces: int) -> None:
        """Set the number of surface interactions per ray.

        Raises:
            ValueError: If max_bounces is outside [1, MAX_BOUNCES_LIMIT].
        """
        set_max_bounces(int(max_bounces))
        self.max_bounces = int(max_bounces)

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    def get_box_count(self) -> int:
        return get_box_count()

    def get_plane_count(self) -> int:
        return get_plane_count()

    def get_primitive_count(self) -> int:
        """Get the total number of primitives in the scene."""
        return self.get_sphere_count() + self.get_box_count() + self.get_plane_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig(background=self.background, max_bounces=self.max_bounces)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "color": list(sphere.color),
                    "alpha": sphere.alpha,
                }
            )

        for box in self.boxes:
            config.boxes.append(
                {
                    "min": list(box.box_min),
                    "max": list(box.box_max),
                    "color": list(box.color),
                    "alpha": box.alpha,
                }
            )

        for plane in self.planes:
            config.planes.append(
                {
                    "normal": list(plane.normal),
                    "offset": plane.offset,
                    "checker_color_a": list(plane.checker_color_a),
                    "checker_color_b": list(plane.checker_color_b),
                    "checker_scale": plane.checker_scale,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Every entry is validated before anything is written, so an invalid
        configuration leaves the current scene untouched. On success the
        current scene is replaced.

        Raises:
            ValueError: If the configuration contains invalid data.
            RuntimeError: If a primitive list exceeds its capacity.
        """
        background = _validate_color(config.background, "background")
        max_bounces = _validate_max_bounces(config.max_bounces)

        spheres = [
            _validate_sphere(
                sphere_config.get("center", [0.0, 0.0, 0.0]),
                sphere_config.get("radius", 1.0),
                sphere_config.get("color", [1.0, 1.0, 1.0]),
                sphere_config.get("alpha", 1.0),
            )
            for sphere_config in config.spheres
        ]

        boxes = []
        for box_config in config.boxes:
            if "min" not in box_config or "max" not in box_config:
                raise ValueError(f"Box configuration needs 'min' and 'max': {box_config}")
            boxes.append(
                _validate_box(
                    box_config["min"],
                    box_config["max"],
                    box_config.get("color", [1.0, 1.0, 1.0]),
                    box_config.get("alpha", 1.0),
                )
            )

        planes = [
            _validate_plane(
                plane_config.get("normal", [0.0, 1.0, 0.0]),
                plane_config.get("offset", 0.0),
                plane_config.get("checker_color_a", DEFAULT_CHECKER_COLOR_A),
                plane_config.get("checker_color_b", DEFAULT_CHECKER_COLOR_B),
                plane_config.get("checker_scale", DEFAULT_CHECKER_SCALE),
            )
            for plane_config in config.planes
        ]

        _check_capacity(len(spheres), MAX_SPHERES, "spheres")
        _check_capacity(len(boxes), MAX_BOXES, "boxes")
        _check_capacity(len(planes), MAX_PLANES, "planes")

        self.clear()
        self.set_background(background)
        self.set_max_bounces(max_bounces)

        for sphere in spheres:
            self.add_sphere(*sphere)
        for box in boxes:
            self.add_box(*box)
        for plane in planes:
            self.add_plane(*plane)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "spheres": config.spheres,
            "boxes": config.boxes,
            "planes": config.planes,
            "background": list(config.background),
            "max_bounces": config.max_bounces,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with optional 'spheres', 'boxes', 'planes',
                'background' and 'max_bounces' keys.
        """
        config = SceneConfig(
            spheres=data.get("spheres", []),
            boxes=data.get("boxes", []),
            planes=data.get("planes", []),
            background=tuple(data.get("background", DEFAULT_BACKGROUND)),
            max_bounces=data.get("max_bounces", MAX_BOUNCES),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_boxes() -> int:
        return MAX_BOXES

    @staticmethod
    def get_max_planes() -> int:
        return MAX_PLANES

    @staticmethod
    def get_max_bounces_limit() -> int:
        return MAX_BOUNCES_LIMIT
