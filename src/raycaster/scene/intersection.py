"""Scene primitive storage and nearest-hit resolution.

This module stores the scene's primitives in Taichi fields and provides the
scene-level ray queries used by the compositor. Every primitive carries its
own appearance:
- spheres and boxes: an RGB color and an alpha in [0, 1]
- planes: two checker colors and a checker scale (always opaque)

Spheres and boxes are the scene's finite objects and are depth-compared
against each other. Planes are the backdrop: they are only consulted when no
finite object is hit, and are never depth-compared with finite objects.

The scene-wide settings (background color and bounce budget) are stored
here as well, so the compositor reads everything about the scene from one
place.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycaster.scene.intersection import (
    ...     add_sphere, add_plane, clear_scene, intersect_scene
    ... )
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, 0), 1.0, color=vec3(1, 0, 0), alpha=0.5)
    >>> add_plane(vec3(0, 0, 1), -2.0, vec3(0.8, 0.8, 0.8), vec3(0.3, 0.3, 0.3), 1.5)
    >>> # Use intersect_scene within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti

from src.raycaster.core.ray import vec3
from src.raycaster.geometry.box import hit_box, make_box
from src.raycaster.geometry.plane import checker_color, hit_plane, make_plane
from src.raycaster.geometry.sphere import HitRecord, hit_sphere, make_sphere


class PrimitiveKind(IntEnum):
    """Kind tag stored in SceneHitRecord.kind."""

    NONE = 0
    SPHERE = 1
    BOX = 2
    PLANE = 3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with appearance information.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: Ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal at the intersection point.
        color: Surface color at the hit (checker color for planes).
        alpha: Surface opacity in [0, 1]; planes report 1.
        kind: PrimitiveKind of the hit primitive (NONE on a miss).
        index: Index of the hit primitive within its kind, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    color: vec3
    alpha: ti.f32
    kind: ti.i32
    index: ti.i32


# Maximum number of primitives supported in the scene
MAX_SPHERES = 64
MAX_BOXES = 64
MAX_PLANES = 8

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_alphas = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Box storage
box_mins = ti.Vector.field(3, dtype=ti.f32, shape=MAX_BOXES)
box_maxs = ti.Vector.field(3, dtype=ti.f32, shape=MAX_BOXES)
box_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_BOXES)
box_alphas = ti.field(dtype=ti.f32, shape=MAX_BOXES)
num_boxes = ti.field(dtype=ti.i32, shape=())

# Plane storage
plane_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_offsets = ti.field(dtype=ti.f32, shape=MAX_PLANES)
plane_colors_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_colors_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_scales = ti.field(dtype=ti.f32, shape=MAX_PLANES)
num_planes = ti.field(dtype=ti.i32, shape=())

# =============================================================================
# Scene-wide Settings
# =============================================================================

# Default number of surface interactions per ray
MAX_BOUNCES = 3

# Upper bound for a scene's bounce budget (sizes the step-trace buffers)
MAX_BOUNCES_LIMIT = 16

# Color seen by rays that leave the scene without hitting anything
DEFAULT_BACKGROUND = (0.1, 0.1, 0.15)

scene_background = ti.Vector.field(3, dtype=ti.f32, shape=())
scene_max_bounces = ti.field(dtype=ti.i32, shape=())


def set_background(color: tuple[float, float, float]) -> None:
    """Set the color returned for rays that hit nothing."""
    scene_background[None] = [color[0], color[1], color[2]]


def get_background() -> tuple[float, float, float]:
    c = scene_background[None]
    return (float(c[0]), float(c[1]), float(c[2]))


def set_max_bounces(max_bounces: int) -> None:
    """Set the bounce budget.

    Raises:
        ValueError: If max_bounces is outside [1, MAX_BOUNCES_LIMIT].
    """
    if not 1 <= max_bounces <= MAX_BOUNCES_LIMIT:
        raise ValueError(
            f"max_bounces must be in [1, {MAX_BOUNCES_LIMIT}], got {max_bounces}"
        )
    scene_max_bounces[None] = max_bounces


def get_max_bounces() -> int:
    return int(scene_max_bounces[None])


def reset_scene_settings() -> None:
    """Restore the default background color and bounce budget."""
    set_background(DEFAULT_BACKGROUND)
    set_max_bounces(MAX_BOUNCES)


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive counts to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0
    num_boxes[None] = 0
    num_planes[None] = 0


def add_sphere(center: vec3, radius: float, color: vec3, alpha: float) -> int:
    """Add a sphere to the scene.

    Values are stored as given; validation happens in SceneManager.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_colors[idx] = color
    sphere_alphas[idx] = alpha
    num_spheres[None] = idx + 1
    return idx


def add_box(box_min: vec3, box_max: vec3, color: vec3, alpha: float) -> int:
    """Add an axis-aligned box to the scene.

    Returns:
        The index of the added box.

    Raises:
        RuntimeError: If the maximum number of boxes is exceeded.
    """
    idx = num_boxes[None]
    if idx >= MAX_BOXES:
        raise RuntimeError(f"Maximum number of boxes ({MAX_BOXES}) exceeded")
    box_mins[idx] = box_min
    box_maxs[idx] = box_max
    box_colors[idx] = color
    box_alphas[idx] = alpha
    num_boxes[None] = idx + 1
    return idx


def add_plane(normal: vec3, offset: float, color_a: vec3, color_b: vec3, scale: float) -> int:
    """Add an infinite checkered plane dot(p, normal) = offset.

    Args:
        normal: Unit plane normal.
        offset: Signed plane offset along the normal.
        color_a: Checker color where the pattern is 0.
        color_b: Checker color where the pattern is 1.
        scale: Checker cells per world unit.

    Returns:
        The index of the added plane.

    Raises:
        RuntimeError: If the maximum number of planes is exceeded.
    """
    idx = num_planes[None]
    if idx >= MAX_PLANES:
        raise RuntimeError(f"Maximum number of planes ({MAX_PLANES}) exceeded")
    plane_normals[idx] = normal
    plane_offsets[idx] = offset
    plane_colors_a[idx] = color_a
    plane_colors_b[idx] = color_b
    plane_scales[idx] = scale
    num_planes[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_box_count() -> int:
    """Get the number of boxes in the scene."""
    return int(num_boxes[None])


def get_plane_count() -> int:
    """Get the number of planes in the scene."""
    return int(num_planes[None])


@ti.func
def _to_scene_hit_record(
    rec: HitRecord, color: vec3, alpha: ti.f32, kind: ti.i32, index: ti.i32
) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        color=color,
        alpha=alpha,
        kind=kind,
        index=index,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        color=vec3(0.0, 0.0, 0.0),
        alpha=0.0,
        kind=int(PrimitiveKind.NONE),
        index=-1,
    )


@ti.func
def intersect_objects(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the closest sphere or box hit.

    Spheres are tested first, then boxes. A later primitive replaces the
    current hit only when strictly closer, so on an exact tie the primitive
    stored first wins.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        The closest hit, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = make_sphere(sphere_centers[i], sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _to_scene_hit_record(
                rec, sphere_colors[i], sphere_alphas[i], int(PrimitiveKind.SPHERE), i
            )

    for i in range(num_boxes[None]):
        box = make_box(box_mins[i], box_maxs[i])
        rec = hit_box(ray_origin, ray_direction, box, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _to_scene_hit_record(
                rec, box_colors[i], box_alphas[i], int(PrimitiveKind.BOX), i
            )

    return result


@ti.func
def intersect_backdrop(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the closest plane hit and sample its checker color.

    Returns:
        The closest plane hit with its checker color and alpha 1, or a miss
        record.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_planes[None]):
        plane = make_plane(plane_normals[i], plane_offsets[i])
        rec = hit_plane(ray_origin, ray_direction, plane, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            color = checker_color(
                rec.point, plane.normal, plane_scales[i], plane_colors_a[i], plane_colors_b[i]
            )
            result = _to_scene_hit_record(rec, color, 1.0, int(PrimitiveKind.PLANE), i)

    return result


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Resolve the nearest hit with planes as a fallback.

    Planes are tested only when no sphere or box is hit; a plane in front of
    a finite object is not preferred over it.

    Returns:
        The resolved hit, or a miss record.
    """
    result = intersect_objects(ray_origin, ray_direction, t_min, t_max)
    if result.hit == 0:
        result = intersect_backdrop(ray_origin, ray_direction, t_min, t_max)
    return result
