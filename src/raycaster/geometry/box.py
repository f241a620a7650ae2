"""Axis-aligned box primitive with slab-method intersection.

A box is given by its min and max corners (min <= max componentwise).

Ray-box intersection uses the slab method:
1. For each axis, intersect the ray with the two planes bounding the slab
   using the reciprocal of the direction component.
2. The entry distance t_near is the largest per-axis entry, the exit
   distance t_far the smallest per-axis exit.
3. The ray misses when t_near >= t_far or t_far <= t_min.

Only hits from outside the box are reported: a ray whose origin lies inside
the box (t_near <= t_min) is a miss. The see-through compositor relies on
this so a box contributes once per ray, at its entry face.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycaster.geometry.box import Box, hit_box
    >>> box = Box(box_min=ti.math.vec3(-1, -1, -1), box_max=ti.math.vec3(1, 1, 1))
    >>> # Use hit_box within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.raycaster.core.ray import PARALLEL_EPSILON, T_MAX, vec3
from src.raycaster.geometry.sphere import HitRecord


@ti.dataclass
class Box:
    """An axis-aligned box.

    Attributes:
        box_min: The corner with the smallest coordinates (vec3).
        box_max: The corner with the largest coordinates (vec3).
    """

    box_min: vec3
    box_max: vec3


@ti.func
def box_slab_interval(ray_origin: vec3, ray_direction: vec3, box: Box):
    """Compute the parametric interval where the ray's line is inside the box.

    An axis whose direction component is (numerically) zero does not bound
    the interval when the origin lies between that axis' slab planes, and
    empties it otherwise.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        box: The box to test.

    Returns:
        Tuple (overlap, t_near, t_far). overlap is 1 if the line crosses the
        box (t_near < t_far), 0 otherwise.
    """
    t_near = -T_MAX
    t_far = T_MAX
    outside_slab = 0

    for axis in ti.static(range(3)):
        o = ray_origin[axis]
        lo = box.box_min[axis]
        hi = box.box_max[axis]
        if ti.abs(ray_direction[axis]) < PARALLEL_EPSILON:
            if o < lo or o > hi:
                outside_slab = 1
        else:
            inv_d = 1.0 / ray_direction[axis]
            t0 = (lo - o) * inv_d
            t1 = (hi - o) * inv_d
            t_near = ti.max(t_near, ti.min(t0, t1))
            t_far = ti.min(t_far, ti.max(t0, t1))

    overlap = 0
    if outside_slab == 0 and t_near < t_far:
        overlap = 1

    return overlap, t_near, t_far


@ti.func
def box_face_normal(point: vec3, box: Box) -> vec3:
    """Compute the outward face normal for a point on the box surface.

    The point's offset from the box center is divided by the half-extents;
    the axis with the largest normalized deviation names the face. Ties go
    to X, then Y, then Z.

    Args:
        point: A point on (or numerically near) the box surface.
        box: The box.

    Returns:
        A signed unit axis vector.
    """
    center = (box.box_min + box.box_max) * 0.5
    half_extents = tm.max((box.box_max - box.box_min) * 0.5, vec3(PARALLEL_EPSILON))
    local = point - center
    deviation = ti.abs(local) / half_extents

    normal = vec3(0.0, 0.0, ti.select(local.z < 0.0, -1.0, 1.0))
    if deviation.x >= deviation.y and deviation.x >= deviation.z:
        normal = vec3(ti.select(local.x < 0.0, -1.0, 1.0), 0.0, 0.0)
    elif deviation.y >= deviation.z:
        normal = vec3(0.0, ti.select(local.y < 0.0, -1.0, 1.0), 0.0)

    return normal


@ti.func
def hit_box(
    ray_origin: vec3,
    ray_direction: vec3,
    box: Box,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-box intersection from outside the box.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        box: The box to test intersection against.
        t_min: Entry distances at or before t_min are rejected; this also
            rejects rays starting inside the box.
        t_max: Entry distances at or beyond t_max are rejected.

    Returns:
        A HitRecord at the entry face with its outward face normal.
    """
    overlap, t_near, t_far = box_slab_interval(ray_origin, ray_direction, box)

    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    if overlap == 1 and t_far > t_min:
        if t_near > t_min and t_near < t_max:
            did_hit = 1
            hit_t = t_near
            hit_point = ray_origin + t_near * ray_direction
            hit_normal = box_face_normal(hit_point, box)

    return HitRecord(hit=did_hit, t=hit_t, point=hit_point, normal=hit_normal)


@ti.func
def make_box(box_min: vec3, box_max: vec3) -> Box:
    """Create a box from its corners inside a kernel."""
    return Box(box_min=box_min, box_max=box_max)
