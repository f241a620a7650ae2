"""Infinite plane primitive with a procedural checker pattern.

A plane is the set of points p with dot(p, normal) = d, for a unit normal.
Planes are opaque backdrops: the compositor samples their checker pattern
and stops.

The checker pattern projects the hit point onto a 2D frame picked from the
dominant normal axis:
    |normal.z| > 0.99 -> (x, y)
    |normal.y| > 0.99 -> (x, z)
    otherwise         -> (y, z)
and alternates two colors on the cells of a grid with checker_scale cells
per world unit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.raycaster.geometry.plane import Plane, hit_plane
    >>> floor = Plane(normal=ti.math.vec3(0, 1, 0), d=-1.0)
    >>> # Use hit_plane within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.raycaster.core.ray import EPSILON, vec2, vec3
from src.raycaster.geometry.sphere import HitRecord

# Normal component magnitude above which the plane is treated as
# perpendicular to that axis for checker projection
AXIS_ALIGNED_THRESHOLD = 0.99


@ti.dataclass
class Plane:
    """An infinite plane dot(p, normal) = d.

    Attributes:
        normal: Unit normal of the plane (vec3).
        d: Signed offset of the plane along its normal.
    """

    normal: vec3
    d: ti.f32


@ti.func
def hit_plane(
    ray_origin: vec3,
    ray_direction: vec3,
    plane: Plane,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-plane intersection.

    Solves t = (d - dot(origin, normal)) / dot(direction, normal). Rays with
    |dot(direction, normal)| <= EPSILON are parallel and miss.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        plane: The plane to test intersection against.
        t_min: Hits at or before t_min are rejected.
        t_max: Hits at or beyond t_max are rejected.

    Returns:
        A HitRecord whose normal is the plane normal.
    """
    denom = tm.dot(ray_direction, plane.normal)

    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    if ti.abs(denom) > EPSILON:
        t = (plane.d - tm.dot(ray_origin, plane.normal)) / denom
        if t > t_min and t < t_max:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            hit_normal = plane.normal

    return HitRecord(hit=did_hit, t=hit_t, point=hit_point, normal=hit_normal)


@ti.func
def plane_coords(point: vec3, normal: vec3) -> vec2:
    """Project a point onto the plane's dominant 2D coordinate frame."""
    coords = vec2(point.y, point.z)
    if ti.abs(normal.z) > AXIS_ALIGNED_THRESHOLD:
        coords = vec2(point.x, point.y)
    elif ti.abs(normal.y) > AXIS_ALIGNED_THRESHOLD:
        coords = vec2(point.x, point.z)
    return coords


@ti.func
def checker_pattern(coords: vec2, scale: ti.f32) -> ti.i32:
    """Evaluate (floor(u*scale) + floor(v*scale)) mod 2.

    Taichi's integer % follows Python semantics, so negative cells still
    map to 0 or 1.
    """
    cell_u = ti.cast(ti.floor(coords.x * scale), ti.i32)
    cell_v = ti.cast(ti.floor(coords.y * scale), ti.i32)
    return (cell_u + cell_v) % 2


@ti.func
def checker_color(
    point: vec3,
    normal: vec3,
    scale: ti.f32,
    color_a: vec3,
    color_b: vec3,
) -> vec3:
    """Sample the two-color checker pattern at a point on the plane.

    Args:
        point: A point on the plane.
        normal: The plane normal (selects the projection frame).
        scale: Checker cells per world unit.
        color_a: Color of cells where the pattern is 0.
        color_b: Color of cells where the pattern is 1.

    Returns:
        color_a or color_b.
    """
    pattern = checker_pattern(plane_coords(point, normal), scale)
    result = color_a
    if pattern == 1:
        result = color_b
    return result


@ti.func
def make_plane(normal: vec3, d: ti.f32) -> Plane:
    """Create a plane from normal and offset inside a kernel."""
    return Plane(normal=normal, d=d)
