"""Geometry module for closed-form ray-primitive intersection.

This module provides the scene's geometric primitives:

Components:
    sphere: Sphere primitive and the shared HitRecord
    box: Axis-aligned box with slab-method intersection and face normals
    plane: Infinite plane with a procedural checker pattern

All intersection routines are Taichi functions (@ti.func) and share one
contract:
    record = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)
where record.hit is 1 for the smallest t in (t_min, t_max) and record.normal
is unit length.
"""

from .box import Box, box_face_normal, box_slab_interval, hit_box, make_box
from .plane import (
    AXIS_ALIGNED_THRESHOLD,
    Plane,
    checker_color,
    checker_pattern,
    hit_plane,
    make_plane,
    plane_coords,
)
from .sphere import HitRecord, Sphere, hit_sphere, make_sphere

__all__ = [
    "HitRecord",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "Box",
    "hit_box",
    "make_box",
    "box_slab_interval",
    "box_face_normal",
    "Plane",
    "hit_plane",
    "make_plane",
    "plane_coords",
    "checker_pattern",
    "checker_color",
    "AXIS_ALIGNED_THRESHOLD",
]
