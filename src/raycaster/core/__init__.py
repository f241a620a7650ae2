"""Core rendering module.

This module contains the fundamental building blocks of the ray caster:

Components:
    ray: Ray data structure and the shared EPSILON
    compositor: Bounded see-through compositing and the render kernels
    renderer: FrameRenderer wrapper for host frame loops

The compositor follows each camera ray straight through the scene for a
fixed number of surface interactions, accumulating color weighted by the
remaining transmittance, and ends on the checkered backdrop or the
background color.
"""

from .ray import (
    EPSILON,
    PARALLEL_EPSILON,
    T_MAX,
    Ray,
    make_ray,
    ray_at,
    vec2,
    vec3,
)

# Note: compositor and renderer are NOT imported here to avoid circular imports.
# Import directly from src.raycaster.core.compositor or src.raycaster.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec2",
    "vec3",
    "EPSILON",
    "PARALLEL_EPSILON",
    "T_MAX",
]
