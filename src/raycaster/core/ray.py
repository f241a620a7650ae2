"""Ray data structure and shared tolerances for the analytic ray caster.

This module provides the Ray dataclass and the numeric tolerances used by
the camera, the primitive intersection tests and the compositor. The
functions are Taichi functions and are meant to be called from within
kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 5.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 4.0)  # (0, 0, 1)
"""

import taichi as ti
import taichi.math as tm

# Type aliases for vectors using Taichi's math module
vec2 = tm.vec2
vec3 = tm.vec3

# Distance tolerance shared by every intersection test. Hits at t <= EPSILON
# are rejected (self-intersection), and ray/plane denominators with
# magnitude <= EPSILON are treated as parallel.
EPSILON = 1e-3

# Direction components below this magnitude are treated as exactly zero by
# the slab test (the reciprocal would overflow).
PARALLEL_EPSILON = 1e-8

# Stand-in for infinity in f32 kernels
T_MAX = 1e30


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Camera rays are
            unit length; the intersection tests accept any non-zero length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point ray.origin + t * ray.direction."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)
