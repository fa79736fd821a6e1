"""Canonical paraboloid primitive: x^2 + z^2 = -y for y in [-1, 0]."""

import taichi as ti
import taichi.math as tm

from src.whitted.core.ray import normalize
from src.whitted.geometry.hit import (
    NO_HIT,
    PARALLEL_EPSILON,
    HitRecord,
    orient_normal,
    select_root,
    unroll_uv,
)

vec3 = tm.vec3


@ti.func
def hit_paraboloid(origin: vec3, direction: vec3) -> HitRecord:
    """Intersect a local-space ray with the canonical paraboloid.

    Substituting the ray into x^2 + z^2 + y = 0 gives

        A = dx^2 + dz^2
        B = 2(ox*dx + oz*dz) + dy
        C = ox^2 + oz^2 + oy

    A ray parallel to the y axis has A = 0 and is treated as a miss. The
    normal is the gradient (2x, 1, 2z), normalized, and the selected root
    must satisfy y in [-1, 0].

    Args:
        origin: Ray origin in paraboloid-local space.
        direction: Ray direction in paraboloid-local space.

    Returns:
        A HitRecord, or a miss.
    """
    did_hit = 0
    hit_t = NO_HIT
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    hit_u = 0.0
    hit_v = 0.0
    is_exiting = 0

    a = direction.x * direction.x + direction.z * direction.z
    if a > PARALLEL_EPSILON:
        b = 2.0 * (origin.x * direction.x + origin.z * direction.z) + direction.y
        c = origin.x * origin.x + origin.z * origin.z + origin.y
        t = select_root(a, b, c)
        if t > 0.0:
            p = origin + t * direction
            if -1.0 <= p.y <= 0.0:
                did_hit = 1
                hit_t = t
                hit_point = p
                hit_u, hit_v = unroll_uv(p)
                gradient = vec3(2.0 * p.x, 1.0, 2.0 * p.z)
                hit_normal, is_exiting = orient_normal(normalize(gradient), direction)

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        u=hit_u,
        v=hit_v,
        exiting=is_exiting,
    )
