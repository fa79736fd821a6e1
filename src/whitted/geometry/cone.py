"""Canonical cone primitive: x^2 + z^2 = y^2 for y in [-1, 0].

The apex sits at the origin and the cone opens downward to a unit-radius
rim at y=-1. The surface is open (no cap).
"""

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
def hit_cone(origin: vec3, direction: vec3) -> HitRecord:
    """Intersect a local-space ray with the canonical cone.

    The implicit surface x^2 - y^2 + z^2 = 0 gives

        A = dx^2 - dy^2 + dz^2
        B = 2(ox*dx - oy*dy + oz*dz)
        C = ox^2 - oy^2 + oz^2

    A selected root whose point falls outside y in [-1, 0] is a miss; the
    other root is not tried. The normal is the implicit gradient
    (x, -y, z), normalized.

    Args:
        origin: Ray origin in cone-local space.
        direction: Ray direction in cone-local space.

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

    a = direction.x * direction.x - direction.y * direction.y + direction.z * direction.z
    if ti.abs(a) > PARALLEL_EPSILON:
        b = 2.0 * (origin.x * direction.x - origin.y * direction.y + origin.z * direction.z)
        c = origin.x * origin.x - origin.y * origin.y + origin.z * origin.z
        t = select_root(a, b, c)
        if t > 0.0:
            p = origin + t * direction
            if -1.0 <= p.y <= 0.0:
                did_hit = 1
                hit_t = t
                hit_point = p
                hit_u, hit_v = unroll_uv(p)
                hit_normal, is_exiting = orient_normal(normalize(vec3(p.x, -p.y, p.z)), direction)

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        u=hit_u,
        v=hit_v,
        exiting=is_exiting,
    )
