"""Canonical plane primitive: the unit square at z=0.

The plane occupies x, y in [-1, 1] of its local z=0 plane with constant
normal (0, 0, -1). It is a two-sided surface with no interior, so its normal
is never flipped and a hit never reports exiting; shading handles the back
side through the material's double-sided flag.

Example:
    >>> # Within a Taichi kernel:
    >>> # rec = hit_plane(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0))
    >>> # rec.t == 5.0, rec.normal == (0, 0, -1)
"""

import taichi as ti
import taichi.math as tm

from src.whitted.geometry.hit import NO_HIT, PARALLEL_EPSILON, HitRecord

vec3 = tm.vec3


@ti.func
def hit_plane(origin: vec3, direction: vec3) -> HitRecord:
    """Intersect a local-space ray with the canonical unit square.

    Args:
        origin: Ray origin in plane-local space.
        direction: Ray direction in plane-local space.

    Returns:
        A HitRecord; a ray parallel to the plane, a hit behind the origin,
        or a hit outside the square is a miss.
    """
    did_hit = 0
    hit_t = NO_HIT
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_u = 0.0
    hit_v = 0.0

    if ti.abs(direction.z) > PARALLEL_EPSILON:
        t = -origin.z / direction.z
        if t > 0.0:
            p = origin + t * direction
            if ti.abs(p.x) <= 1.0 and ti.abs(p.y) <= 1.0:
                did_hit = 1
                hit_t = t
                hit_point = vec3(p.x, p.y, 0.0)
                hit_u = (p.x + 1.0) * 0.5
                hit_v = (p.y + 1.0) * 0.5

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=vec3(0.0, 0.0, -1.0),
        u=hit_u,
        v=hit_v,
        exiting=0,
    )
