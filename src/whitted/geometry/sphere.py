"""Canonical sphere primitive: the unit sphere centred at the origin.

Intersection solves |o + t*d|^2 = 1, i.e.

    (d.d) t^2 + 2(o.d) t + (o.o - 1) = 0

with the shared root selection policy. On the unit sphere the hit point is
also the outward normal. Surface coordinates come from spherical angles:
longitude via atan2 for u and colatitude via arccos for v.
"""

import taichi as ti
import taichi.math as tm

from src.whitted.geometry.hit import NO_HIT, HitRecord, orient_normal, select_root

vec3 = tm.vec3


@ti.func
def sphere_uv(p: vec3):
    """Spherical surface coordinates of a point on the unit sphere."""
    u = 0.5 + tm.atan2(p.x, p.z) / (2.0 * tm.pi)
    v = 1.0 - tm.acos(tm.clamp(p.y, -1.0, 1.0)) / tm.pi
    return tm.clamp(u, 0.0, 1.0), tm.clamp(v, 0.0, 1.0)


@ti.func
def hit_sphere(origin: vec3, direction: vec3) -> HitRecord:
    """Intersect a local-space ray with the unit sphere.

    A ray starting inside the sphere hits the far side; its normal is then
    flipped to face the ray and the record reports exiting=1.

    Args:
        origin: Ray origin in sphere-local space.
        direction: Ray direction in sphere-local space.

    Returns:
        A HitRecord for the selected root, or a miss.
    """
    did_hit = 0
    hit_t = NO_HIT
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    hit_u = 0.0
    hit_v = 0.0
    is_exiting = 0

    a = tm.dot(direction, direction)
    if a > 0.0:
        b = 2.0 * tm.dot(origin, direction)
        c = tm.dot(origin, origin) - 1.0
        t = select_root(a, b, c)
        if t > 0.0:
            did_hit = 1
            hit_t = t
            hit_point = origin + t * direction
            hit_u, hit_v = sphere_uv(hit_point)
            hit_normal, is_exiting = orient_normal(hit_point, direction)

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        u=hit_u,
        v=hit_v,
        exiting=is_exiting,
    )
