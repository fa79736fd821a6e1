"""Canonical box primitive: the axis-aligned cube [-1, 1]^3.

The box is treated as three pairs of slabs. For each axis the ray is
intersected with the two faces perpendicular to it, and the nearest
positive hit whose point lies within that face is that axis' candidate. The
overall hit is the candidate with the smallest positive t; its axis selects
the face normal and the face's in-plane coordinates give the UV.

Face UV layout:
    z faces (xy plane): u = x/2 + 1/2, v = y/2 + 1/2
    x faces (zy plane): u = z/2 + 1/2, v = y/2 + 1/2
    y faces (zx plane): u = x/2 + 1/2, v = z/2 + 1/2
"""

import taichi as ti
import taichi.math as tm

from src.whitted.geometry.hit import NO_HIT, PARALLEL_EPSILON, HitRecord, orient_normal

vec3 = tm.vec3

# Slight tolerance on face bounds so edges and corners are not lost to rounding
FACE_EPSILON = 1e-5


@ti.func
def _slab_candidate(origin: vec3, direction: vec3, axis: ti.template()) -> ti.f32:
    """Nearest positive hit on the two faces perpendicular to `axis`.

    Args:
        origin: Ray origin in box-local space.
        direction: Ray direction in box-local space.
        axis: Compile-time axis index (0 = x, 1 = y, 2 = z).

    Returns:
        The t of the nearest in-bounds face hit, or NO_HIT.
    """
    best = NO_HIT
    if ti.abs(direction[axis]) > PARALLEL_EPSILON:
        for side in ti.static([-1.0, 1.0]):
            t = (side - origin[axis]) / direction[axis]
            if t > 0.0:
                p = origin + t * direction
                inside = 1
                for k in ti.static(range(3)):
                    if ti.static(k != axis):
                        if ti.abs(p[k]) > 1.0 + FACE_EPSILON:
                            inside = 0
                if inside == 1 and (best < 0.0 or t < best):
                    best = t
    return best


@ti.func
def _face_uv(p: vec3, axis: ti.i32):
    """Surface coordinates on the face perpendicular to `axis`."""
    u = 0.0
    v = 0.0
    if axis == 2:
        u = p.x * 0.5 + 0.5
        v = p.y * 0.5 + 0.5
    elif axis == 0:
        u = p.z * 0.5 + 0.5
        v = p.y * 0.5 + 0.5
    else:
        u = p.x * 0.5 + 0.5
        v = p.z * 0.5 + 0.5
    return tm.clamp(u, 0.0, 1.0), tm.clamp(v, 0.0, 1.0)


@ti.func
def hit_box(origin: vec3, direction: vec3) -> HitRecord:
    """Intersect a local-space ray with the canonical cube.

    A ray starting inside the box hits a face from the inside; that normal
    is flipped to face the ray and the record reports exiting=1.

    Args:
        origin: Ray origin in box-local space.
        direction: Ray direction in box-local space.

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

    best_axis = -1
    for axis in ti.static(range(3)):
        t = _slab_candidate(origin, direction, axis)
        if t > 0.0 and (hit_t < 0.0 or t < hit_t):
            hit_t = t
            best_axis = axis

    if best_axis >= 0:
        did_hit = 1
        hit_point = origin + hit_t * direction
        face_normal = vec3(0.0, tm.sign(hit_point.y), 0.0)
        if best_axis == 0:
            face_normal = vec3(tm.sign(hit_point.x), 0.0, 0.0)
        elif best_axis == 2:
            face_normal = vec3(0.0, 0.0, tm.sign(hit_point.z))
        hit_u, hit_v = _face_uv(hit_point, best_axis)
        hit_normal, is_exiting = orient_normal(face_normal, direction)

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        u=hit_u,
        v=hit_v,
        exiting=is_exiting,
    )
