"""Local-space hit record and helpers shared by the canonical primitives.

Every primitive intersection routine works in the primitive's own
unit-scale local space and returns a HitRecord. The record carries the
orientation of the hit (whether the ray was leaving the solid) so that no
per-object state is written during intersection; this keeps intersection
free of side effects under parallel and nested tracing.
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Sentinel ray parameter reported for misses
NO_HIT = -1.0

# Threshold below which a denominator is treated as zero
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection in local space.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The ray parameter of the hit, or NO_HIT on a miss. Because the
            local ray is an affine image of the world ray, the same t is
            valid in world space.
        point: The local-space hit point. Only valid if hit == 1.
        normal: The local-space unit normal, oriented against the ray.
            Only valid if hit == 1.
        u: First surface coordinate in [0, 1]. Only valid if hit == 1.
        v: Second surface coordinate in [0, 1]. Only valid if hit == 1.
        exiting: 1 if the ray was travelling out of the solid (the natural
            normal pointed along the ray and was flipped), 0 otherwise.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    u: ti.f32
    v: ti.f32
    exiting: ti.i32


@ti.func
def make_miss() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=NO_HIT,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        u=0.0,
        v=0.0,
        exiting=0,
    )


@ti.func
def select_root(a: ti.f32, b: ti.f32, c: ti.f32) -> ti.f32:
    """Pick the ray parameter of a quadratic surface hit.

    Solves a*t^2 + b*t + c = 0. With a negative discriminant there is no
    hit. A zero discriminant gives the single tangent root. Otherwise the
    smaller root is used if it lies in front of the origin, else the larger
    one, so an origin inside the surface still finds its exit point. The
    caller applies bounds checks afterwards and does not retry the other
    root.

    Args:
        a: Quadratic coefficient (must be non-zero).
        b: Linear coefficient.
        c: Constant term.

    Returns:
        The selected t, or NO_HIT when no root lies in front of the origin.
    """
    result = NO_HIT
    discriminant = b * b - 4.0 * a * c
    if discriminant == 0.0:
        result = -b / (2.0 * a)
    elif discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0 = (-b - sqrt_d) / (2.0 * a)
        t1 = (-b + sqrt_d) / (2.0 * a)
        # a may be negative (cone), which reverses the root order
        if t0 > t1:
            temp = t0
            t0 = t1
            t1 = temp
        if t0 > 0.0:
            result = t0
        else:
            result = t1
    if result <= 0.0:
        result = NO_HIT
    return result


@ti.func
def orient_normal(normal: vec3, direction: vec3):
    """Flip a normal to oppose the ray direction.

    Returns:
        A tuple (oriented_normal, exiting) where exiting is 1 when the
        normal had to be flipped.
    """
    oriented = normal
    exiting = 0
    if tm.dot(normal, direction) > 0.0:
        oriented = -normal
        exiting = 1
    return oriented, exiting


@ti.func
def unroll_uv(p: vec3):
    """Cylindrical unrolling used by the cone and the paraboloid.

    The angle around the y axis becomes u and the height within [-1, 0]
    becomes v.
    """
    u = 0.5 + tm.atan2(p.x, p.z) / (2.0 * tm.pi)
    v = 1.0 + p.y
    return tm.clamp(u, 0.0, 1.0), tm.clamp(v, 0.0, 1.0)
