"""Counter-based random numbers for reproducible Monte Carlo sampling.

Soft shadows need random light samples, but a render must produce the same
image for the same seed regardless of how pixels are scheduled across
threads or how many renders ran before it. Instead of Taichi's stateful
ti.random(), every random stream here is derived by hashing the render seed
with the identifiers of the primary ray being traced (pixel column, row and
subsample). The hash is the PCG output permutation.

Streams are threaded explicitly: each draw returns the advanced state along
with the value, so a caller owns its own stream and no state is shared.

Example:
    >>> # Within a Taichi kernel:
    >>> # state = seed_stream(seed, i, j, 0)
    >>> # state, xi = next_float(state)
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# 2^-24: maps the top 24 bits of a hash to [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def hash_u32(value: ti.u32) -> ti.u32:
    """PCG output permutation hash of a 32-bit unsigned integer."""
    state = value * ti.u32(747796405) + ti.u32(2891336453)
    shift = (state >> ti.u32(28)) + ti.u32(4)
    word = ((state >> shift) ^ state) * ti.u32(277803737)
    return (word >> ti.u32(22)) ^ word


@ti.func
def seed_stream(seed: ti.i32, a: ti.i32, b: ti.i32, c: ti.i32) -> ti.u32:
    """Derive an independent stream state from a seed and three identifiers.

    The identifiers are folded in one at a time (hash(x ^ hash(...))), so
    streams for neighbouring pixels or samples are decorrelated.
    """
    h = hash_u32(ti.cast(seed, ti.u32))
    h = hash_u32(ti.cast(a, ti.u32) ^ h)
    h = hash_u32(ti.cast(b, ti.u32) ^ h)
    h = hash_u32(ti.cast(c, ti.u32) ^ h)
    return h


@ti.func
def next_float(state: ti.u32):
    """Advance a stream and draw a float in [0, 1).

    Returns:
        A tuple (new_state, value).
    """
    new_state = hash_u32(state)
    value = ti.cast(new_state >> ti.u32(8), ti.f32) * _INV_2_24
    return new_state, value


@ti.func
def sample_sphere_offset(state: ti.u32, radius: ti.f32):
    """Draw an offset inside a sphere of the given radius.

    Two angles are drawn uniformly in [0, 2pi) and the distance is the radius
    scaled by a uniform fraction, which concentrates samples toward the
    centre of the light.

    Returns:
        A tuple (new_state, offset).
    """
    state, r1 = next_float(state)
    state, r2 = next_float(state)
    state, r3 = next_float(state)
    theta = 2.0 * tm.pi * r1
    phi = 2.0 * tm.pi * r2
    rho = radius * r3
    rxy = rho * ti.sin(theta)
    offset = vec3(rxy * ti.cos(phi), rxy * ti.sin(phi), rho * ti.cos(theta))
    return state, offset
