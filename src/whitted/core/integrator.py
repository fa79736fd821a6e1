"""Whitted ray tree evaluation and the image rendering kernel.

A Whitted render traces one primary ray per pixel (or a 3x3 grid of
subsamples with antialiasing). At every hit the shading engine computes
the local colour and up to two child rays, reflection and refraction, and
the colour of each child is added to its parent scaled by a per-channel
weight. The tree is cut off at a maximum depth.

Taichi functions cannot recurse, so trace_ray() walks the tree depth-first
with an explicit per-thread stack of at most MAX_RECURSION_DEPTH + 1
frames. Each frame moves through three phases:

    0  spawn the reflection child (if any)
    1  spawn the refraction child (if any)
    2  clamp the frame's colour and fold it into its parent

Children are always evaluated with an empty accumulator and only the
root starts from the caller's accumulator, matching the recursive
definition colour(ray) = clamp(local + wr*colour(reflect) + wt*colour(refract)).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.core.integrator import render_image, setup_render_target
    >>> from src.whitted.camera.view import View, setup_view
    >>> setup_view(View())
    >>> setup_render_target(256)
    >>> render_image(max_depth=2, antialiasing=False, seed=1522)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.whitted.camera.view import (
    SUPERSAMPLE_GRID,
    SUPERSAMPLE_RADIUS,
    pixel_position,
    primary_ray,
    supersample_weight,
)
from src.whitted.core.ray import Ray, clamp_color
from src.whitted.core.sampling import seed_stream
from src.whitted.core.shading import (
    RAY_EPSILON,
    SHADOW_SAMPLES_ANTIALIASED,
    SHADOW_SAMPLES_DEFAULT,
    shade_node,
)
from src.whitted.scene.traversal import NO_SOURCE

vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Deepest ray tree a render may request
MAX_RECURSION_DEPTH = 8

# One stack frame per tree level, root included
STACK_SIZE = MAX_RECURSION_DEPTH + 1

# Seeds are passed to kernels as i32
MAX_SEED = 2**31 - 1

# Stack frame phases
_PHASE_REFLECT = 0
_PHASE_REFRACT = 1
_PHASE_RETURN = 2


# =============================================================================
# Ray Tree Evaluation
# =============================================================================


@ti.func
def trace_ray(
    ray: Ray,
    depth: ti.i32,
    max_depth: ti.i32,
    accumulator: vec3,
    num_samples: ti.i32,
    rng_state: ti.u32,
) -> vec3:
    """Colour seen along a ray, including reflected and refracted light.

    Args:
        ray: The world-space ray (primary rays exclude no object).
        depth: Depth of this ray in the tree; primary rays use 0.
        max_depth: Maximum recursion depth, at most MAX_RECURSION_DEPTH.
        accumulator: Colour the root's local stage adds to.
        num_samples: Shadow rays per light.
        rng_state: Random stream state for shadow sampling.

    Returns:
        The clamped colour. If depth exceeds max_depth the accumulator is
        returned unchanged; if the ray misses everything the result is the
        clamped accumulator.
    """
    result = accumulator

    if depth <= max_depth:
        colors = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
        points = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
        reflect_dirs = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
        refract_dirs = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
        reflect_weights = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
        refract_weights = ti.Matrix.zero(ti.f32, STACK_SIZE, 3)
        object_ids = ti.Vector.zero(ti.i32, STACK_SIZE)
        phases = ti.Vector.zero(ti.i32, STACK_SIZE)
        spawn_reflects = ti.Vector.zero(ti.i32, STACK_SIZE)
        spawn_refracts = ti.Vector.zero(ti.i32, STACK_SIZE)

        stream = rng_state
        sp = 0
        pending = 1
        next_ray = ray
        next_source = NO_SOURCE
        next_base = accumulator

        while sp >= 0:
            if pending == 1:
                node = shade_node(next_ray, next_source, depth + sp, max_depth, next_base, num_samples, stream)
                stream = node.rng_state
                for c in ti.static(range(3)):
                    colors[sp, c] = node.color[c]
                    points[sp, c] = node.point[c]
                    reflect_dirs[sp, c] = node.reflect_dir[c]
                    refract_dirs[sp, c] = node.refract_dir[c]
                    reflect_weights[sp, c] = node.reflect_weight[c]
                    refract_weights[sp, c] = node.refract_weight[c]
                object_ids[sp] = node.object_id
                spawn_reflects[sp] = node.spawn_reflect
                spawn_refracts[sp] = node.spawn_refract
                phases[sp] = _PHASE_REFLECT
                pending = 0

            elif phases[sp] == _PHASE_REFLECT:
                phases[sp] = _PHASE_REFRACT
                if spawn_reflects[sp] == 1:
                    origin = vec3(points[sp, 0], points[sp, 1], points[sp, 2])
                    direction = vec3(reflect_dirs[sp, 0], reflect_dirs[sp, 1], reflect_dirs[sp, 2])
                    next_ray = Ray(origin=origin, direction=direction)
                    # Reflection rays start on the surface; skip it
                    next_source = object_ids[sp]
                    next_base = vec3(0.0, 0.0, 0.0)
                    sp += 1
                    pending = 1

            elif phases[sp] == _PHASE_REFRACT:
                phases[sp] = _PHASE_RETURN
                if spawn_refracts[sp] == 1:
                    direction = vec3(refract_dirs[sp, 0], refract_dirs[sp, 1], refract_dirs[sp, 2])
                    origin = vec3(points[sp, 0], points[sp, 1], points[sp, 2]) + RAY_EPSILON * direction
                    # Refraction rays must be able to hit the far side of their own object
                    next_ray = Ray(origin=origin, direction=direction)
                    next_source = NO_SOURCE
                    next_base = vec3(0.0, 0.0, 0.0)
                    sp += 1
                    pending = 1

            else:
                child = clamp_color(vec3(colors[sp, 0], colors[sp, 1], colors[sp, 2]))
                if sp == 0:
                    result = child
                else:
                    parent = sp - 1
                    # The parent's phase says which child just finished
                    if phases[parent] == _PHASE_REFRACT:
                        for c in ti.static(range(3)):
                            colors[parent, c] += reflect_weights[parent, c] * child[c]
                    else:
                        for c in ti.static(range(3)):
                            colors[parent, c] += refract_weights[parent, c] * child[c]
                sp -= 1

    return result


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Largest supported image side (buffers are preallocated to avoid recompilation)
MAX_IMAGE_SIZE = 2048

# Active image side length
_image_size = ti.field(dtype=ti.i32, shape=())

# Final pixel colours, indexed [column, row] with row 0 at the top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_SIZE, MAX_IMAGE_SIZE))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(size: int) -> None:
    """Initialize a square render target and clear it.

    Args:
        size: Image width and height in pixels.

    Raises:
        ValueError: If size is not in [1, MAX_IMAGE_SIZE].
    """
    if size < 1 or size > MAX_IMAGE_SIZE:
        raise ValueError(f"Image size {size} must be between 1 and {MAX_IMAGE_SIZE}")

    _image_size[None] = size
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the color buffer to black."""
    _color_buffer.fill(0.0)


def reset_render_target() -> None:
    """Mark the render target as not configured."""
    _render_target_initialized[None] = 0


def get_image_size() -> int:
    """Get the active image side length in pixels."""
    return int(_image_size[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.func
def render_pixel_impl(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    size: ti.i32,
    max_depth: ti.i32,
    antialiasing: ti.i32,
    seed: ti.i32,
) -> vec3:
    """Colour of one pixel.

    Without antialiasing a single ray passes through the pixel position.
    With antialiasing a 3x3 grid of rays spaced half a pixel apart is
    traced, and the results are combined with normalized Gaussian weights.

    Args:
        pixel_i: Column (0 = left).
        pixel_j: Row (0 = top).
        size: Image side length in pixels.
        max_depth: Maximum recursion depth.
        antialiasing: 1 to supersample and use soft-shadow sampling.
        seed: Render seed.

    Returns:
        The pixel colour, clamped to [0, 1].
    """
    num_subsamples = 1
    num_samples = SHADOW_SAMPLES_DEFAULT
    if antialiasing == 1:
        num_subsamples = SUPERSAMPLE_GRID * SUPERSAMPLE_GRID
        num_samples = SHADOW_SAMPLES_ANTIALIASED

    color = vec3(0.0, 0.0, 0.0)
    for s in range(num_subsamples):
        offset_i = 0.0
        offset_j = 0.0
        weight = 1.0
        if antialiasing == 1:
            sx = s // SUPERSAMPLE_GRID
            sy = s % SUPERSAMPLE_GRID
            offset_i = ti.cast(sx - SUPERSAMPLE_RADIUS, ti.f32) / (2.0 * SUPERSAMPLE_RADIUS)
            offset_j = ti.cast(sy - SUPERSAMPLE_RADIUS, ti.f32) / (2.0 * SUPERSAMPLE_RADIUS)
            weight = supersample_weight(sx, sy)

        position = pixel_position(
            ti.cast(pixel_i, ti.f32) + offset_i, ti.cast(pixel_j, ti.f32) + offset_j, size
        )
        ray = primary_ray(position)
        stream = seed_stream(seed, pixel_i, pixel_j, s)
        color += weight * trace_ray(ray, 0, max_depth, vec3(0.0, 0.0, 0.0), num_samples, stream)

    return clamp_color(color)


@ti.kernel
def _render_kernel(size: ti.i32, max_depth: ti.i32, antialiasing: ti.i32, seed: ti.i32):
    """Render every pixel of the active image into the color buffer."""
    for i, j in ti.ndrange(size, size):
        _color_buffer[i, j] = render_pixel_impl(i, j, size, max_depth, antialiasing, seed)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32, pixel_j: ti.i32, size: ti.i32, max_depth: ti.i32, antialiasing: ti.i32, seed: ti.i32
) -> vec3:
    return render_pixel_impl(pixel_i, pixel_j, size, max_depth, antialiasing, seed)


@ti.kernel
def _trace_single_ray(
    origin: vec3, direction: vec3, depth: ti.i32, max_depth: ti.i32, accumulator: vec3, num_samples: ti.i32, seed: ti.i32
) -> vec3:
    ray = Ray(origin=origin, direction=direction)
    return trace_ray(ray, depth, max_depth, accumulator, num_samples, seed_stream(seed, 0, 0, 0))


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_depth(max_depth: int) -> None:
    if max_depth < 0 or max_depth > MAX_RECURSION_DEPTH:
        raise ValueError(f"max_depth = {max_depth} must be between 0 and {MAX_RECURSION_DEPTH}")


def _check_seed(seed: int) -> None:
    if not 0 <= seed <= MAX_SEED:
        raise ValueError(f"seed = {seed} must be between 0 and {MAX_SEED}")


def render_image(max_depth: int = 2, antialiasing: bool = False, seed: int = 1522) -> None:
    """Render the whole image into the render target.

    Every pixel is overwritten, so earlier renders leave no trace.

    Args:
        max_depth: Maximum recursion depth.
        antialiasing: Supersample pixels and soften shadows.
        seed: Render seed; equal seeds give identical images.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If max_depth or seed is out of range.
    """
    _check_render_target_initialized()
    _check_depth(max_depth)
    _check_seed(seed)
    _render_kernel(get_image_size(), max_depth, int(antialiasing), seed)


def render_pixel(
    pixel_i: int, pixel_j: int, max_depth: int = 2, antialiasing: bool = False, seed: int = 1522
) -> tuple[float, float, float]:
    """Render one pixel without touching the color buffer.

    Args:
        pixel_i: Column (0 = left).
        pixel_j: Row (0 = top).
        max_depth: Maximum recursion depth.
        antialiasing: Supersample the pixel and soften shadows.
        seed: Render seed.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If max_depth or seed is out of range.
    """
    _check_render_target_initialized()
    _check_depth(max_depth)
    _check_seed(seed)
    color = _render_single_pixel(pixel_i, pixel_j, get_image_size(), max_depth, int(antialiasing), seed)
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_single_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = 0,
    max_depth: int = 2,
    accumulator: tuple[float, float, float] = (0.0, 0.0, 0.0),
    num_samples: int = SHADOW_SAMPLES_DEFAULT,
    seed: int = 1522,
) -> tuple[float, float, float]:
    """Trace one world-space ray through the current scene.

    Args:
        origin: Ray origin.
        direction: Ray direction (need not be unit length).
        depth: Depth assigned to the ray; if it exceeds max_depth the
            accumulator comes back unchanged.
        max_depth: Maximum recursion depth.
        accumulator: Colour the local stage adds to.
        num_samples: Shadow rays per light.
        seed: Seed of the random stream.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        ValueError: If max_depth or seed is out of range, or depth is negative.
    """
    _check_depth(max_depth)
    _check_seed(seed)
    if depth < 0:
        raise ValueError(f"depth = {depth} must be non-negative")
    color = _trace_single_ray(
        vec3(*origin), vec3(*direction), depth, max_depth, vec3(*accumulator), num_samples, seed
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Returns:
        Float32 array of shape (size, size, 3), row 0 at the top, values
        clamped to [0, 1].

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()

    size = get_image_size()
    image = _color_buffer.to_numpy()[:size, :size, :]

    # (column, row, 3) -> (row, column, 3); rows are already top-down
    image = np.transpose(image, (1, 0, 2))
    return np.clip(image, 0.0, 1.0).astype(np.float32)
