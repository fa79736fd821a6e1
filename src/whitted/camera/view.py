"""Camera view and primary ray generation.

The view is described by an eye point, a gaze direction and an up vector,
plus an image-plane window at focal distance f in camera space. From these
the camera builds an orthonormal basis:

- w = normalize(-gaze): points backward, away from what the camera sees
- u = normalize(w x up): points right
- v = u x w: points up

The camera-to-world matrix has columns (u, v, w, e) and the world-to-camera
matrix has rows (u, v, w) with translation (-u.e, -v.e, -w.e).

Pixel (i, j) of an sx-by-sx image sits at camera-space position
(left + i*du, top + j*dv, f) with du = size/(sx-1) and dv = -du, since
image rows grow downward while camera y grows upward. The primary ray
starts at the camera origin, passes through that position and is mapped to
world space by the camera-to-world matrix.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.camera.view import View, setup_view
    >>> view = View(eye=(0.0, 0.0, -6.0), gaze=(0.0, -0.1, 1.0), up=(0.0, 1.0, 0.0))
    >>> matrices = setup_view(view)
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import numpy.typing as npt
import taichi as ti

from src.whitted.core.ray import Ray, transform_point, transform_vector, vec3
from src.whitted.core.transform import format_matrix

logger = logging.getLogger(__name__)

# Supersampling grid is (2c+1) x (2c+1) with this c
SUPERSAMPLE_RADIUS = 1
SUPERSAMPLE_GRID = 2 * SUPERSAMPLE_RADIUS + 1

# =============================================================================
# View Data Structures
# =============================================================================


@dataclass
class View:
    """Configuration of the camera and its image-plane window.

    Attributes:
        eye: Camera position in world space.
        gaze: Viewing direction (need not be unit length).
        up: Approximate up direction; must not be parallel to gaze.
        focal_length: Camera-space z of the image plane. Negative values
            put the plane in front of the camera, along -w.
        left: Camera-space x of the window's left edge.
        top: Camera-space y of the window's top edge.
        size: Width (and height) of the square window.
    """

    eye: tuple[float, float, float] = (0.0, 0.0, -6.0)
    gaze: tuple[float, float, float] = (0.0, -0.1, 1.0)
    up: tuple[float, float, float] = (0.0, 1.0, 0.0)
    focal_length: float = -2.0
    left: float = -2.0
    top: float = 2.0
    size: float = 4.0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        data = asdict(self)
        for key in ("eye", "gaze", "up"):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "View":
        """Create a view from a dictionary produced by to_dict()."""
        params = dict(data)
        for key in ("eye", "gaze", "up"):
            if key in params:
                params[key] = tuple(params[key])
        return cls(**params)


@dataclass
class ViewMatrices:
    """Derived camera basis and matrices.

    Attributes:
        u: Right vector.
        v: Up vector.
        w: Backward vector.
        camera_to_world: 4x4 matrix with columns (u, v, w, eye).
        world_to_camera: 4x4 inverse of camera_to_world.
    """

    u: npt.NDArray[np.float64]
    v: npt.NDArray[np.float64]
    w: npt.NDArray[np.float64]
    camera_to_world: npt.NDArray[np.float64]
    world_to_camera: npt.NDArray[np.float64]


def compute_view_matrices(view: View) -> ViewMatrices:
    """Build the camera basis and camera/world matrices.

    Args:
        view: The view configuration.

    Returns:
        The derived ViewMatrices.

    Raises:
        ValueError: If gaze is zero or parallel to up.
    """
    eye = np.array(view.eye, dtype=np.float64)
    gaze = np.array(view.gaze, dtype=np.float64)
    up = np.array(view.up, dtype=np.float64)

    gaze_len = np.linalg.norm(gaze)
    if gaze_len == 0.0:
        raise ValueError("Gaze vector must be non-zero")
    w = -gaze / gaze_len

    u = np.cross(w, up)
    u_len = np.linalg.norm(u)
    if u_len < 1e-12:
        raise ValueError("Up vector must not be parallel to the gaze direction")
    u = u / u_len

    v = np.cross(u, w)

    c2w = np.eye(4, dtype=np.float64)
    c2w[:3, 0] = u
    c2w[:3, 1] = v
    c2w[:3, 2] = w
    c2w[:3, 3] = eye

    w2c = np.eye(4, dtype=np.float64)
    w2c[0, :3] = u
    w2c[1, :3] = v
    w2c[2, :3] = w
    w2c[:3, 3] = (-np.dot(u, eye), -np.dot(v, eye), -np.dot(w, eye))

    return ViewMatrices(u=u, v=v, w=w, camera_to_world=c2w, world_to_camera=w2c)


def gaussian_weights(radius: int = SUPERSAMPLE_RADIUS) -> npt.NDArray[np.float32]:
    """Normalized 2D Gaussian weights over a (2r+1) x (2r+1) subsample grid.

    Each weight is (1/2pi) exp(-(x^2 + y^2)/2) at integer offsets (x, y)
    from the centre, scaled so that the weights sum to 1. Supersampling
    therefore never changes overall brightness relative to one sample.

    Args:
        radius: Half-width c of the grid.

    Returns:
        Array of shape (2r+1, 2r+1) indexed [x + r, y + r].
    """
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    xx, yy = np.meshgrid(offsets, offsets, indexing="ij")
    weights = np.exp(-(xx * xx + yy * yy) / 2.0) / (2.0 * math.pi)
    return (weights / weights.sum()).astype(np.float32)


# =============================================================================
# Taichi Fields for View State
# =============================================================================

_camera_to_world = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
# (left, top, size, focal_length)
_view_window = ti.Vector.field(4, dtype=ti.f32, shape=())
_supersample_weights = ti.field(dtype=ti.f32, shape=(SUPERSAMPLE_GRID, SUPERSAMPLE_GRID))
_view_initialized = ti.field(dtype=ti.i32, shape=())


def setup_view(view: View) -> ViewMatrices:
    """Compute the view matrices and upload them for rendering.

    Must be called before rendering.

    Args:
        view: The view configuration.

    Returns:
        The derived ViewMatrices.

    Raises:
        ValueError: If the view is degenerate or the window size is not positive.
    """
    if view.size <= 0.0:
        raise ValueError(f"Image-plane window size = {view.size} must be positive")

    matrices = compute_view_matrices(view)
    logger.debug("Camera-to-world matrix:\n%s", format_matrix(matrices.camera_to_world))
    logger.debug("World-to-camera matrix:\n%s", format_matrix(matrices.world_to_camera))

    _camera_to_world[None] = matrices.camera_to_world.astype(np.float32).tolist()
    _view_window[None] = [view.left, view.top, view.size, view.focal_length]
    _supersample_weights.from_numpy(gaussian_weights(SUPERSAMPLE_RADIUS))
    _view_initialized[None] = 1
    return matrices


def is_view_initialized() -> bool:
    """Check whether setup_view() has been called."""
    return bool(_view_initialized[None])


def reset_view() -> None:
    """Mark the view as not configured."""
    _view_initialized[None] = 0


def get_view_info() -> dict[str, Any]:
    """Get the uploaded view state for debugging.

    Returns:
        Dictionary with the camera-to-world matrix as nested lists and the
        window parameters.
    """
    c2w = _camera_to_world[None].to_numpy()
    window = _view_window[None]
    return {
        "camera_to_world": c2w.tolist(),
        "left": float(window[0]),
        "top": float(window[1]),
        "size": float(window[2]),
        "focal_length": float(window[3]),
    }


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def pixel_position(pixel_i: ti.f32, pixel_j: ti.f32, image_size: ti.i32) -> vec3:
    """Camera-space position of a (possibly fractional) pixel coordinate.

    Args:
        pixel_i: Column coordinate; 0 is the left edge of the window.
        pixel_j: Row coordinate; 0 is the top edge of the window.
        image_size: Number of pixels along each side of the image.

    Returns:
        The point (left + i*du, top + j*dv, f) on the image plane.
    """
    window = _view_window[None]
    du = window[2] / ti.cast(ti.max(image_size - 1, 1), ti.f32)
    dv = -du
    return vec3(window[0] + pixel_i * du, window[1] + pixel_j * dv, window[3])


@ti.func
def primary_ray(position: vec3) -> Ray:
    """World-space ray from the camera origin through a camera-space point."""
    c2w = _camera_to_world[None]
    origin = transform_point(c2w, vec3(0.0, 0.0, 0.0))
    direction = transform_vector(c2w, position)
    return Ray(origin=origin, direction=direction)


@ti.func
def supersample_weight(sx: ti.i32, sy: ti.i32) -> ti.f32:
    """Normalized Gaussian weight of subsample (sx, sy) in the grid."""
    return _supersample_weights[sx, sy]
