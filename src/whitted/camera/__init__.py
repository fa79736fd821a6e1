"""Camera module for view setup and primary ray generation.

Components:
    view: Eye/gaze/up view model, camera<->world matrices, image-plane
        pixel positions and Gaussian supersampling weights

Pixel coordinates address the image-plane window:
    i in [0, size-1]: left to right
    j in [0, size-1]: top to bottom
"""

from .view import (
    SUPERSAMPLE_GRID,
    SUPERSAMPLE_RADIUS,
    View,
    ViewMatrices,
    compute_view_matrices,
    gaussian_weights,
    get_view_info,
    is_view_initialized,
    pixel_position,
    primary_ray,
    reset_view,
    setup_view,
    supersample_weight,
)

__all__ = [
    "View",
    "ViewMatrices",
    "compute_view_matrices",
    "gaussian_weights",
    "setup_view",
    "reset_view",
    "is_view_initialized",
    "get_view_info",
    "pixel_position",
    "primary_ray",
    "supersample_weight",
    "SUPERSAMPLE_RADIUS",
    "SUPERSAMPLE_GRID",
]
