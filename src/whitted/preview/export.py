"""Image export for rendered frames.

Rendered colours are linear values in [0, 1]. They are written without tone
mapping or gamma correction: each channel is clamped and scaled by 255 with
truncation, the same quantization the classic PPM writer used.

The output format follows the file suffix, so ".ppm" produces a binary
PPM (P6) and ".png" a PNG.

Example:
    >>> from src.whitted.core.renderer import Renderer
    >>> from src.whitted.preview.export import write_image
    >>>
    >>> renderer = Renderer()
    >>> renderer.render()
    >>> write_image(renderer.get_image_numpy(), "scene.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Quantize a float RGB image to 8 bits.

    Args:
        image: Array of shape (H, W, 3) with nominal values in [0, 1].

    Returns:
        Array of the same shape with dtype uint8.
    """
    clamped = np.clip(np.asarray(image, dtype=np.float32), 0.0, 1.0)
    return (clamped * 255.0).astype(np.uint8)


def write_image(image: npt.NDArray, filepath: str | Path) -> Path:
    """Write an RGB image to disk.

    Float arrays are quantized with image_to_uint8(); uint8 arrays are
    written as is.

    Args:
        image: Array of shape (H, W, 3), float in [0, 1] or uint8.
        filepath: Output path; the suffix selects the format.

    Returns:
        The path written.

    Raises:
        ValueError: If the array is not an (H, W, 3) image or the suffix
            names no format Pillow can write.
    """
    buffer = np.asarray(image)
    if buffer.ndim != 3 or buffer.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {buffer.shape}")

    if buffer.dtype != np.uint8:
        buffer = image_to_uint8(buffer)

    path = Path(filepath)
    pil_image = PILImage.fromarray(np.ascontiguousarray(buffer))
    pil_image.save(path)
    logger.info("Wrote %dx%d image to %s", buffer.shape[1], buffer.shape[0], path)
    return path
