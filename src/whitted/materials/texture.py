"""Image textures: loading, registration and bilinear sampling.

Textures are decoded with Pillow into row-major float RGB arrays in [0, 1]
and copied into one shared texel pool, so textures of different sizes can
be addressed from a kernel by id. Each texture records its offset into the
pool together with its width and height.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.materials.texture import add_texture, load_image
    >>> tex_id = add_texture(load_image("checker.ppm"))
    >>> # Within a Taichi kernel:
    >>> # color = sample_texture(tex_id, u, v)
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Maximum number of textures and total texels across all of them
MAX_TEXTURES = 32
MAX_TEXELS = 1 << 20


@dataclass
class Texture:
    """A decoded RGB image.

    Attributes:
        width: Number of columns.
        height: Number of rows.
        data: Float32 array of shape (height, width, 3) with values in [0, 1].
    """

    width: int
    height: int
    data: npt.NDArray[np.float32]

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Texture size must be positive, got {self.width}x{self.height}")
        if self.data.shape != (self.height, self.width, 3):
            raise ValueError(
                f"Texture data shape {self.data.shape} does not match "
                f"({self.height}, {self.width}, 3)"
            )


def load_image(path: "str | Path") -> Texture:
    """Decode an image file into a Texture.

    Any format Pillow reads is accepted (PPM, PNG, JPEG, ...). The image is
    converted to 8-bit RGB and normalized to [0, 1].

    Args:
        path: Path of the image file.

    Returns:
        The decoded texture.

    Raises:
        ValueError: If the file is missing, unreadable or not an image.
    """
    try:
        with PILImage.open(path) as img:
            rgb = np.asarray(img.convert("RGB"), dtype=np.float32) / 255.0
    except OSError as exc:
        raise ValueError(f"Unable to read texture image {str(path)!r}: {exc}") from exc

    height, width = rgb.shape[:2]
    logger.debug("Loaded texture %s (%dx%d)", path, width, height)
    return Texture(width=width, height=height, data=np.ascontiguousarray(rgb))


# Texture storage: one flat texel pool plus per-texture metadata
texel_pool = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXELS)
texture_offsets = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_widths = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_heights = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
num_textures = ti.field(dtype=ti.i32, shape=())
num_texels = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _upload_texels(offset: ti.i32, count: ti.i32, texels: ti.types.ndarray(dtype=ti.f32, ndim=2)):
    for k in range(count):
        texel_pool[offset + k] = vec3(texels[k, 0], texels[k, 1], texels[k, 2])


def clear_textures() -> None:
    """Remove all registered textures."""
    num_textures[None] = 0
    num_texels[None] = 0


def add_texture(texture: Texture) -> int:
    """Copy a texture into the texel pool.

    Args:
        texture: The decoded texture.

    Returns:
        The texture id to store in a material.

    Raises:
        RuntimeError: If the texture or texel capacity is exhausted.
    """
    idx = num_textures[None]
    if idx >= MAX_TEXTURES:
        raise RuntimeError(f"Maximum number of textures ({MAX_TEXTURES}) exceeded")

    offset = num_texels[None]
    count = texture.width * texture.height
    if offset + count > MAX_TEXELS:
        raise RuntimeError(
            f"Texture of {count} texels does not fit in the texel pool "
            f"({MAX_TEXELS - offset} of {MAX_TEXELS} free)"
        )

    flat = np.ascontiguousarray(texture.data.reshape(count, 3), dtype=np.float32)
    _upload_texels(offset, count, flat)

    texture_offsets[idx] = offset
    texture_widths[idx] = texture.width
    texture_heights[idx] = texture.height
    num_texels[None] = offset + count
    num_textures[None] = idx + 1
    return idx


def get_texture_count() -> int:
    """Get the number of registered textures."""
    return int(num_textures[None])


@ti.func
def _texel(texture_id: ti.i32, i: ti.i32, j: ti.i32) -> vec3:
    """Texel at column i, row j of a registered texture."""
    return texel_pool[texture_offsets[texture_id] + j * texture_widths[texture_id] + i]


@ti.func
def sample_texture(texture_id: ti.i32, u: ti.f32, v: ti.f32) -> vec3:
    """Bilinearly interpolate a texture at surface coordinates (u, v).

    u runs along a row and v down the rows; both are clamped to [0, 1].
    Neighbour lookups past the last column or row reuse the edge texel.

    Args:
        texture_id: Id returned by add_texture().
        u: Horizontal coordinate in [0, 1].
        v: Vertical coordinate in [0, 1].

    Returns:
        The interpolated RGB colour.
    """
    width = texture_widths[texture_id]
    height = texture_heights[texture_id]

    x = tm.clamp(u, 0.0, 1.0) * ti.cast(width - 1, ti.f32)
    y = tm.clamp(v, 0.0, 1.0) * ti.cast(height - 1, ti.f32)
    i0 = ti.min(ti.cast(ti.floor(x), ti.i32), width - 1)
    j0 = ti.min(ti.cast(ti.floor(y), ti.i32), height - 1)
    i1 = ti.min(i0 + 1, width - 1)
    j1 = ti.min(j0 + 1, height - 1)
    fx = x - ti.cast(i0, ti.f32)
    fy = y - ti.cast(j0, ti.f32)

    top = (1.0 - fx) * _texel(texture_id, i0, j0) + fx * _texel(texture_id, i1, j0)
    bottom = (1.0 - fx) * _texel(texture_id, i0, j1) + fx * _texel(texture_id, i1, j1)
    return (1.0 - fy) * top + fy * bottom
