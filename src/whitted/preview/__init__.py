"""Image output for rendered frames.

Modules:
    export: Quantization and Pillow-based image writing.
"""

from .export import image_to_uint8, write_image

__all__ = [
    "image_to_uint8",
    "write_image",
]
