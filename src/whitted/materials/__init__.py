"""Materials module for surface appearance.

Components:
    phong: Phong material description and its Taichi field registry
    texture: Image textures decoded with Pillow and sampled bilinearly

A surface colour is either the material's base colour or, when the
material references a texture, a bilinear texture sample at the hit's
surface coordinates.
"""

from .phong import (
    MAX_MATERIALS,
    PhongMaterial,
    SurfaceMaterial,
    add_phong_material,
    clear_phong_materials,
    get_phong_material_count,
    load_material,
)
from .texture import (
    MAX_TEXELS,
    MAX_TEXTURES,
    Texture,
    add_texture,
    clear_textures,
    get_texture_count,
    load_image,
    sample_texture,
)

__all__ = [
    "PhongMaterial",
    "SurfaceMaterial",
    "add_phong_material",
    "clear_phong_materials",
    "get_phong_material_count",
    "load_material",
    "MAX_MATERIALS",
    "Texture",
    "load_image",
    "add_texture",
    "clear_textures",
    "get_texture_count",
    "sample_texture",
    "MAX_TEXTURES",
    "MAX_TEXELS",
]
