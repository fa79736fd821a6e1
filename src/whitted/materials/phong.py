"""Phong material registry.

Every object in the scene carries one Phong material made of:

    ra, rd, rs, rg   ambient, diffuse, specular and global (reflection)
                     albedos; they are independent weights and are not
                     expected to sum to 1
    color            base RGB surface colour in [0, 1]
    alpha            opacity; values below 1 enable refraction
    r_index          refractive index of the material
    shininess        Phong specular exponent
    is_mirror        skip local shading, contribute only via reflection
    is_light_source  marks emitter geometry; serialized but not shaded
    double_sided     light the surface from both sides
    texture_id       optional texture replacing the base colour (-1: none)

Materials are stored in Structure-of-Arrays Taichi fields and read inside
kernels through load_material().

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.materials.phong import PhongMaterial, add_phong_material
    >>> mat_id = add_phong_material(PhongMaterial(ra=0.1, rd=0.75, rs=0.05, rg=0.35,
    ...                                           color=(0.55, 0.8, 0.75)))
"""

from dataclasses import asdict, dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

from .texture import get_texture_count

vec3 = tm.vec3
vec4 = tm.vec4

# Maximum number of materials
MAX_MATERIALS = 256


@dataclass
class PhongMaterial:
    """Authoring-side description of a Phong material.

    Attributes:
        ra: Ambient albedo.
        rd: Diffuse albedo.
        rs: Specular albedo.
        rg: Global (mirror reflection) albedo.
        color: Base RGB colour, each component in [0, 1].
        alpha: Opacity in [0, 1]; 1 is fully opaque.
        r_index: Refractive index (must be positive).
        shininess: Specular exponent (non-negative).
        is_mirror: Skip local Phong shading entirely.
        is_light_source: The object represents emitter geometry. Kept with
            the scene description only; it does not change shading.
        double_sided: Light the surface regardless of which side faces the light.
        texture_id: Registered texture id, or -1 for the base colour.
    """

    ra: float = 0.1
    rd: float = 0.7
    rs: float = 0.2
    rg: float = 0.0
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    alpha: float = 1.0
    r_index: float = 1.0
    shininess: float = 10.0
    is_mirror: bool = False
    is_light_source: bool = False
    double_sided: bool = False
    texture_id: int = -1

    def __post_init__(self) -> None:
        """Validate material parameters.

        Raises:
            ValueError: If any parameter lies outside its valid range.
        """
        for name in ("ra", "rd", "rs", "rg"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"Albedo {name} = {getattr(self, name)} must be non-negative")
        if len(self.color) != 3:
            raise ValueError(f"Colour must have 3 components, got {len(self.color)}")
        for i, c in enumerate(self.color):
            if not 0.0 <= c <= 1.0:
                raise ValueError(f"Colour component {i} = {c} is outside [0, 1]")
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"Opacity alpha = {self.alpha} is outside [0, 1]")
        if self.r_index <= 0.0:
            raise ValueError(f"Refractive index = {self.r_index} must be positive")
        if self.shininess < 0.0:
            raise ValueError(f"Shininess = {self.shininess} must be non-negative")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        data = asdict(self)
        data["color"] = list(self.color)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PhongMaterial":
        """Create a material from a dictionary produced by to_dict()."""
        params = dict(data)
        if "color" in params:
            params["color"] = tuple(params["color"])
        return cls(**params)


@ti.dataclass
class SurfaceMaterial:
    """Kernel-side view of one material (see PhongMaterial for fields)."""

    albedos: vec4
    color: vec3
    alpha: ti.f32
    r_index: ti.f32
    shininess: ti.f32
    is_mirror: ti.i32
    double_sided: ti.i32
    texture_id: ti.i32


# Material storage: Structure of Arrays layout
# albedos packs (ra, rd, rs, rg)
material_albedos = ti.Vector.field(4, dtype=ti.f32, shape=MAX_MATERIALS)
material_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_alphas = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_r_indices = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_shininess = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_is_mirror = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_double_sided = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_texture_ids = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_phong_materials = ti.field(dtype=ti.i32, shape=())


def clear_phong_materials() -> None:
    """Clear all registered materials."""
    num_phong_materials[None] = 0


def add_phong_material(material: PhongMaterial) -> int:
    """Register a material and return its id.

    Args:
        material: The validated material description.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If texture_id does not name a registered texture.
    """
    if material.texture_id != -1 and not 0 <= material.texture_id < get_texture_count():
        raise ValueError(
            f"Texture id {material.texture_id} is not registered "
            f"({get_texture_count()} textures loaded)"
        )

    idx = num_phong_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_albedos[idx] = [material.ra, material.rd, material.rs, material.rg]
    material_colors[idx] = list(material.color)
    material_alphas[idx] = material.alpha
    material_r_indices[idx] = material.r_index
    material_shininess[idx] = material.shininess
    material_is_mirror[idx] = int(material.is_mirror)
    material_double_sided[idx] = int(material.double_sided)
    material_texture_ids[idx] = material.texture_id
    num_phong_materials[None] = idx + 1
    return idx


def get_phong_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_phong_materials[None])


@ti.func
def load_material(material_id: ti.i32) -> SurfaceMaterial:
    """Gather a material's fields for use inside a kernel.

    Args:
        material_id: Index returned by add_phong_material().

    Returns:
        The SurfaceMaterial for that id.
    """
    return SurfaceMaterial(
        albedos=material_albedos[material_id],
        color=material_colors[material_id],
        alpha=material_alphas[material_id],
        r_index=material_r_indices[material_id],
        shininess=material_shininess[material_id],
        is_mirror=material_is_mirror[material_id],
        double_sided=material_double_sided[material_id],
        texture_id=material_texture_ids[material_id],
    )
