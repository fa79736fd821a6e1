"""Scene manager coordinating materials, placed objects and lights.

The traversal module stores raw matrices and ids in Taichi fields; this
module is the authoring layer on top of it. Objects are described as a
canonical primitive kind, a Phong material and a Transform, and lights as a
transform (or position), a colour and an emission radius. The manager
keeps a Python-side record of everything it registers so a scene can be
exported to and rebuilt from a plain dictionary.

Example:
    >>> import math
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.core.transform import Transform
    >>> from src.whitted.geometry.dispatch import PrimitiveKind
    >>> from src.whitted.materials.phong import PhongMaterial
    >>> from src.whitted.scene.manager import SceneManager
    >>>
    >>> scene = SceneManager()
    >>> glass = scene.add_material(PhongMaterial(alpha=0.8, r_index=1.52))
    >>> scene.add_object(PrimitiveKind.SPHERE, glass, Transform().translate(0.5, 1.7, 0.75).invert())
    >>> scene.add_light(position=(0.0, 14.5, -9.5), color=(0.95, 0.95, 0.95), radius=3.0)
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.whitted.core.transform import Transform, point
from src.whitted.geometry.dispatch import DOUBLE_SIDED_BY_DEFAULT, PrimitiveKind
from src.whitted.materials.phong import (
    MAX_MATERIALS,
    PhongMaterial,
    add_phong_material,
    clear_phong_materials,
)
from src.whitted.materials.texture import add_texture, clear_textures, load_image
from src.whitted.scene.traversal import (
    MAX_LIGHTS,
    MAX_OBJECTS,
    add_light,
    add_object,
    clear_scene,
    get_light_count,
    get_object_count,
)

logger = logging.getLogger(__name__)


@dataclass
class ObjectInfo:
    """Information about an object in the scene.

    Attributes:
        object_index: The index in the object storage arrays.
        kind: The canonical primitive shape.
        material_id: The material assigned to the object.
        transform: The object's model transform (already inverted).
    """

    object_index: int
    kind: PrimitiveKind
    material_id: int
    transform: Transform


@dataclass
class LightInfo:
    """Information about a light in the scene.

    Attributes:
        light_index: The index in the light storage arrays.
        position: World-space centre.
        color: RGB colour.
        radius: Emission radius.
    """

    light_index: int
    position: tuple[float, float, float]
    color: tuple[float, float, float]
    radius: float


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations (PhongMaterial.to_dict()).
        objects: List of object configurations.
        lights: List of light configurations.
        textures: Image file paths, indexed by texture id.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    objects: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)
    textures: list[str] = field(default_factory=list)


class SceneManager:
    """Builds scenes of transformed primitives with Phong materials.

    Attributes:
        materials: Registered materials, indexed by material id.
        objects: ObjectInfo for every object in insertion order.
        lights: LightInfo for every light in insertion order.
        textures: Source file of every texture, indexed by texture id.

    Example:
        >>> scene = SceneManager()
        >>> floor = scene.add_material(PhongMaterial(rd=0.75, rg=0.35, color=(0.55, 0.8, 0.75)))
        >>> scene.add_object(PrimitiveKind.PLANE, floor, Transform().scale(16, 16, 1).invert())
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[PhongMaterial] = []
        self.objects: list[ObjectInfo] = []
        self.lights: list[LightInfo] = []
        self.textures: list[str] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_phong_materials()
        clear_textures()
        self.materials.clear()
        self.objects.clear()
        self.lights.clear()
        self.textures.clear()

    def clear(self) -> None:
        """Clear the entire scene (objects, lights, materials and textures)."""
        self._clear_all()

    # =========================================================================
    # Materials and Textures
    # =========================================================================

    def add_material(self, material: PhongMaterial) -> int:
        """Register a Phong material.

        Args:
            material: The material description.

        Returns:
            The material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If the material references an unregistered texture.
        """
        material_id = add_phong_material(material)
        self.materials.append(material)
        return material_id

    def add_texture_from_file(self, filepath: str | Path) -> int:
        """Load an image file and register it as a texture.

        Args:
            filepath: Path of any image Pillow can read.

        Returns:
            The texture ID to put in PhongMaterial.texture_id.

        Raises:
            ValueError: If the image cannot be read.
            RuntimeError: If texture capacity is exhausted.
        """
        texture_id = add_texture(load_image(filepath))
        self.textures.append(str(filepath))
        return texture_id

    def get_material_count(self) -> int:
        """Get the number of registered materials."""
        return len(self.materials)

    # =========================================================================
    # Objects
    # =========================================================================

    def add_object(
        self,
        kind: PrimitiveKind,
        material: int | PhongMaterial,
        transform: Transform | None = None,
    ) -> int:
        """Place a canonical primitive in the scene.

        When a PhongMaterial is given it is registered first. Its
        double_sided flag is switched on for open surfaces (planes, cones,
        paraboloids) unless the material already enables it.

        Args:
            kind: The canonical primitive shape.
            material: A registered material ID or a new material.
            transform: The model transform, already inverted; None places
                the canonical primitive as is.

        Returns:
            The object index.

        Raises:
            ValueError: If the transform was modified after its last
                invert(), or the material ID is unknown.
            RuntimeError: If the maximum number of objects is exceeded.
        """
        if transform is None:
            transform = Transform()
        if transform.is_stale:
            raise ValueError("Transform has been modified since invert(); call invert() first")

        kind = PrimitiveKind(kind)
        if isinstance(material, PhongMaterial):
            if DOUBLE_SIDED_BY_DEFAULT[kind] and not material.double_sided:
                material = dataclasses.replace(material, double_sided=True)
            material_id = self.add_material(material)
        else:
            material_id = int(material)
            if not 0 <= material_id < len(self.materials):
                raise ValueError(f"Unknown material ID: {material_id}")

        idx = add_object(kind, transform.matrix, transform.inverse, material_id)
        self.objects.append(
            ObjectInfo(
                object_index=idx,
                kind=kind,
                material_id=material_id,
                transform=transform.copy(),
            )
        )
        return idx

    def get_object_count(self) -> int:
        """Get the number of objects in the scene."""
        return get_object_count()

    # =========================================================================
    # Lights
    # =========================================================================

    def add_light(
        self,
        transform: Transform | None = None,
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
        radius: float = 0.0,
        *,
        position: tuple[float, float, float] | None = None,
    ) -> int:
        """Add a spherical area light.

        The light's centre is its transform applied to the origin, or the
        explicit position when one is given.

        Args:
            transform: Placement of the light; must not be stale.
            color: RGB light colour.
            radius: Emission radius; 0 gives hard shadows.
            position: World-space centre, used instead of a transform.

        Returns:
            The light index.

        Raises:
            ValueError: If neither or both of transform and position are
                given, the transform is stale, or the radius is negative.
            RuntimeError: If the maximum number of lights is exceeded.
        """
        if (transform is None) == (position is None):
            raise ValueError("Exactly one of transform or position must be given")

        if transform is not None:
            if transform.is_stale:
                raise ValueError("Transform has been modified since invert(); call invert() first")
            center = transform.apply_to_point(point(0.0, 0.0, 0.0))
        else:
            center = position

        world_pos = (float(center[0]), float(center[1]), float(center[2]))
        rgb = (float(color[0]), float(color[1]), float(color[2]))
        idx = add_light(world_pos, rgb, radius)
        self.lights.append(LightInfo(light_index=idx, position=world_pos, color=rgb, radius=radius))
        return idx

    def get_light_count(self) -> int:
        """Get the number of lights in the scene."""
        return get_light_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Textures are stored by file path, so the files must still exist when
        the configuration is loaded back.

        Returns:
            A SceneConfig containing all materials, objects and lights.
        """
        config = SceneConfig()
        config.textures = list(self.textures)

        for mat in self.materials:
            config.materials.append(mat.to_dict())

        for obj in self.objects:
            config.objects.append(
                {
                    "kind": obj.kind.name.lower(),
                    "material_id": obj.material_id,
                    "transform": obj.transform.to_dict(),
                }
            )

        for light in self.lights:
            config.lights.append(
                {
                    "position": list(light.position),
                    "color": list(light.color),
                    "radius": light.radius,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene, reloads the texture files and then adds
        materials, objects and lights in order.

        Args:
            config: The scene configuration to load.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        for texture_path in config.textures:
            self.add_texture_from_file(texture_path)

        for mat_config in config.materials:
            self.add_material(PhongMaterial.from_dict(mat_config))

        for obj_config in config.objects:
            kind_name = str(obj_config.get("kind", "")).upper()
            if kind_name not in PrimitiveKind.__members__:
                raise ValueError(f"Unknown primitive kind: {obj_config.get('kind')!r}")
            transform = Transform.from_dict(obj_config.get("transform", []))
            self.add_object(PrimitiveKind[kind_name], obj_config.get("material_id", 0), transform)

        for light_config in config.lights:
            position_list = light_config.get("position", [0.0, 0.0, 0.0])
            color_list = light_config.get("color", [1.0, 1.0, 1.0])
            self.add_light(
                color=(color_list[0], color_list[1], color_list[2]),
                radius=light_config.get("radius", 0.0),
                position=(position_list[0], position_list[1], position_list[2]),
            )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "objects": config.objects,
            "lights": config.lights,
            "textures": config.textures,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'materials', 'objects', 'lights' and optional
                'textures' keys.
        """
        config = SceneConfig(
            materials=data.get("materials", []),
            objects=data.get("objects", []),
            lights=data.get("lights", []),
            textures=data.get("textures", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_objects() -> int:
        """Get the maximum number of objects supported."""
        return MAX_OBJECTS

    @staticmethod
    def get_max_lights() -> int:
        """Get the maximum number of lights supported."""
        return MAX_LIGHTS

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
