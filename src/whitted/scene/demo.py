"""Demo scene: a reflective floor, ellipsoids, spheres and a tilted mirror.

The scene is lit by one large spherical area light above and behind the
camera, so every object casts a soft shadow when antialiasing is on:

- A large cyan plane tilted to form a reflective floor
- An opaque green ellipsoid on the left
- A semi-transparent orange ellipsoid (alpha 0.8, index 1.52)
- A small rectangular mirror turned toward the camera
- An opaque pink sphere with a strong mirror term
- A fully transparent, squashed yellow-green sphere (index 1.42)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.camera.view import setup_view
    >>> from src.whitted.scene.demo import build_demo_scene
    >>> from src.whitted.scene.manager import SceneManager
    >>>
    >>> scene = SceneManager()
    >>> view = build_demo_scene(scene)
    >>> setup_view(view)
"""

import math

from src.whitted.camera.view import View
from src.whitted.core.transform import Transform
from src.whitted.geometry.dispatch import PrimitiveKind
from src.whitted.materials.phong import PhongMaterial
from src.whitted.scene.manager import SceneManager

# Area light placement
LIGHT_RADIUS = 3.0
LIGHT_CENTER = (0.0, 14.5, -9.5)
LIGHT_COLOR = (0.95, 0.95, 0.95)


def build_demo_scene(scene: SceneManager) -> View:
    """Populate a scene with the demo objects and light.

    The scene is cleared first.

    Args:
        scene: The scene manager to fill.

    Returns:
        The View to render the scene from.
    """
    scene.clear()

    # PhongMaterial(ra, rd, rs, rg, color, alpha, r_index, shininess)

    # Reflective floor
    scene.add_object(
        PrimitiveKind.PLANE,
        PhongMaterial(0.1, 0.75, 0.05, 0.35, (0.55, 0.8, 0.75), 1.0, 1.0, 2.0),
        Transform()
        .scale(16.0, 16.0, 1.0)
        .rotate_z(math.pi / 1.2)
        .rotate_x(math.pi / 2.25)
        .translate(0.0, -3.0, 10.0)
        .invert(),
    )

    # Opaque ellipsoid
    scene.add_object(
        PrimitiveKind.SPHERE,
        PhongMaterial(0.05, 0.95, 0.35, 0.35, (0.5, 1.0, 0.83), 1.0, 1.0, 10.0),
        Transform().scale(0.75, 0.5, 1.5).rotate_y(math.pi / 3.0).translate(-4.0, 1.1, 5.0).invert(),
    )

    # Semi-transparent ellipsoid
    scene.add_object(
        PrimitiveKind.SPHERE,
        PhongMaterial(0.05, 0.95, 0.95, 1.0, (0.8, 0.5, 0.3), 0.8, 1.52, 10.0),
        Transform().scale(0.5, 2.0, 1.0).rotate_z(math.pi / 1.5).translate(-4.5, -2.0, 1.5).invert(),
    )

    # Mirror
    scene.add_object(
        PrimitiveKind.PLANE,
        PhongMaterial(0.05, 0.75, 0.05, 1.0, (1.0, 1.0, 1.0), 1.0, 1.0, 2.0, is_mirror=True),
        Transform()
        .scale(2.2, 1.1, 1.0)
        .rotate_x(-math.pi / 12.0)
        .rotate_y(math.pi / 4.0)
        .translate(2.0, 0.5, 2.8)
        .invert(),
    )

    # Opaque sphere with a strong mirror term
    scene.add_object(
        PrimitiveKind.SPHERE,
        PhongMaterial(0.3, 0.95, 0.95, 1.0, (0.94, 0.5, 0.5), 1.0, 1.52, 10.0),
        Transform().translate(0.5, 1.7, 0.75).invert(),
    )

    # Fully transparent squashed sphere
    scene.add_object(
        PrimitiveKind.SPHERE,
        PhongMaterial(0.1, 0.0, 0.95, 0.5, (0.94, 1.0, 0.5), 0.0, 1.42, 10.0),
        Transform().scale(1.0, 1.0, 0.5).translate(-1.0, -3.0, 0.0).invert(),
    )

    scene.add_light(
        Transform().scale(LIGHT_RADIUS, LIGHT_RADIUS, LIGHT_RADIUS).translate(*LIGHT_CENTER).invert(),
        color=LIGHT_COLOR,
        radius=LIGHT_RADIUS,
    )

    return View()
