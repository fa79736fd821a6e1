"""Scene storage, traversal and authoring.

Modules:
    traversal: Object and light fields, closest-hit queries.
    manager: SceneManager for building and serializing scenes.
    demo: The built-in demo scene.
"""

from .manager import LightInfo, ObjectInfo, SceneConfig, SceneManager
from .traversal import (
    MAX_LIGHTS,
    MAX_OBJECTS,
    NO_SOURCE,
    SceneHit,
    add_light,
    add_object,
    clear_scene,
    find_first_hit,
    get_light_count,
    get_object_count,
)

__all__ = [
    "LightInfo",
    "MAX_LIGHTS",
    "MAX_OBJECTS",
    "NO_SOURCE",
    "ObjectInfo",
    "SceneConfig",
    "SceneHit",
    "SceneManager",
    "add_light",
    "add_object",
    "clear_scene",
    "find_first_hit",
    "get_light_count",
    "get_object_count",
]
