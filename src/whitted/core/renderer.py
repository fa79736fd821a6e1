"""Rendering façade and render configuration.

RenderConfig gathers the per-render parameters (image size, recursion depth,
antialiasing and seed). Renderer owns the render target for that size,
runs the rendering kernel over the current scene and view, and hands the
result back as a NumPy array or writes it to disk.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.core.renderer import RenderConfig, Renderer
    >>> from src.whitted.scene.demo import build_demo_scene
    >>> from src.whitted.scene.manager import SceneManager
    >>> from src.whitted.camera.view import setup_view
    >>>
    >>> setup_view(build_demo_scene(SceneManager()))
    >>> renderer = Renderer(RenderConfig(size=256, max_depth=2))
    >>> renderer.render()
    >>> renderer.save_image("scene.png")
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from src.whitted.camera.view import is_view_initialized
from src.whitted.core.integrator import (
    MAX_IMAGE_SIZE,
    MAX_RECURSION_DEPTH,
    MAX_SEED,
    get_image_numpy,
    render_image,
    setup_render_target,
)
from src.whitted.preview.export import image_to_uint8, write_image

logger = logging.getLogger(__name__)


@dataclass
class RenderConfig:
    """Parameters of one render.

    Attributes:
        size: Width and height of the square image in pixels.
        max_depth: Maximum depth of the reflection/refraction tree; 0 means
            local shading only.
        antialiasing: Trace a 3x3 grid per pixel and 10 shadow rays per light.
        seed: Seed of the random streams used for soft shadows, in
            [0, MAX_SEED].
    """

    size: int = 512
    max_depth: int = 2
    antialiasing: bool = False
    seed: int = 1522

    def __post_init__(self) -> None:
        """Validate render parameters.

        Raises:
            ValueError: If size, max_depth or seed is out of range.
        """
        if not 1 <= self.size <= MAX_IMAGE_SIZE:
            raise ValueError(f"Image size {self.size} must be between 1 and {MAX_IMAGE_SIZE}")
        if not 0 <= self.max_depth <= MAX_RECURSION_DEPTH:
            raise ValueError(
                f"max_depth = {self.max_depth} must be between 0 and {MAX_RECURSION_DEPTH}"
            )
        if not 0 <= self.seed <= MAX_SEED:
            raise ValueError(f"seed = {self.seed} must be between 0 and {MAX_SEED}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderConfig:
        """Create a config from a dictionary produced by to_dict()."""
        return cls(**data)


class Renderer:
    """Renders the current scene through the current view.

    The renderer delegates to the global render target and scene fields, so
    the scene and view must be set up before render() is called.

    Attributes:
        config: The active RenderConfig.
    """

    def __init__(self, config: RenderConfig | None = None) -> None:
        """Initialize the renderer and its render target.

        Args:
            config: Render parameters; defaults to RenderConfig().
        """
        self._config = config if config is not None else RenderConfig()
        self._rendered = False
        setup_render_target(self._config.size)

    @property
    def config(self) -> RenderConfig:
        """Get the render configuration."""
        return self._config

    @config.setter
    def config(self, config: RenderConfig) -> None:
        """Replace the configuration, resizing the render target."""
        self._config = config
        self._rendered = False
        setup_render_target(config.size)

    @property
    def has_image(self) -> bool:
        """Whether render() has produced an image for the current config."""
        return self._rendered

    def render(self) -> float:
        """Render the image.

        Returns:
            Wall-clock render time in seconds.

        Raises:
            RuntimeError: If no view has been set up.
        """
        if not is_view_initialized():
            raise RuntimeError("View not set up. Call setup_view() before rendering.")

        cfg = self._config
        logger.info(
            "Rendering %dx%d image, max depth %d, antialiasing %s",
            cfg.size,
            cfg.size,
            cfg.max_depth,
            "on" if cfg.antialiasing else "off",
        )
        start = time.perf_counter()
        render_image(cfg.max_depth, cfg.antialiasing, cfg.seed)
        elapsed = time.perf_counter() - start
        logger.info("Render finished in %.2f s", elapsed)

        self._rendered = True
        return elapsed

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the rendered image as floats.

        Returns:
            Array of shape (size, size, 3), row 0 at the top, in [0, 1].
        """
        return get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the rendered image quantized to 8 bits per channel."""
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str | Path) -> Path:
        """Write the rendered image; the suffix selects the format.

        Args:
            filepath: Output path, e.g. "scene.png" or "scene.ppm".

        Returns:
            The path written.
        """
        return write_image(self.get_image_uint8(), filepath)

    def __repr__(self) -> str:
        cfg = self._config
        return (
            f"Renderer(size={cfg.size}, max_depth={cfg.max_depth}, "
            f"antialiasing={cfg.antialiasing}, seed={cfg.seed})"
        )
