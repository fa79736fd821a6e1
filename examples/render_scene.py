#!/usr/bin/env python3
"""Render the demo scene with the Whitted ray tracer.

Builds the demo scene (reflective floor, ellipsoids, spheres, a mirror and
one soft area light), renders it and writes the image. The output format
follows the file suffix: ".ppm" writes a binary PPM, ".png" a PNG.

Usage:
    python -m examples.render_scene [options]

Options:
    --size SIZE         Image width and height in pixels (default: 512)
    --depth DEPTH       Maximum recursion depth (default: 2)
    --antialias         Supersample pixels and soften shadows
    --output OUTPUT     Output file path (default: scene.ppm)
    --seed SEED         Random seed for shadow sampling (default: 1522)
    --quiet             Only log warnings and errors

Example:
    python -m examples.render_scene --size 256 --depth 3 --antialias --output scene.png
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo scene with the Whitted ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--size",
        type=int,
        default=512,
        help="Image width and height in pixels (default: 512)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=2,
        help="Maximum recursion depth (default: 2)",
    )
    parser.add_argument(
        "--antialias",
        action="store_true",
        help="Supersample each pixel on a 3x3 grid and use 10 shadow rays per light",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="scene.ppm",
        help="Output file path (default: scene.ppm)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=1522,
        help="Random seed for shadow sampling (default: 1522)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    return parser.parse_args(argv)


def render_scene(
    size: int = 512,
    max_depth: int = 2,
    antialiasing: bool = False,
    output_path: str = "scene.ppm",
    seed: int = 1522,
) -> Path:
    """Render the demo scene and save it.

    Args:
        size: Image width and height in pixels.
        max_depth: Maximum recursion depth.
        antialiasing: Supersample pixels and soften shadows.
        output_path: Output file path.
        seed: Random seed for shadow sampling.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before any field is created
    from src.whitted.camera.view import setup_view
    from src.whitted.core.renderer import RenderConfig, Renderer
    from src.whitted.scene.demo import build_demo_scene
    from src.whitted.scene.manager import SceneManager

    config = RenderConfig(size=size, max_depth=max_depth, antialiasing=antialiasing, seed=seed)

    scene = SceneManager()
    view = build_demo_scene(scene)
    setup_view(view)
    logger.info(
        "Scene has %d objects and %d lights",
        scene.get_object_count(),
        scene.get_light_count(),
    )

    renderer = Renderer(config)
    renderer.render()
    return renderer.save_image(output_path)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
    except RuntimeError:
        logger.info("GPU backend unavailable, using CPU")
        ti.init(arch=ti.cpu)

    try:
        output_file = render_scene(
            size=args.size,
            max_depth=args.depth,
            antialiasing=args.antialias,
            output_path=args.output,
            seed=args.seed,
        )
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Rendering failed: %s", e)
        return 1

    logger.info("Saved to: %s", output_file.absolute())
    return 0


if __name__ == "__main__":
    sys.exit(main())
