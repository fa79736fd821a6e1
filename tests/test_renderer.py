"""Tests for the render configuration, renderer and image buffer.

Tests cover:
- RenderConfig validation and serialization
- Error handling before the view or render target exists
- Image orientation (row 0 at the top, column 0 on the left)
- Determinism of seeded renders
- Saving rendered images
"""

import numpy as np
import pytest
from PIL import Image as PILImage


def _sphere_scene(center=(0.0, 0.0, 5.0)):
    """One matte sphere lit from the camera, viewed down +z from the origin."""
    from src.whitted.camera.view import View, setup_view
    from src.whitted.core.transform import Transform
    from src.whitted.geometry.dispatch import PrimitiveKind
    from src.whitted.materials.phong import PhongMaterial
    from src.whitted.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_object(
        PrimitiveKind.SPHERE,
        PhongMaterial(ra=0.1, rd=0.5, rs=0.2),
        Transform().translate(*center).invert(),
    )
    scene.add_light(position=(0.0, 0.0, 0.0), radius=0.5)
    setup_view(View(eye=(0.0, 0.0, 0.0), gaze=(0.0, 0.0, 1.0), up=(0.0, 1.0, 0.0)))
    return scene


class TestRenderConfig:
    """Tests for RenderConfig."""

    def test_defaults(self):
        """Test the default configuration."""
        from src.whitted.core.renderer import RenderConfig

        config = RenderConfig()
        assert config.size == 512
        assert config.max_depth == 2
        assert config.antialiasing is False
        assert config.seed == 1522

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"size": 0},
            {"size": 4096},
            {"max_depth": -1},
            {"max_depth": 9},
            {"seed": -1},
            {"seed": 2**31},
        ],
    )
    def test_invalid(self, kwargs):
        """Test out-of-range sizes, depths and seeds raise ValueError."""
        from src.whitted.core.renderer import RenderConfig

        with pytest.raises(ValueError):
            RenderConfig(**kwargs)

    def test_largest_seed(self):
        """Test the largest i32 seed is accepted."""
        from src.whitted.core.integrator import MAX_SEED
        from src.whitted.core.renderer import RenderConfig

        assert RenderConfig(seed=MAX_SEED).seed == 2**31 - 1

    def test_dict_round_trip(self):
        """Test to_dict/from_dict preserve the configuration."""
        from src.whitted.core.renderer import RenderConfig

        config = RenderConfig(size=64, max_depth=5, antialiasing=True, seed=7)
        assert RenderConfig.from_dict(config.to_dict()) == config


class TestRenderTarget:
    """Tests for the module-level render target."""

    def test_image_before_setup(self):
        """Test reading the image before setup raises RuntimeError."""
        from src.whitted.core.integrator import get_image_numpy

        with pytest.raises(RuntimeError, match="setup_render_target"):
            get_image_numpy()

    @pytest.mark.parametrize("size", [0, 4096])
    def test_bad_size(self, size):
        """Test sizes outside [1, MAX_IMAGE_SIZE] are rejected."""
        from src.whitted.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(size)

    def test_bad_depth(self):
        """Test render_image rejects max_depth above the limit."""
        from src.whitted.core.integrator import render_image, setup_render_target

        setup_render_target(4)
        with pytest.raises(ValueError, match="max_depth"):
            render_image(max_depth=9)

    @pytest.mark.parametrize("seed", [-1, 2**31])
    def test_bad_seed(self, seed):
        """Test seeds that do not fit an i32 are rejected before any kernel runs."""
        from src.whitted.core.integrator import render_image, render_pixel, setup_render_target, trace_single_ray

        setup_render_target(4)
        with pytest.raises(ValueError, match="seed"):
            render_image(seed=seed)
        with pytest.raises(ValueError, match="seed"):
            render_pixel(0, 0, seed=seed)
        with pytest.raises(ValueError, match="seed"):
            trace_single_ray((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), seed=seed)


class TestRenderer:
    """Tests for Renderer."""

    def test_render_without_view(self):
        """Test render() before setup_view raises RuntimeError."""
        from src.whitted.core.renderer import RenderConfig, Renderer

        renderer = Renderer(RenderConfig(size=4))
        with pytest.raises(RuntimeError, match="setup_view"):
            renderer.render()
        assert not renderer.has_image

    def test_centre_pixel(self):
        """Test the centre pixel sees the sphere head on."""
        from src.whitted.core.renderer import RenderConfig, Renderer

        _sphere_scene()
        renderer = Renderer(RenderConfig(size=9, max_depth=0))
        elapsed = renderer.render()
        image = renderer.get_image_numpy()

        assert elapsed >= 0.0
        assert renderer.has_image
        assert image.shape == (9, 9, 3)
        assert image.dtype == np.float32
        # 0.1 ambient + 0.5 diffuse + 0.2 specular
        assert np.allclose(image[4, 4], 0.8, atol=1e-3)
        # Corners look past the sphere at nothing
        assert np.allclose(image[0, 0], 0.0)
        assert np.allclose(image[8, 8], 0.0)

    def test_rows_run_top_down(self):
        """Test an object above the gaze lands in the upper rows."""
        from src.whitted.core.renderer import RenderConfig, Renderer

        _sphere_scene(center=(0.0, 2.0, 5.0))
        renderer = Renderer(RenderConfig(size=9, max_depth=0))
        renderer.render()
        image = renderer.get_image_numpy()
        assert image[:4].sum() > 0.0
        assert image[5:].sum() == 0.0

    def test_columns_run_left_to_right(self):
        """Test an object to the right of the gaze lands in the right columns."""
        from src.whitted.core.renderer import RenderConfig, Renderer

        _sphere_scene(center=(2.0, 0.0, 5.0))
        renderer = Renderer(RenderConfig(size=9, max_depth=0))
        renderer.render()
        image = renderer.get_image_numpy()
        assert image[:, 5:].sum() > 0.0
        assert image[:, :4].sum() == 0.0

    def test_render_pixel_matches_image(self):
        """Test render_pixel(i, j) equals image row j, column i."""
        from src.whitted.core.integrator import render_pixel
        from src.whitted.core.renderer import RenderConfig, Renderer

        _sphere_scene(center=(0.5, 0.5, 5.0))
        renderer = Renderer(RenderConfig(size=9, max_depth=1))
        renderer.render()
        image = renderer.get_image_numpy()

        for i, j in [(4, 4), (5, 3), (3, 5), (0, 0)]:
            color = render_pixel(i, j, max_depth=1)
            assert np.allclose(color, image[j, i], atol=1e-5)

    def test_seeded_renders_are_deterministic(self):
        """Test equal seeds give identical antialiased images."""
        from src.whitted.core.renderer import RenderConfig, Renderer

        _sphere_scene()
        renderer = Renderer(RenderConfig(size=9, max_depth=1, antialiasing=True, seed=3))
        renderer.render()
        first = renderer.get_image_numpy().copy()
        renderer.render()
        second = renderer.get_image_numpy()
        assert np.array_equal(first, second)
        assert np.all((second >= 0.0) & (second <= 1.0))

    def test_config_setter_resizes(self):
        """Test replacing the config resizes the image and drops the old one."""
        from src.whitted.core.renderer import RenderConfig, Renderer

        _sphere_scene()
        renderer = Renderer(RenderConfig(size=9, max_depth=0))
        renderer.render()
        renderer.config = RenderConfig(size=4, max_depth=0)
        assert not renderer.has_image
        assert renderer.get_image_numpy().shape == (4, 4, 3)

    def test_uint8_and_save(self, tmp_path):
        """Test the quantized image and the file written from it agree."""
        from src.whitted.core.renderer import RenderConfig, Renderer

        _sphere_scene()
        renderer = Renderer(RenderConfig(size=9, max_depth=0))
        renderer.render()

        pixels = renderer.get_image_uint8()
        assert pixels.shape == (9, 9, 3)
        assert pixels.dtype == np.uint8

        for name in ("scene.png", "scene.ppm"):
            path = renderer.save_image(tmp_path / name)
            with PILImage.open(path) as loaded:
                assert np.array_equal(np.asarray(loaded), pixels)

    def test_repr(self):
        """Test the repr names the configuration."""
        from src.whitted.core.renderer import RenderConfig, Renderer

        renderer = Renderer(RenderConfig(size=8, max_depth=3))
        assert "size=8" in repr(renderer)
        assert "max_depth=3" in repr(renderer)


class TestCommandLine:
    """Tests for the render_scene example script."""

    def test_render_scene_writes_file(self, tmp_path):
        """Test the demo scene renders and saves at a tiny size."""
        from examples.render_scene import render_scene

        output = render_scene(size=8, max_depth=1, output_path=str(tmp_path / "demo.ppm"))
        assert output.exists()
        with PILImage.open(output) as loaded:
            assert loaded.size == (8, 8)

    def test_parse_args(self):
        """Test command-line options map to render parameters."""
        from examples.render_scene import parse_args

        args = parse_args(["--size", "64", "--depth", "4", "--antialias", "--output", "x.png"])
        assert args.size == 64
        assert args.depth == 4
        assert args.antialias is True
        assert args.output == "x.png"
        assert args.seed == 1522
