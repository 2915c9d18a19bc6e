"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Initialization from RenderSettings
- Batched rendering, callbacks and the generator interface
- Reset and resize
- Reproducibility of seeded renders
- Image output
"""

import numpy as np
import pytest


@pytest.fixture
def small_scene():
    """A ground sphere and a diffuse sphere in front of a 2:1 camera."""
    from src.raytrace.camera.camera import Camera, setup_camera
    from src.raytrace.scene.manager import Scene

    scene = Scene()
    ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
    center = scene.add_lambertian_material((0.1, 0.2, 0.5))
    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    setup_camera(Camera(aspect_ratio=2.0))
    return scene


def _settings(**kwargs):
    from src.raytrace.core.config import RenderSettings

    params = {"width": 16, "height": 8, "samples_per_pixel": 4, "max_depth": 5, "seed": 11}
    params.update(kwargs)
    return RenderSettings(**params)


class TestProgressiveRendererInit:
    """Tests for ProgressiveRenderer initialization."""

    def test_init_sets_up_render_target(self):
        """Test the render target matches the settings and starts empty."""
        from src.raytrace.core.integrator import get_image_dimensions
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings())
        assert (renderer.width, renderer.height) == (16, 8)
        assert get_image_dimensions() == (16, 8)
        assert renderer.sample_count == 0
        assert not renderer.is_complete
        assert renderer.seed_entropy == 11

    def test_unseeded_entropy_is_reported(self):
        """Test an unseeded renderer reports the entropy it drew."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings(seed=None))
        assert isinstance(renderer.seed_entropy, int)


class TestProgressiveRendererRender:
    """Tests for render and render_progressive."""

    def test_render_reaches_target(self, small_scene):
        """Test render() with no arguments renders the configured samples."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings())
        renderer.render()
        assert renderer.sample_count == 4
        assert renderer.is_complete

    def test_render_progressive_yields_batches(self, small_scene):
        """Test batches are yielded with running totals."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings(samples_per_pixel=5))
        progress = list(renderer.render_progressive(batch_size=2))
        assert progress == [(2, 5), (4, 5), (5, 5)]

    def test_render_progressive_when_complete_yields_nothing(self, small_scene):
        """Test a finished render has nothing left to do by default."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings())
        renderer.render()
        assert list(renderer.render_progressive()) == []

    def test_render_beyond_target(self, small_scene):
        """Test explicit sample counts keep refining past the target."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings())
        renderer.render()
        renderer.render(num_samples=3)
        assert renderer.sample_count == 7

    def test_invalid_batch_size(self, small_scene):
        """Test non-positive batch sizes raise ValueError."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings())
        with pytest.raises(ValueError, match="batch_size"):
            renderer.render(batch_size=0)

    def test_callback_receives_progress(self, small_scene):
        """Test the callback is called after every batch."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        calls = []
        renderer = ProgressiveRenderer(_settings(samples_per_pixel=6))
        renderer.render(batch_size=3, callback=lambda cur, total: calls.append((cur, total)))
        assert calls == [(3, 6), (6, 6)]

    def test_interruptible(self, small_scene):
        """Test stopping the generator early keeps the finished batches."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings(samples_per_pixel=10))
        for current, _ in renderer.render_progressive(batch_size=2):
            if current >= 4:
                break
        assert renderer.sample_count == 4


class TestProgressiveRendererReset:
    """Tests for reset, resize and reproducibility."""

    def test_reset_repeats_render(self, small_scene):
        """Test a reset render reproduces the same image bit for bit."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings(seed=None))
        renderer.render()
        first = renderer.get_image_numpy().copy()

        renderer.reset()
        assert renderer.sample_count == 0
        renderer.render()
        assert np.array_equal(renderer.get_image_numpy(), first)

    def test_same_seed_same_image(self, small_scene):
        """Test two renderers with the same seed agree exactly."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        first = ProgressiveRenderer(_settings(seed=99))
        first.render(batch_size=1)
        a = first.get_image_uint8().copy()

        second = ProgressiveRenderer(_settings(seed=99))
        second.render(batch_size=1)
        assert np.array_equal(second.get_image_uint8(), a)

    def test_resize(self, small_scene):
        """Test resize changes the dimensions and discards samples."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings())
        renderer.render()
        renderer.resize(10, 5)

        assert (renderer.width, renderer.height) == (10, 5)
        assert renderer.settings.samples_per_pixel == 4
        assert renderer.sample_count == 0
        assert renderer.get_image_numpy().shape == (5, 10, 3)

    def test_resize_rejects_bad_dimensions(self):
        """Test resize validates through RenderSettings."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings())
        with pytest.raises(ValueError):
            renderer.resize(0, 5)


class TestProgressiveRendererOutput:
    """Tests for image output helpers."""

    def test_image_types(self, small_scene):
        """Test the float and 8-bit images have the expected shape and dtype."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings())
        renderer.render()

        linear = renderer.get_image_numpy()
        pixels = renderer.get_image_uint8()
        assert linear.shape == (8, 16, 3) and linear.dtype == np.float32
        assert pixels.shape == (8, 16, 3) and pixels.dtype == np.uint8
        assert np.all(np.isfinite(linear))
        assert np.all(linear >= 0.0)

    @pytest.mark.parametrize("name", ["out.ppm", "out.png"])
    def test_save_image(self, small_scene, tmp_path, name):
        """Test both output formats are written."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings())
        renderer.render()
        path = tmp_path / name
        renderer.save_image(path)
        assert path.exists()
        assert path.stat().st_size > 0

    def test_repr_shows_state(self):
        """Test the repr reports size and sample count."""
        from src.raytrace.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_settings())
        assert repr(renderer) == "ProgressiveRenderer(width=16, height=8, samples=0)"
