"""Tests for the preview module.

Tests cover:
- Output clamping and gamma correction
- Conversion to uint8 and PNG export
- RMSE comparison
- InteractivePreview setup and parameter handling (no window is opened)
"""

import copy
import os
import tempfile

import numpy as np
import pytest
from PIL import Image as PILImage


class TestClampImage:
    def test_clamps_out_of_range_values(self):
        from src.raycaster.preview.display import clamp_image

        image = np.array([[[-0.5, 0.5, 1.5]]], dtype=np.float32)
        result = clamp_image(image)

        assert result.dtype == np.float32
        assert np.allclose(result, [[[0.0, 0.5, 1.0]]])

    def test_in_range_values_unchanged(self):
        from src.raycaster.preview.display import clamp_image

        image = np.random.rand(8, 8, 3).astype(np.float32)
        assert np.array_equal(clamp_image(image), image)


class TestApplyGamma:
    def test_gamma_one_is_identity(self):
        from src.raycaster.preview.display import apply_gamma

        image = np.random.rand(4, 4, 3).astype(np.float32)
        assert np.array_equal(apply_gamma(image, gamma=1.0), image)

    def test_gamma_brightens_midtones(self):
        from src.raycaster.preview.display import apply_gamma

        image = np.full((2, 2, 3), 0.25, dtype=np.float32)
        result = apply_gamma(image, gamma=2.2)

        assert np.allclose(result, 0.25 ** (1.0 / 2.2), atol=1e-6)
        assert np.all(result > image)

    def test_gamma_preserves_endpoints(self):
        from src.raycaster.preview.display import apply_gamma

        image = np.array([[[0.0, 1.0, 0.0]]], dtype=np.float32)
        assert np.allclose(apply_gamma(image, gamma=2.2), image)

    def test_negative_values_do_not_produce_nan(self):
        from src.raycaster.preview.display import apply_gamma

        image = np.array([[[-0.2, 0.5, 1.2]]], dtype=np.float32)
        result = apply_gamma(image, gamma=2.2)
        assert not np.any(np.isnan(result))
        assert result.min() >= 0.0
        assert result.max() <= 1.0

    @pytest.mark.parametrize("gamma", [0.0, -2.2])
    def test_invalid_gamma(self, gamma):
        from src.raycaster.preview.display import apply_gamma

        with pytest.raises(ValueError, match="gamma"):
            apply_gamma(np.zeros((2, 2, 3), dtype=np.float32), gamma=gamma)


class TestProcessImageForDisplay:
    def test_default_pipeline_only_clamps(self):
        from src.raycaster.preview.display import process_image_for_display

        image = np.array([[[0.2, 0.6, 3.0]]], dtype=np.float32)
        result = process_image_for_display(image)
        assert np.allclose(result, [[[0.2, 0.6, 1.0]]])

    def test_output_range_with_gamma(self):
        from src.raycaster.preview.display import process_image_for_display

        image = (np.random.rand(16, 16, 3).astype(np.float32) * 4.0) - 1.0
        result = process_image_for_display(image, gamma=2.2)
        assert result.dtype == np.float32
        assert result.min() >= 0.0
        assert result.max() <= 1.0


class TestImageToUint8:
    def test_output_type_and_shape(self):
        from src.raycaster.preview.export import image_to_uint8

        image = np.random.rand(12, 20, 3).astype(np.float32)
        result = image_to_uint8(image)
        assert result.dtype == np.uint8
        assert result.shape == (12, 20, 3)

    def test_rounds_to_nearest_level(self):
        from src.raycaster.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.5, 1.0]]], dtype=np.float32)
        result = image_to_uint8(image)
        assert list(result[0, 0]) == [0, 128, 255]

    def test_clamps_before_conversion(self):
        from src.raycaster.preview.export import image_to_uint8

        image = np.array([[[-1.0, 2.0, 0.2]]], dtype=np.float32)
        result = image_to_uint8(image)
        assert result[0, 0, 0] == 0
        assert result[0, 0, 1] == 255
        assert result[0, 0, 2] == 51


class TestSavePngFromArray:
    def test_save_png_from_array(self):
        from src.raycaster.preview.export import save_png_from_array

        # Red gradient across the width
        image = np.zeros((32, 64, 3), dtype=np.float32)
        image[:, :, 0] = np.linspace(0, 1, 64)

        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = os.path.join(tmpdir, "gradient.png")
            save_png_from_array(image, filepath)

            with PILImage.open(filepath) as img:
                assert img.size == (64, 32)  # PIL size is (width, height)
                assert img.mode == "RGB"
                pixels = np.asarray(img)

        assert pixels[0, 0, 0] == 0
        assert pixels[0, 63, 0] == 255
        assert np.all(pixels[:, :, 1] == 0)

    def test_top_row_stays_on_top(self):
        from src.raycaster.preview.export import save_png_from_array

        image = np.zeros((4, 4, 3), dtype=np.float32)
        image[0, :, :] = 1.0

        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = os.path.join(tmpdir, "top.png")
            save_png_from_array(image, filepath)
            with PILImage.open(filepath) as img:
                pixels = np.asarray(img)

        assert np.all(pixels[0] == 255)
        assert np.all(pixels[3] == 0)


class TestSavePng:
    def test_save_png_creates_file(self):
        from src.raycaster.camera.pinhole import setup_camera
        from src.raycaster.core.renderer import FrameRenderer
        from src.raycaster.preview.export import save_png
        from src.raycaster.scene.demo import create_demo_scene

        _, camera = create_demo_scene()
        renderer = FrameRenderer(32, 24)
        setup_camera(camera, aspect_ratio=renderer.aspect_ratio)
        renderer.render()

        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = os.path.join(tmpdir, "scene.png")
            save_png(renderer, filepath, gamma=2.2)

            assert os.path.exists(filepath)
            with PILImage.open(filepath) as img:
                assert img.size == (32, 24)
                assert img.mode == "RGB"

    def test_save_png_matches_renderer_image(self):
        from src.raycaster.camera.pinhole import setup_camera
        from src.raycaster.core.renderer import FrameRenderer
        from src.raycaster.preview.export import save_png
        from src.raycaster.scene.demo import create_demo_scene

        _, camera = create_demo_scene()
        renderer = FrameRenderer(16, 12)
        setup_camera(camera, aspect_ratio=renderer.aspect_ratio)
        renderer.render()

        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = os.path.join(tmpdir, "scene.png")
            save_png(renderer, filepath)
            with PILImage.open(filepath) as img:
                pixels = np.asarray(img)

        assert np.array_equal(pixels, renderer.get_image_uint8())


class TestComputeRmse:
    def test_identical_images(self):
        from src.raycaster.preview.export import compute_rmse

        image = np.random.rand(8, 8, 3).astype(np.float32)
        assert compute_rmse(image, image) == 0.0

    def test_known_difference(self):
        from src.raycaster.preview.export import compute_rmse

        a = np.zeros((4, 4, 3), dtype=np.float32)
        b = np.full((4, 4, 3), 0.5, dtype=np.float32)
        assert compute_rmse(a, b) == pytest.approx(0.5)

    def test_shape_mismatch(self):
        from src.raycaster.preview.export import compute_rmse

        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(np.zeros((4, 4, 3)), np.zeros((4, 5, 3)))


class TestModuleExports:
    def test_preview_package_exports(self):
        from src.raycaster import preview

        for name in [
            "InteractivePreview",
            "is_display_available",
            "show_preview",
            "clamp_image",
            "apply_gamma",
            "process_image_for_display",
            "save_png",
            "save_png_from_array",
            "image_to_uint8",
            "compute_rmse",
        ]:
            assert hasattr(preview, name)
            assert name in preview.__all__


class TestInteractivePreview:
    """Tests for the InteractivePreview class.

    Note: These tests avoid creating actual GUI windows by testing
    the initialization and data handling logic only.
    """

    def test_init_creates_display_field(self):
        from src.raycaster.preview.interactive import InteractivePreview

        preview = InteractivePreview(64, 48)

        assert preview.width == 64
        assert preview.height == 48
        # Shape is (width, height) for the Taichi field
        assert preview.display_image.shape == (64, 48)

    def test_init_defers_window_creation(self):
        from src.raycaster.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 32)

        assert preview._window is None
        assert preview._canvas is None
        assert preview._is_initialized is False

    def test_titles(self):
        from src.raycaster.preview.interactive import InteractivePreview

        assert InteractivePreview(32, 32)._title == "Translucent Ray Caster"
        assert InteractivePreview(32, 32, title="Custom")._title == "Custom"

    def test_update_image_validates_shape(self):
        from src.raycaster.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 24)

        with pytest.raises(ValueError, match="doesn't match expected"):
            preview.update_image(np.zeros((10, 10, 3), dtype=np.float32))
        with pytest.raises(ValueError):
            # (width, height) order is rejected
            preview.update_image(np.zeros((32, 24, 3), dtype=np.float32))

    def test_update_image_flips_and_transposes(self):
        from src.raycaster.preview.interactive import InteractivePreview

        preview = InteractivePreview(3, 2)

        image = np.zeros((2, 3, 3), dtype=np.float32)
        # Top-left pixel of the numpy image
        image[0, 0] = (1.0, 0.5, 0.25)
        preview.update_image(image)

        result = preview.display_image.to_numpy()
        assert result.shape == (3, 2, 3)
        # Taichi origin is bottom-left, so the top row is y = height - 1
        assert np.allclose(result[0, 1], (1.0, 0.5, 0.25))
        assert np.allclose(result[0, 0], 0.0)

    def test_update_image_clamps(self):
        from src.raycaster.preview.interactive import InteractivePreview

        preview = InteractivePreview(4, 4)
        preview.update_image(np.full((4, 4, 3), 2.0, dtype=np.float32))
        assert np.allclose(preview.display_image.to_numpy(), 1.0)

    def test_update_image_from_field_clamps(self):
        import taichi as ti

        from src.raycaster.preview.interactive import InteractivePreview

        preview = InteractivePreview(4, 3)
        source = ti.Vector.field(3, dtype=ti.f32, shape=(8, 8))
        source.fill(1.5)

        preview.update_image_from_field(source)
        assert np.allclose(preview.display_image.to_numpy(), 1.0)

    def test_is_display_available_returns_bool(self):
        from src.raycaster.preview.interactive import InteractivePreview, is_display_available

        assert isinstance(is_display_available(), bool)
        assert InteractivePreview.is_display_available() == is_display_available()

    def test_renderer_not_created_before_run(self):
        from src.raycaster.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 32)
        assert preview.get_renderer() is None
        assert preview.get_frame_count() == 0

    def test_ensure_renderer(self):
        from src.raycaster.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 24)
        preview._ensure_renderer()

        renderer = preview.get_renderer()
        assert renderer is not None
        assert renderer.width == 32
        assert renderer.height == 24

    def test_close_without_window(self):
        from src.raycaster.preview.interactive import InteractivePreview

        InteractivePreview(16, 16).close()


class TestInteractivePreviewParams:
    """Tests for InteractivePreview parameter handling."""

    def test_set_params_deep_copies(self):
        from src.raycaster.preview.interactive import InteractivePreview
        from src.raycaster.scene.demo import DemoSceneParams

        preview = InteractivePreview(32, 32)
        params = DemoSceneParams(sphere_alpha=0.2)

        preview.set_params(params)

        assert preview._pending_params is not params
        assert preview._pending_params == params

    def test_params_changed_false_without_params(self):
        from src.raycaster.preview.interactive import InteractivePreview

        preview = InteractivePreview(32, 32)
        assert preview._params_changed() is False

    def test_params_changed_true_on_first_build(self):
        from src.raycaster.preview.interactive import InteractivePreview
        from src.raycaster.scene.demo import DemoSceneParams

        preview = InteractivePreview(32, 32)
        preview.set_params(DemoSceneParams())
        assert preview._params_changed() is True

    def test_params_changed_false_when_unchanged(self):
        from src.raycaster.preview.interactive import InteractivePreview
        from src.raycaster.scene.demo import DemoSceneParams

        preview = InteractivePreview(32, 32)
        params = DemoSceneParams(box_alpha=0.9)
        preview.set_params(params)
        preview._current_params = copy.deepcopy(params)

        assert preview._params_changed() is False

    def test_params_changed_detects_alpha_change(self):
        from src.raycaster.preview.interactive import InteractivePreview
        from src.raycaster.scene.demo import DemoSceneParams

        preview = InteractivePreview(32, 32)
        preview.set_params(DemoSceneParams())
        preview._current_params = DemoSceneParams()

        preview.set_params(DemoSceneParams(sphere_alpha=0.9))
        assert preview._params_changed() is True

    def test_rebuild_scene_applies_params(self):
        from src.raycaster.preview.interactive import InteractivePreview
        from src.raycaster.scene.demo import DemoSceneParams
        from src.raycaster.scene.intersection import get_max_bounces

        preview = InteractivePreview(40, 30)
        preview.set_params(DemoSceneParams(sphere_alpha=0.25, max_bounces=5))
        preview._rebuild_scene()

        assert preview._params_changed() is False
        assert preview._current_params.sphere_alpha == 0.25
        assert get_max_bounces() == 5

    def test_rebuild_scene_uses_defaults_without_params(self):
        from src.raycaster.preview.interactive import InteractivePreview
        from src.raycaster.scene.demo import DemoSceneParams

        preview = InteractivePreview(40, 30)
        preview._rebuild_scene()
        assert preview._current_params == DemoSceneParams()
