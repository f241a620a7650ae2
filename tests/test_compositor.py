"""Tests for the see-through compositor and render kernels.

Tests cover:
- Opaque objects hide everything behind them
- Half-transparent objects blend with the backdrop
- Rays missing everything return the background
- The bounce budget limits the number of visible surfaces
- Transmittance and accumulated color evolve monotonically
- Rendering is a pure function of scene and camera
- Render target setup and errors
"""

import numpy as np
import pytest

RED = (1.0, 0.0, 0.0)
GREEN = (0.0, 1.0, 0.0)
BLUE = (0.0, 0.0, 1.0)
WHITE = (1.0, 1.0, 1.0)

CHECKER_A = (0.8, 0.8, 0.8)
CHECKER_B = (0.3, 0.3, 0.3)


@pytest.fixture
def scene():
    from src.raycaster.scene.manager import SceneManager

    manager = SceneManager()
    yield manager
    manager.clear()


def _blend(*terms):
    """Sum of weight * color terms."""
    return tuple(sum(w * c[k] for w, c in terms) for k in range(3))


class TestOpaqueObject:
    """An opaque sphere straight ahead resolves to its own color."""

    def test_center_pixel_is_sphere_color(self, scene, center_camera):
        from src.raycaster.core.compositor import get_normalized_image_numpy, render_frame, render_pixel, setup_render_target

        scene.add_sphere((0, 0, 0), 1.0, RED, alpha=1.0)
        scene.add_plane((0, 0, 1), -2.0, CHECKER_A, CHECKER_B, 1.5)

        setup_render_target(101, 101)
        assert render_pixel(50, 50) == pytest.approx(RED, abs=1e-6)

        render_frame()
        image = get_normalized_image_numpy()
        assert image.shape == (101, 101, 3)
        assert image[50, 50] == pytest.approx(RED, abs=1e-6)

    def test_opaque_box_hides_background(self, scene):
        from src.raycaster.core.compositor import trace_ray

        scene.set_background(WHITE)
        scene.add_box((-1, -1, -1), (1, 1, 1), BLUE, alpha=1.0)
        assert trace_ray((0, 0, 5), (0, 0, -1)) == pytest.approx(BLUE, abs=1e-6)


class TestTranslucentObject:
    """Half-transparent objects blend with what lies behind them."""

    def test_box_blends_with_checker(self, scene):
        """A box is entered once: 0.5 * color + 0.5 * checker."""
        from src.raycaster.core.compositor import trace_ray

        scene.add_box((-1, -1, -1), (1, 1, 1), RED, alpha=0.5)
        scene.add_plane((0, 0, 1), -2.0, CHECKER_A, CHECKER_B, 1.0)

        color = trace_ray((0.25, 0.25, 5), (0, 0, -1))
        assert color == pytest.approx(_blend((0.5, RED), (0.5, CHECKER_A)), abs=1e-5)

    def test_box_blends_with_other_checker_cell(self, scene):
        from src.raycaster.core.compositor import trace_ray

        scene.add_box((-1, -1, -1), (1, 1, 1), RED, alpha=0.5)
        scene.add_plane((0, 0, 1), -2.0, CHECKER_A, CHECKER_B, 1.0)

        color = trace_ray((-0.25, 0.25, 5), (0, 0, -1))
        assert color == pytest.approx(_blend((0.5, RED), (0.5, CHECKER_B)), abs=1e-5)

    def test_sphere_blends_front_and_back_surfaces(self, scene):
        """A sphere is crossed at its entry and exit, each weighted by alpha.

        This gives 0.75 red + 0.25 checker rather than the 0.5/0.5 blend of a
        single crossing; only the box reaches the even split.
        """
        from src.raycaster.core.compositor import trace_ray

        scene.add_sphere((0, 0, 0), 1.0, RED, alpha=0.5)
        scene.add_plane((0, 0, 1), -2.0, CHECKER_A, CHECKER_B, 1.0)

        color = trace_ray((0.25, 0.25, 5), (0, 0, -1))
        expected = _blend((0.5, RED), (0.25, RED), (0.25, CHECKER_A))
        assert color == pytest.approx(expected, abs=1e-5)

    def test_center_pixel_blend(self, scene):
        """Camera centered on a half-transparent box in front of the backdrop."""
        from src.raycaster.camera.pinhole import PinholeCamera, setup_camera
        from src.raycaster.core.compositor import render_pixel, setup_render_target

        setup_camera(PinholeCamera(position=(0.25, 0.25, 5.0), target=(0.25, 0.25, 0.0), up=(0.0, 1.0, 0.0), fov=60.0))
        scene.add_box((-1, -1, -1), (1, 1, 1), RED, alpha=0.5)
        scene.add_plane((0, 0, 1), -2.0, CHECKER_A, CHECKER_B, 1.0)

        setup_render_target(101, 101)
        color = render_pixel(50, 50)
        assert color == pytest.approx(_blend((0.5, RED), (0.5, CHECKER_A)), abs=1e-5)

    def test_invisible_object(self, scene):
        """alpha 0 contributes nothing."""
        from src.raycaster.core.compositor import trace_ray

        scene.set_background(WHITE)
        scene.add_box((-1, -1, -1), (1, 1, 1), RED, alpha=0.0)
        assert trace_ray((0, 0, 5), (0, 0, -1)) == pytest.approx(WHITE, abs=1e-6)


class TestBackground:
    def test_empty_scene_returns_background(self, scene):
        from src.raycaster.core.compositor import trace_ray
        from src.raycaster.scene.intersection import DEFAULT_BACKGROUND

        assert trace_ray((0, 0, 5), (0, 0, -1)) == pytest.approx(DEFAULT_BACKGROUND, abs=1e-6)

    def test_ray_parallel_to_plane_returns_background(self, scene):
        from src.raycaster.core.compositor import trace_ray

        scene.set_background((0.2, 0.4, 0.6))
        scene.add_plane((0, 0, 1), -2.0, CHECKER_A, CHECKER_B, 1.5)

        assert trace_ray((0, 0, 0), (1, 0, 0)) == pytest.approx((0.2, 0.4, 0.6), abs=1e-6)
        assert trace_ray((0, 0, 0), (1, 0, -1e-4)) == pytest.approx((0.2, 0.4, 0.6), abs=1e-6)

    def test_ray_away_from_plane_returns_background(self, scene):
        from src.raycaster.core.compositor import trace_ray

        scene.set_background((0.2, 0.4, 0.6))
        scene.add_plane((0, 0, 1), -2.0, CHECKER_A, CHECKER_B, 1.5)
        assert trace_ray((0, 0, 0), (0, 0, 1)) == pytest.approx((0.2, 0.4, 0.6), abs=1e-6)


class TestBounceBudget:
    """Only as many surfaces as the bounce budget allows are visible."""

    def test_stacked_boxes_fourth_invisible(self, scene):
        from src.raycaster.core.compositor import trace_ray

        scene.set_background(WHITE)
        scene.add_box((-1, -1, 3), (1, 1, 4), RED, alpha=0.5)
        scene.add_box((-1, -1, 1), (1, 1, 2), GREEN, alpha=0.5)
        scene.add_box((-1, -1, -1), (1, 1, 0), BLUE, alpha=0.5)
        scene.add_box((-1, -1, -3), (1, 1, -2), WHITE, alpha=1.0)

        color = trace_ray((0, 0, 10), (0, 0, -1))
        assert color == pytest.approx((0.5, 0.25, 0.125), abs=1e-5)

    def test_stacked_spheres_budget_exhausted(self, scene):
        """Three half-transparent spheres: entry and exit of the first, entry of the second."""
        from src.raycaster.core.compositor import trace_ray, trace_ray_steps

        scene.set_background(WHITE)
        scene.add_sphere((0, 0, 4), 1.0, RED, alpha=0.5)
        scene.add_sphere((0, 0, 0), 1.0, GREEN, alpha=0.5)
        scene.add_sphere((0, 0, -4), 1.0, BLUE, alpha=0.5)
        scene.add_sphere((0, 0, -8), 1.0, WHITE, alpha=1.0)

        color = trace_ray((0, 0, 10), (0, 0, -1))
        assert color == pytest.approx((0.75, 0.125, 0.0), abs=1e-5)

        steps = trace_ray_steps((0, 0, 10), (0, 0, -1))
        assert len(steps) == 3
        assert steps[-1][0] == pytest.approx(0.125, abs=1e-6)

    def test_larger_budget_reveals_more(self, scene):
        from src.raycaster.core.compositor import trace_ray

        scene.set_background((0.0, 0.0, 0.0))
        scene.set_max_bounces(5)
        for k, color in enumerate([RED, GREEN, BLUE, WHITE]):
            z = 3.0 - 2.0 * k
            scene.add_box((-1, -1, z - 1.0), (1, 1, z), color, alpha=0.5)

        color = trace_ray((0, 0, 10), (0, 0, -1))
        # 0.5 red, 0.25 green, 0.125 blue, 0.0625 white, then black background
        assert color == pytest.approx((0.5625, 0.3125, 0.1875), abs=1e-5)

    def test_low_transmittance_stops_early(self, scene):
        from src.raycaster.core.compositor import trace_ray_steps

        scene.set_max_bounces(10)
        scene.add_box((-1, -1, 1), (1, 1, 2), RED, alpha=0.995)
        scene.add_box((-1, -1, -2), (1, 1, -1), GREEN, alpha=0.5)

        steps = trace_ray_steps((0, 0, 10), (0, 0, -1))
        assert len(steps) == 1
        assert steps[0][0] == pytest.approx(0.005, abs=1e-5)


class TestMonotonicity:
    """Transmittance never increases; accumulated color never decreases."""

    def test_demo_like_ray(self, scene):
        from src.raycaster.core.compositor import trace_ray_steps

        scene.set_max_bounces(8)
        scene.add_sphere((-0.8, 0, 0), 0.7, (1.0, 0.3, 0.3), 0.5)
        scene.add_box((-1.2, -0.6, -1.4), (-0.2, 0.6, -0.9), (0.3, 0.3, 1.0), 0.65)
        scene.add_plane((0, 0, 1), -2.0, CHECKER_A, CHECKER_B, 1.5)

        steps = trace_ray_steps((-0.8, 0.1, 4.0), (0.0, 0.0, -1.0))
        assert len(steps) >= 3

        prev_t = 1.0
        prev_color = (0.0, 0.0, 0.0)
        for transmittance, color in steps:
            assert transmittance <= prev_t + 1e-7
            for k in range(3):
                assert color[k] >= 0.0
                assert color[k] >= prev_color[k] - 1e-7
            prev_t = transmittance
            prev_color = color

        assert steps[-1][0] < 1.0


class TestIdempotence:
    def test_render_twice_identical(self, scene):
        from src.raycaster.camera.pinhole import PinholeCamera, setup_camera
        from src.raycaster.core.compositor import (
            get_frame_count,
            get_normalized_image_numpy,
            render_frame,
            setup_render_target,
        )

        scene.add_sphere((-0.8, 0, 0), 0.7, (1.0, 0.3, 0.3), 0.5)
        scene.add_box((0.4, -0.6, -0.4), (1.4, 0.6, 0.6), (0.3, 0.3, 1.0), 0.65)
        scene.add_plane((0, 0, 1), -2.0, CHECKER_A, CHECKER_B, 1.5)
        setup_camera(
            PinholeCamera(position=(0.0, 0.5, 4.0), target=(0.0, 0.0, 0.0), up=(0.0, 1.0, 0.0), fov=60.0),
            aspect_ratio=64 / 48,
        )

        setup_render_target(64, 48)
        render_frame()
        first = get_normalized_image_numpy().copy()
        render_frame()
        second = get_normalized_image_numpy()

        assert get_frame_count() == 2
        assert np.array_equal(first, second)

    def test_trace_ray_repeatable(self, scene):
        from src.raycaster.core.compositor import trace_ray

        scene.add_sphere((0, 0, 0), 1.0, RED, alpha=0.3)
        scene.add_plane((0, 0, 1), -2.0, CHECKER_A, CHECKER_B, 1.5)
        assert trace_ray((0.1, 0.2, 5), (0, 0, -1)) == trace_ray((0.1, 0.2, 5), (0, 0, -1))


class TestRenderTarget:
    def test_invalid_dimensions(self):
        from src.raycaster.core.compositor import setup_render_target

        with pytest.raises(ValueError, match="positive"):
            setup_render_target(0, 10)
        with pytest.raises(ValueError, match="exceed"):
            setup_render_target(4096, 10)

    def test_dimensions_and_clear(self, scene, center_camera):
        from src.raycaster.core.compositor import (
            clear_render_target,
            get_frame_count,
            get_image_dimensions,
            render_frame,
            setup_render_target,
        )

        setup_render_target(32, 16)
        assert get_image_dimensions() == (32, 16)
        render_frame()
        assert get_frame_count() == 1
        clear_render_target()
        assert get_frame_count() == 0

    def test_output_is_clamped(self, scene, center_camera):
        """The raw buffer can exceed 1; host-facing images are clamped."""
        from src.raycaster.core.compositor import get_image, get_normalized_image_numpy, render_frame, setup_render_target

        setup_render_target(8, 8)
        render_frame()
        get_image()[0, 0] = [2.0, -1.0, 0.5]

        image = get_normalized_image_numpy()
        # Pixel (0, 0) is the bottom-left, i.e. the last image row
        assert image[7, 0] == pytest.approx((1.0, 0.0, 0.5))
        assert image.min() >= 0.0
        assert image.max() <= 1.0
