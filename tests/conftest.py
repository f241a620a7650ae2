"""Pytest configuration for ray caster tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before module-level fields exist
    from src.raycaster.scene.intersection import clear_scene, reset_scene_settings

    def _clear_all():
        clear_scene()
        reset_scene_settings()

        try:
            from src.raycaster.core.compositor import clear_render_target

            clear_render_target()
        except (ImportError, RuntimeError):
            # Render target not set up yet
            pass

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def center_camera():
    """Camera at (0, 0, 5) looking at the origin with a 60 degree FOV."""
    from src.raycaster.camera.pinhole import PinholeCamera, setup_camera

    camera = PinholeCamera(
        position=(0.0, 0.0, 5.0),
        target=(0.0, 0.0, 0.0),
        up=(0.0, 1.0, 0.0),
        fov=60.0,
    )
    setup_camera(camera, aspect_ratio=1.0)
    return camera
