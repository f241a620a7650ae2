"""Taichi-based translucent ray caster.

This package renders scenes of spheres, axis-aligned boxes and checkered
planes by casting one ray per pixel and compositing the see-through
primitives it passes, front to back, with the backdrop behind them.

Subpackages:
    core: Ray utilities, the compositor and the frame renderer
    geometry: Sphere, box and plane intersection tests
    scene: Primitive storage, scene configuration and the demo scene
    camera: Pinhole camera with per-pixel ray generation
    preview: Output clamping, PNG export and preview windows
"""

__version__ = "0.1.0"
