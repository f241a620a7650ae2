#!/usr/bin/env python3
"""Render the demo scene (or a scene file) to a PNG.

This script renders one frame of a translucent scene: it creates the
scene, sets up the camera for the image aspect ratio, renders every pixel
once and saves the result.

Usage:
    python -m examples.render_scene [options]

Options:
    --width WIDTH       Image width in pixels (default: 800)
    --height HEIGHT     Image height in pixels (default: 600)
    --output OUTPUT     Output file path (default: translucent_scene.png)
    --scene SCENE       JSON scene file; the demo scene is used when omitted
    --gamma GAMMA       Gamma applied on export (default: 1.0)
    --cpu               Force the CPU backend
    --quiet             Suppress progress output

Scene files hold the dictionary produced by SceneManager.to_dict(), with an
optional "camera" entry in the form of PinholeCamera.to_dict().

Example:
    python -m examples.render_scene --width 400 --height 300 --output demo.png
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a translucent scene to PNG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=800,
        help="Image width in pixels (default: 800)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=600,
        help="Image height in pixels (default: 600)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="translucent_scene.png",
        help="Output file path (default: translucent_scene.png)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (default: built-in demo scene)",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        default=1.0,
        help="Gamma applied on export (default: 1.0)",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def load_scene(scene_path: str | None):
    """Build the scene and camera, from a JSON file or the demo defaults.

    Returns:
        Tuple of (SceneManager, PinholeCamera).
    """
    from src.raycaster.camera.pinhole import PinholeCamera
    from src.raycaster.scene import demo
    from src.raycaster.scene.manager import SceneManager

    if scene_path is None:
        return demo.create_demo_scene()

    with open(scene_path, encoding="utf-8") as f:
        data = json.load(f)

    scene = SceneManager()
    scene.from_dict(data)

    if "camera" in data:
        camera = PinholeCamera.from_dict(data["camera"])
    else:
        camera = PinholeCamera(
            position=demo.CAMERA_POSITION,
            target=demo.CAMERA_TARGET,
            up=demo.CAMERA_UP,
            fov=demo.CAMERA_FOV,
        )
    return scene, camera


def render_scene(
    width: int = 800,
    height: int = 600,
    output_path: str = "translucent_scene.png",
    scene_path: str | None = None,
    gamma: float = 1.0,
    quiet: bool = False,
) -> Path:
    """Render a scene and save it to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        output_path: Output file path (PNG).
        scene_path: Optional JSON scene file.
        gamma: Gamma applied on export.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.raycaster.camera.pinhole import setup_camera
    from src.raycaster.core.renderer import FrameRenderer
    from src.raycaster.preview.export import save_png

    if not quiet:
        source = scene_path if scene_path is not None else "demo scene"
        print(f"Loading {source} ({width}x{height})...")

    scene, camera = load_scene(scene_path)

    renderer = FrameRenderer(width, height)
    setup_camera(camera, aspect_ratio=renderer.aspect_ratio)

    if not quiet:
        print(
            f"Rendering {scene.get_primitive_count()} primitives, "
            f"up to {scene.max_bounces} interactions per ray..."
        )

    start_time = time.time()
    renderer.render()

    output_file = Path(output_path)
    save_png(renderer, str(output_file), gamma=gamma)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    if args.cpu:
        ti.init(arch=ti.cpu)
    else:
        try:
            ti.init(arch=ti.gpu)
            if not args.quiet:
                print("Using GPU backend")
        except Exception:
            ti.init(arch=ti.cpu)
            if not args.quiet:
                print("Using CPU backend")

    try:
        render_scene(
            width=args.width,
            height=args.height,
            output_path=args.output,
            scene_path=args.scene,
            gamma=args.gamma,
            quiet=args.quiet,
        )
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
