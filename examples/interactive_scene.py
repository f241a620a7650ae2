#!/usr/bin/env python3
"""Interactive translucent scene viewer with real-time parameter controls.

This script opens a window showing the demo scene: a translucent red sphere
and blue box in front of a checkered backdrop. Every frame is rendered in
full from the current parameters.

Usage:
    python -m examples.interactive_scene

Controls:
    - Sphere Alpha / Box Alpha: Adjust object opacity
    - Checker Scale: Adjust the backdrop checker size
    - Export PNG: Save the current frame with a timestamp
    - ESC: Close the window
"""

from __future__ import annotations

import platform
import sys
from pathlib import Path

# Ensure the project root is in the Python path for direct execution
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import taichi as ti  # noqa: E402


def initialize_taichi() -> str:
    """Initialize Taichi with the best available backend.

    On macOS, prefers Metal. Falls back to CPU if GPU is unavailable.

    Returns:
        Name of the backend being used.
    """
    system = platform.system()

    if system == "Darwin":
        try:
            ti.init(arch=ti.metal)
            return "Metal (GPU)"
        except Exception:
            pass

    # Try generic GPU (CUDA on Linux/Windows, Vulkan as fallback)
    try:
        ti.init(arch=ti.gpu)
        return "GPU"
    except Exception:
        pass

    ti.init(arch=ti.cpu)
    return "CPU"


def main() -> int:
    """Main entry point for the interactive viewer.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    # Initialize Taichi first (before importing modules that use ti.kernel)
    backend = initialize_taichi()
    print(f"Taichi backend: {backend}")

    from src.raycaster.preview.interactive import InteractivePreview, is_display_available
    from src.raycaster.scene.demo import DEMO_HEIGHT, DEMO_WIDTH, DemoSceneParams

    if not is_display_available():
        print("Error: No display available. Cannot run interactive preview.")
        print("This script requires a graphical display environment.")
        return 1

    print(f"Creating interactive preview window ({DEMO_WIDTH}x{DEMO_HEIGHT})...")
    preview = InteractivePreview(DEMO_WIDTH, DEMO_HEIGHT)
    preview.set_params(DemoSceneParams())

    print("Starting interactive rendering...")
    print("  - Adjust sliders to modify opacity and checker size")
    print("  - Click 'Export PNG' to save current frame")
    print("  - Press ESC or close window to exit")
    print()

    try:
        preview.run_reactive()
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        preview.close()
        print("Preview window closed.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
