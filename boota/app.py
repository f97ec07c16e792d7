"""Live camera viewer: shows frames in grayscale and saves each colour frame."""

from __future__ import annotations

import argparse
import sys
import time
from typing import Sequence

from boota.bmp import BMP, BMPError
from boota.camera import CameraError, V4L2Camera

DEFAULT_WIDTH = 640
DEFAULT_HEIGHT = 480
DEFAULT_DEVICE = "/dev/video0"
DEFAULT_OUTPUT = "image.bmp"
FRAME_DELAY = 0.008
WINDOW_TITLE = "Boota Camera Window"


def run(window, camera, output_path=DEFAULT_OUTPUT, frame_delay=FRAME_DELAY) -> None:
    """Capture, save and show frames until the window is closed."""
    while window.is_open():
        window.poll_events()
        window.clear()

        bmp: BMP = camera.capture_bmp()
        bmp.write(output_path)
        bmp.to_grayscale()

        window.show_bmp(bmp)
        window.display()
        time.sleep(frame_delay)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="boota", description="Show a live grayscale camera feed."
    )
    parser.add_argument("--device", default=DEFAULT_DEVICE, help="capture device")
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH)
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT)
    parser.add_argument(
        "--output", default=DEFAULT_OUTPUT, help="file that receives each frame"
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the viewer; return the process exit status."""
    args = _parse_args(argv)
    from boota.window import BMPWindow

    window = BMPWindow(args.width, args.height, WINDOW_TITLE)
    try:
        with V4L2Camera(args.device, args.width, args.height) as camera:
            run(window, camera, args.output)
    except (CameraError, BMPError) as exc:
        print(f"boota: {exc}", file=sys.stderr)
        return 1
    finally:
        window.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())