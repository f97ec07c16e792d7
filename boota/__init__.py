"""BMP images, V4L2 camera capture, a preview window and a live viewer command."""

__version__ = "0.1.0"