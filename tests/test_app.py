import pygame
import pytest

from boota.app import main, run
from boota.bmp import BMP, Pixel
from boota.camera import CameraError


class FakeWindow:
    def __init__(self, frames):
        self.frames = frames
        self.polls = 0
        self.open = True
        self.shown = []
        self.calls = []

    def is_open(self):
        return self.open

    def poll_events(self):
        self.calls.append("poll")
        self.polls += 1
        if self.polls >= self.frames:
            self.open = False

    def clear(self):
        self.calls.append("clear")

    def show_bmp(self, bmp):
        self.calls.append("show")
        self.shown.append(bmp)

    def display(self):
        self.calls.append("display")


class FakeCamera:
    def __init__(self, pixel):
        self.pixel = pixel
        self.captures = 0

    def capture_bmp(self):
        self.captures += 1
        bmp = BMP(3, 2, False)
        for x in range(3):
            for y in range(2):
                bmp.set_pixel(x, y, self.pixel)
        return bmp


class FailingCamera:
    def capture_bmp(self):
        raise CameraError("Timeout or error waiting for frame")


def test_run_saves_colour_frame(tmp_path):
    colour = Pixel(200, 40, 90)
    output = tmp_path / "frame.bmp"
    run(FakeWindow(1), FakeCamera(colour), output, 0)
    saved = BMP.from_file(output)
    assert saved.get_pixel(2, 1) == colour


def test_run_shows_grayscale_frames(tmp_path):
    window = FakeWindow(2)
    run(window, FakeCamera(Pixel(200, 40, 90)), tmp_path / "frame.bmp", 0)
    assert len(window.shown) == 2
    for bmp in window.shown:
        pixel = bmp.get_pixel(0, 0)
        assert pixel.red == pixel.green == pixel.blue


def test_run_frame_order(tmp_path):
    window = FakeWindow(1)
    run(window, FakeCamera(Pixel(1, 2, 3)), tmp_path / "frame.bmp", 0)
    assert window.calls == ["poll", "clear", "show", "display"]


def test_run_stops_when_window_closed(tmp_path):
    window = FakeWindow(3)
    camera = FakeCamera(Pixel(5, 5, 5))
    run(window, camera, tmp_path / "frame.bmp", 0)
    assert camera.captures == 3
    assert window.is_open() is False


def test_run_propagates_camera_errors(tmp_path):
    with pytest.raises(CameraError):
        run(FakeWindow(5), FailingCamera(), tmp_path / "frame.bmp", 0)


def test_main_reports_missing_device(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
    try:
        status = main(
            ["--device", str(tmp_path / "missing"), "--width", "8", "--height", "8"]
        )
    finally:
        pygame.quit()
    assert status == 1
    assert "Cannot open device" in capsys.readouterr().err