import pygame
import pytest

from boota.bmp import BMP, Pixel
from boota.window import BMPWindow


@pytest.fixture
def window(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
    win = BMPWindow(4, 4, "test window")
    yield win
    pygame.quit()


def _screen_rgb(win, x, y):
    color = win.surface.get_at((x, y))
    return (color.r, color.g, color.b)


def test_new_window_is_open(window):
    assert window.is_open() is True


def test_close_marks_closed(window):
    window.close()
    assert window.is_open() is False


def test_escape_key_closes(window):
    pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_ESCAPE))
    window.poll_events()
    assert window.is_open() is False


def test_other_key_keeps_open(window):
    pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_a))
    window.poll_events()
    assert window.is_open() is True


def test_quit_event_closes(window):
    pygame.event.post(pygame.event.Event(pygame.QUIT))
    window.poll_events()
    assert window.is_open() is False


@pytest.mark.parametrize("has_alpha", [False, True])
def test_show_bmp_puts_row_zero_at_bottom(window, has_alpha):
    bmp = BMP(2, 2, has_alpha)
    pixels = {
        (0, 0): Pixel(10, 20, 30),
        (1, 0): Pixel(40, 50, 60),
        (0, 1): Pixel(70, 80, 90),
        (1, 1): Pixel(100, 110, 120),
    }
    for (x, y), pixel in pixels.items():
        bmp.set_pixel(x, y, pixel)
    window.show_bmp(bmp)
    for (x, y), pixel in pixels.items():
        assert _screen_rgb(window, x, window.height - 1 - y) == (
            pixel.red,
            pixel.green,
            pixel.blue,
        )


def test_show_bmp_leaves_rest_untouched(window):
    bmp = BMP(2, 2, False)
    for x in range(2):
        for y in range(2):
            bmp.set_pixel(x, y, Pixel(200, 200, 200))
    window.show_bmp(bmp)
    assert _screen_rgb(window, 3, 0) == (0, 0, 0)
    assert _screen_rgb(window, 0, 0) == (0, 0, 0)


def test_clear_erases_image(window):
    bmp = BMP(4, 4, False)
    for x in range(4):
        for y in range(4):
            bmp.set_pixel(x, y, Pixel(255, 0, 0))
    window.show_bmp(bmp)
    window.clear()
    assert all(
        _screen_rgb(window, x, y) == (0, 0, 0) for x in range(4) for y in range(4)
    )