"""A window that shows BMP images with the origin in the bottom-left corner."""

from __future__ import annotations

import pygame

from boota.bmp import BMP

_ESCAPE = 27


class BMPWindow:
    """A double-buffered window that closes when Escape is pressed."""

    def __init__(self, width: int, height: int, title: str) -> None:
        pygame.init()
        self.width = width
        self.height = height
        self.title = title
        self.surface = pygame.display.set_mode((width, height))
        pygame.display.set_caption(title)
        self._open = True
        self.clear()

    def is_open(self) -> bool:
        """Whether the window has not been closed yet."""
        return self._open

    def poll_events(self) -> None:
        """Process pending events; Escape or a close request closes the window."""
        for event in pygame.event.get():
            if event.type == pygame.KEYDOWN and event.key == _ESCAPE:
                self.close()
            elif event.type == pygame.QUIT:
                self.close()

    def clear(self) -> None:
        """Fill the back buffer with black."""
        self.surface.fill((0, 0, 0))

    def show_bmp(self, bmp: BMP) -> None:
        """Draw ``bmp`` with its row 0 at the bottom edge of the window."""
        width = bmp.info_header.width
        height = bmp.info_header.height
        channels = bmp.info_header.bitcount // 8
        data = bmp.data

        rgb = bytearray(width * height * 3)
        rgb[0::3] = data[2::channels]
        rgb[1::3] = data[1::channels]
        rgb[2::3] = data[0::channels]

        stride = width * 3
        top_down = b"".join(
            rgb[row * stride : (row + 1) * stride] for row in reversed(range(height))
        )
        image = pygame.image.frombuffer(top_down, (width, height), "RGB")
        self.surface.blit(image, (0, self.height - height))

    def display(self) -> None:
        """Show the back buffer."""
        pygame.display.flip()

    def close(self) -> None:
        """Mark the window as closed."""
        self._open = False