"""
Frame renderer.
Converts the machine's 1-bit FrameBuffer into an RGB pygame Surface.

The core produces one byte per pixel (0 or 1).  A two-entry colour
look-up table maps each to the background or foreground colour; numpy
does the look-up for the whole frame at once.
"""

from __future__ import annotations

import logging

import numpy as np
import pygame

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND: int = 0x000000
DEFAULT_FOREGROUND: int = 0xFFFFFF


def _build_lut(background: int, foreground: int) -> np.ndarray:
    """Return a (2, 3) uint8 table: index 0 -> background, 1 -> foreground."""
    lut = np.zeros((2, 3), dtype=np.uint8)
    for i, colour in enumerate((background, foreground)):
        lut[i] = ((colour >> 16) & 0xFF, (colour >> 8) & 0xFF, colour & 0xFF)
    return lut


def frame_to_rgb(pixels, width: int, height: int, lut: np.ndarray) -> np.ndarray:
    """Convert a row-major 0/1 pixel buffer to an (H, W, 3) RGB array."""
    frame = np.frombuffer(pixels, dtype=np.uint8).reshape((height, width))
    return lut[frame]


class FrameRenderer:
    """Render a machine's display into a :class:`pygame.Surface` each frame.

    Parameters
    ----------
    machine:
        The emulated machine.  Expected attributes:

        * ``frame_buffer`` -- :class:`~chip8emu.core.frame_buffer.FrameBuffer`
    background, foreground:
        ``0xRRGGBB`` colours for clear and set pixels.
    """

    def __init__(
        self,
        machine: object,
        *,
        background: int = DEFAULT_BACKGROUND,
        foreground: int = DEFAULT_FOREGROUND,
    ) -> None:
        self._machine = machine
        fb = machine.frame_buffer  # type: ignore[attr-defined]
        self._width: int = fb.WIDTH
        self._height: int = fb.HEIGHT
        self._lut: np.ndarray = _build_lut(background, foreground)

        self._surface: pygame.Surface = pygame.Surface((self._width, self._height))

        logger.info(
            "FrameRenderer: %dx%d (bg=#%06X fg=#%06X)",
            self._width,
            self._height,
            background,
            foreground,
        )

    def render(self) -> pygame.Surface:
        """Render the current frame and return the (reused) surface."""
        fb = self._machine.frame_buffer  # type: ignore[attr-defined]
        rgb = frame_to_rgb(fb.pixels, self._width, self._height, self._lut)

        # pygame surfarray expects (W, H, 3) -- transpose width and height.
        pygame.surfarray.blit_array(self._surface, rgb.transpose(1, 0, 2))
        return self._surface
