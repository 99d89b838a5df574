"""
FrameBuffer -- the 64x32 monochrome CHIP-8 display.

One byte per pixel, 0 (clear) or 1 (set), in row-major order:
``pixels[y * WIDTH + x]``.  Only the clear-screen and draw instructions
mutate it; the renderer reads it once per frame through :attr:`pixels`.
"""

from __future__ import annotations

from chip8emu.core.chip8_tables import SCREEN_HEIGHT, SCREEN_WIDTH


class FrameBuffer:
    """Holds the current display contents."""

    WIDTH: int = SCREEN_WIDTH
    HEIGHT: int = SCREEN_HEIGHT
    SIZE: int = SCREEN_WIDTH * SCREEN_HEIGHT

    def __init__(self) -> None:
        self._pixels: bytearray = bytearray(self.SIZE)

    # ------------------------------------------------------------------
    # Pixel access
    # ------------------------------------------------------------------

    @property
    def pixels(self) -> memoryview:
        """Read-only view of the pixel buffer (row-major, one byte per pixel)."""
        return memoryview(self._pixels).toreadonly()

    def _offset(self, x: int, y: int) -> int:
        if not (0 <= x < self.WIDTH and 0 <= y < self.HEIGHT):
            raise IndexError(
                f"pixel ({x}, {y}) out of range [0, {self.WIDTH}) x [0, {self.HEIGHT})"
            )
        return y * self.WIDTH + x

    def get_pixel(self, x: int, y: int) -> bool:
        return self._pixels[self._offset(x, y)] != 0

    def set_pixel(self, x: int, y: int, on: bool) -> None:
        self._pixels[self._offset(x, y)] = 1 if on else 0

    def xor_pixel(self, x: int, y: int) -> bool:
        """Flip the pixel at (*x*, *y*) with wrap-around.

        Returns:
            ``True`` if the pixel was set before the flip (a collision).
        """
        offset = (y % self.HEIGHT) * self.WIDTH + (x % self.WIDTH)
        was_set = self._pixels[offset] != 0
        self._pixels[offset] ^= 1
        return was_set

    def clear(self) -> None:
        """Clear every pixel."""
        self._pixels[:] = bytes(self.SIZE)

    def count_set(self) -> int:
        """Number of pixels currently set."""
        return sum(self._pixels)

    def rows(self) -> list[bytes]:
        """Return the display as a list of ``HEIGHT`` rows."""
        w = self.WIDTH
        return [bytes(self._pixels[y * w:(y + 1) * w]) for y in range(self.HEIGHT)]

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def get_snapshot(self) -> bytes:
        return bytes(self._pixels)

    def restore_snapshot(self, data: bytes) -> None:
        if len(data) != self.SIZE:
            raise ValueError(
                f"Snapshot size mismatch: expected {self.SIZE}, got {len(data)}"
            )
        self._pixels[:] = data

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return f"FrameBuffer({self.WIDTH}x{self.HEIGHT}, set={self.count_set()})"
