"""
pygame host for a CHIP-8 session.

One loop iteration is one 60 Hz frame: read the keyboard, let the
machine run its instruction budget and tick its timers, drive the
beeper, then present the 64x32 display stretched to the window.

Typical usage::

    from chip8emu.platform.window import Window

    machine = MachineFactory.create("pong.ch8")
    Window(machine, scale=15).run()
"""

from __future__ import annotations

import logging
import time

import pygame

from chip8emu.platform.audio import DEFAULT_TONE_HZ, AudioDevice
from chip8emu.platform.input_handler import InputHandler
from chip8emu.shell.frame_renderer import (
    DEFAULT_BACKGROUND,
    DEFAULT_FOREGROUND,
    FrameRenderer,
)

logger = logging.getLogger(__name__)

_CAPTION: str = "CHIP-8"
_SCALE_RANGE: tuple[int, int] = (1, 30)
_CAPTION_REFRESH_S: float = 1.0


class Window:
    """Display window and frame loop for one machine.

    Parameters
    ----------
    machine:
        A :class:`~chip8emu.core.machine.Chip8Machine` with a ROM loaded.
    scale:
        Window pixels per CHIP-8 pixel, clamped to 1..30.
    title:
        ROM title appended to the caption.
    enable_audio:
        ``False`` keeps the mixer closed.
    tone_hz:
        Beeper frequency.
    background, foreground:
        ``0xRRGGBB`` colours for clear and set pixels.
    """

    def __init__(
        self,
        machine,
        scale: int = 15,
        *,
        title: str = "",
        enable_audio: bool = True,
        tone_hz: int = DEFAULT_TONE_HZ,
        background: int = DEFAULT_BACKGROUND,
        foreground: int = DEFAULT_FOREGROUND,
    ) -> None:
        lo, hi = _SCALE_RANGE
        self.machine = machine
        self.scale: int = max(lo, min(hi, scale))
        self.paused: bool = False
        self._caption: str = f"{_CAPTION} - {title}" if title else _CAPTION
        self._active: bool = False

        if not pygame.get_init():
            pygame.init()

        size = (machine.screen_width * self.scale, machine.screen_height * self.scale)
        self._screen: pygame.Surface = pygame.display.set_mode(size, pygame.RESIZABLE)
        pygame.display.set_caption(self._caption)
        self._clock = pygame.time.Clock()

        self._renderer = FrameRenderer(machine, background=background, foreground=foreground)
        self._beeper = AudioDevice(machine, enabled=enable_audio, tone_hz=tone_hz)
        self._keys = InputHandler(machine)

        self._frames_since_caption: int = 0
        self._caption_time: float = 0.0

        logger.info(
            "Display %dx%d at scale %d, %d instructions per frame",
            size[0], size[1], self.scale, machine.cycles_per_frame,
        )

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Run frames until the window is closed or Escape is pressed.

        A :class:`~chip8emu.core.errors.FatalExecutionError` raised by the
        machine ends the loop; pygame is shut down before it propagates.
        """
        self._active = True
        self._caption_time = time.monotonic()
        logger.info("Running at %d Hz", self.machine.frame_hz)
        try:
            while self._active:
                self._frame()
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self.close()

    def _frame(self) -> None:
        self._keys.poll()
        if self._keys.quit_requested:
            self._active = False
            return
        self._handle_controls()

        if not self.paused:
            self.machine.compute_next_frame()
        self._beeper.update()

        self._present()
        self._clock.tick(self.machine.frame_hz)
        self._refresh_caption()

    def _handle_controls(self) -> None:
        if self._keys.take_pause_toggle():
            self.paused = not self.paused
            logger.info("Paused" if self.paused else "Resumed")
        if self._keys.take_reset_request():
            logger.info("Machine reset")
            self.machine.reset()
            self._keys.clear_all()

    def _present(self) -> None:
        """Blit the rendered frame stretched over the current window size."""
        frame = self._renderer.render()
        target = self._screen.get_size()
        if frame.get_size() != target:
            frame = pygame.transform.scale(frame, target)
        self._screen.blit(frame, (0, 0))
        pygame.display.flip()

    def _refresh_caption(self) -> None:
        self._frames_since_caption += 1
        now = time.monotonic()
        window = now - self._caption_time
        if window < _CAPTION_REFRESH_S:
            return
        rate = self._frames_since_caption / window
        self._frames_since_caption = 0
        self._caption_time = now

        if self.machine.machine_halt:
            status = "halted"
        elif self.paused:
            status = "paused"
        else:
            status = f"{rate:.0f} fps"
        pygame.display.set_caption(f"{self._caption}  [{status}]")

    def close(self) -> None:
        logger.info("Closing window")
        self._beeper.shutdown()
        pygame.quit()
