"""
Input handler.
Maps keyboard keys to the 16-key CHIP-8 keypad.

Keyboard layout
---------------

The left-hand 4x4 block of a QWERTY keyboard stands in for the keypad::

    Keyboard        Keypad
    1 2 3 4         1 2 3 C
    Q W E R   ->    4 5 6 D
    A S D F         7 8 9 E
    Z X C V         A 0 B F

===========  ==========================
Key          Action
===========  ==========================
Escape       Quit
P            Pause / resume
F1           Reset the machine
===========  ==========================
"""

from __future__ import annotations

import logging

import pygame

logger = logging.getLogger(__name__)


_KEY_MAP: dict[int, int] = {
    pygame.K_1: 0x1,
    pygame.K_2: 0x2,
    pygame.K_3: 0x3,
    pygame.K_4: 0xC,

    pygame.K_q: 0x4,
    pygame.K_w: 0x5,
    pygame.K_e: 0x6,
    pygame.K_r: 0xD,

    pygame.K_a: 0x7,
    pygame.K_s: 0x8,
    pygame.K_d: 0x9,
    pygame.K_f: 0xE,

    pygame.K_z: 0xA,
    pygame.K_x: 0x0,
    pygame.K_c: 0xB,
    pygame.K_v: 0xF,
}


class InputHandler:
    """Translates pygame keyboard events into keypad input.

    Parameters
    ----------
    machine:
        The emulated machine.  Expected interface:

        * ``input_state.raise_input(key: int, down: bool)``
    """

    def __init__(self, machine: object) -> None:
        self._machine = machine
        self._quit_requested: bool = False
        self._pause_toggled: bool = False
        self._reset_requested: bool = False

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def quit_requested(self) -> bool:
        """``True`` if the user pressed Escape or closed the window."""
        return self._quit_requested

    def take_pause_toggle(self) -> bool:
        """Return ``True`` once per press of the pause key."""
        toggled, self._pause_toggled = self._pause_toggled, False
        return toggled

    def take_reset_request(self) -> bool:
        """Return ``True`` once per press of the reset key."""
        requested, self._reset_requested = self._reset_requested, False
        return requested

    def poll(self) -> None:
        """Pump the pygame event queue and process all pending events.

        This should be called once at the top of each frame.
        """
        for event in pygame.event.get():
            self.handle_event(event)

    def handle_event(self, event: pygame.event.Event) -> None:
        """Process a single pygame event."""
        if event.type == pygame.QUIT:
            self._quit_requested = True
        elif event.type == pygame.KEYDOWN:
            self._on_key_down(event)
        elif event.type == pygame.KEYUP:
            self._on_key_up(event)

    def clear_all(self) -> None:
        """Release every keypad key."""
        for key in _KEY_MAP.values():
            self._send(key, False)

    # ------------------------------------------------------------------
    # Keyboard handlers
    # ------------------------------------------------------------------

    def _on_key_down(self, event: pygame.event.Event) -> None:
        key = event.key

        if key == pygame.K_ESCAPE:
            self._quit_requested = True
            return
        if key == pygame.K_p:
            self._pause_toggled = True
            return
        if key == pygame.K_F1:
            self._reset_requested = True
            return

        pad = _KEY_MAP.get(key)
        if pad is not None:
            self._send(pad, True)

    def _on_key_up(self, event: pygame.event.Event) -> None:
        pad = _KEY_MAP.get(event.key)
        if pad is not None:
            self._send(pad, False)

    # ------------------------------------------------------------------
    # Machine bridge
    # ------------------------------------------------------------------

    def _send(self, key: int, down: bool) -> None:
        input_state = getattr(self._machine, "input_state", None)
        if input_state is None:
            return
        logger.debug("Keypad %X %s", key, "down" if down else "up")
        input_state.raise_input(key, down)
