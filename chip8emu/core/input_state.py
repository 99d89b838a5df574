"""
InputState -- the 16-key hexadecimal keypad, double-buffered.

Host code writes key events into a staging buffer (:meth:`raise_input`,
:meth:`load_keys`).  At each frame boundary the machine calls
:meth:`capture_input_state`, which copies the staging buffer into the
captured buffer the CPU reads through :meth:`is_pressed`.

Keypad layout::

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F
"""

from __future__ import annotations

from typing import Sequence

from chip8emu.core.chip8_tables import NUM_KEYS
from chip8emu.core.errors import InvalidKeyError


def _check_key(key: int) -> None:
    if not 0 <= key < NUM_KEYS:
        raise InvalidKeyError(key)


class InputState:
    """Keypad state with a staging buffer and a captured buffer."""

    def __init__(self) -> None:
        self._next_keys: list[bool] = [False] * NUM_KEYS
        self._keys: list[bool] = [False] * NUM_KEYS

    # ------------------------------------------------------------------
    # Frame-boundary snapshot
    # ------------------------------------------------------------------

    def capture_input_state(self) -> None:
        """Copy the staging buffer to the captured buffer."""
        self._keys[:] = self._next_keys

    # ------------------------------------------------------------------
    # Host-side input injection (staging buffer)
    # ------------------------------------------------------------------

    def raise_input(self, key: int, down: bool) -> None:
        """Record that *key* went down (``True``) or up (``False``)."""
        _check_key(key)
        self._next_keys[key] = bool(down)

    def load_keys(self, states: Sequence[bool]) -> None:
        """Overwrite the whole staging buffer with a 16-entry snapshot."""
        if len(states) != NUM_KEYS:
            raise ValueError(f"Expected {NUM_KEYS} key states, got {len(states)}")
        self._next_keys[:] = [bool(s) for s in states]

    # ------------------------------------------------------------------
    # CPU-side access (captured buffer)
    # ------------------------------------------------------------------

    def is_pressed(self, key: int) -> bool:
        _check_key(key)
        return self._keys[key]

    def set_key(self, key: int, down: bool) -> None:
        """Set a key directly in the captured buffer (and staging buffer)."""
        _check_key(key)
        self._keys[key] = bool(down)
        self._next_keys[key] = bool(down)

    def pressed_keys(self) -> list[int]:
        """Indices of keys held in the captured buffer, ascending."""
        return [k for k in range(NUM_KEYS) if self._keys[k]]

    @property
    def keys(self) -> tuple[bool, ...]:
        return tuple(self._keys)

    # ------------------------------------------------------------------
    # Bulk clear / serialisation
    # ------------------------------------------------------------------

    def clear_all_input(self) -> None:
        """Release every key in both buffers."""
        self._next_keys[:] = [False] * NUM_KEYS
        self._keys[:] = [False] * NUM_KEYS

    def get_snapshot(self) -> dict:
        return {"next": list(self._next_keys), "captured": list(self._keys)}

    def restore_snapshot(self, snapshot: dict) -> None:
        self._next_keys[:] = [bool(s) for s in snapshot["next"]]
        self._keys[:] = [bool(s) for s in snapshot["captured"]]

    def __repr__(self) -> str:
        held = "".join(f"{k:X}" for k in self.pressed_keys())
        return f"InputState(pressed={held or '-'})"
