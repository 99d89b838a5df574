"""
Chip8State -- the complete machine state the CPU operates on.

Holds the components every CHIP-8 session needs:

* **Memory** -- 4 KB circular address space with the font preloaded.
* **Registers** -- V0..VF (8-bit), I (16-bit), PC (12-bit, even).
* **Stack** -- up to 16 return addresses plus the stack pointer.
* **Timers** -- delay and sound, 8-bit, decremented at 60 Hz.
* **FrameBuffer** -- 64x32 1-bit display.
* **InputState** -- 16-key keypad.

VF is an ordinary register slot.  Arithmetic, shift and draw handlers
overwrite it with their carry/borrow/collision flag; programs may also
read and write it as data.

The key-wait micro-state (``waiting_for_key`` and friends) lives here as
well so that a snapshot captures a program blocked in ``FX0A``.
"""

from __future__ import annotations

from chip8emu.core.chip8_tables import (
    FLAG_REGISTER,
    NUM_REGISTERS,
    PROGRAM_START,
    STACK_DEPTH,
)
from chip8emu.core.errors import (
    InvalidRegisterError,
    StackOverflowError,
    StackUnderflowError,
)
from chip8emu.core.frame_buffer import FrameBuffer
from chip8emu.core.input_state import InputState
from chip8emu.core.memory import Memory


class Chip8State:
    """Memory and state store for one interpreter session."""

    def __init__(self) -> None:
        self.memory: Memory = Memory()
        self.frame_buffer: FrameBuffer = FrameBuffer()
        self.input_state: InputState = InputState()

        self._v: bytearray = bytearray(NUM_REGISTERS)
        self.i: int = 0
        self.pc: int = PROGRAM_START

        self._stack: list[int] = [0] * STACK_DEPTH
        self.sp: int = 0

        self._delay_timer: int = 0
        self._sound_timer: int = 0

        # FX0A micro-state.
        self.waiting_for_key: bool = False
        self.wait_register: int = 0
        self.wait_prev_keys: tuple[bool, ...] = ()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return to the power-on state: memory zeroed (font kept), PC at
        0x200, registers, stack and timers cleared, display blank."""
        self.memory.reset()
        self.frame_buffer.clear()
        self.input_state.clear_all_input()
        self._v[:] = bytes(NUM_REGISTERS)
        self.i = 0
        self.pc = PROGRAM_START
        self._stack[:] = [0] * STACK_DEPTH
        self.sp = 0
        self._delay_timer = 0
        self._sound_timer = 0
        self.cancel_key_wait()

    # ------------------------------------------------------------------
    # Registers
    # ------------------------------------------------------------------

    def get_register(self, index: int) -> int:
        if not 0 <= index < NUM_REGISTERS:
            raise InvalidRegisterError(index)
        return self._v[index]

    def set_register(self, index: int, value: int) -> None:
        if not 0 <= index < NUM_REGISTERS:
            raise InvalidRegisterError(index)
        self._v[index] = value & 0xFF

    @property
    def vf(self) -> int:
        return self._v[FLAG_REGISTER]

    @vf.setter
    def vf(self, value: int) -> None:
        self._v[FLAG_REGISTER] = value & 0xFF

    @property
    def registers(self) -> tuple[int, ...]:
        """Copy of V0..VF."""
        return tuple(self._v)

    # ------------------------------------------------------------------
    # Stack
    # ------------------------------------------------------------------

    def push(self, address: int) -> None:
        """Push a return address.

        Raises:
            StackOverflowError: If all 16 slots are in use.
        """
        if self.sp >= STACK_DEPTH:
            raise StackOverflowError("Stack overflow", self.pc)
        self._stack[self.sp] = address & 0xFFFF
        self.sp += 1

    def pop(self) -> int:
        """Pop the most recent return address.

        Raises:
            StackUnderflowError: If the stack is empty.
        """
        if self.sp == 0:
            raise StackUnderflowError("Stack underflow", self.pc)
        self.sp -= 1
        return self._stack[self.sp]

    @property
    def stack(self) -> tuple[int, ...]:
        """Live stack entries, oldest first."""
        return tuple(self._stack[:self.sp])

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    @property
    def delay_timer(self) -> int:
        return self._delay_timer

    @delay_timer.setter
    def delay_timer(self, value: int) -> None:
        self._delay_timer = value & 0xFF

    @property
    def sound_timer(self) -> int:
        return self._sound_timer

    @sound_timer.setter
    def sound_timer(self, value: int) -> None:
        self._sound_timer = value & 0xFF

    def decrement_timers(self) -> None:
        """Decrement both timers by one, stopping at zero."""
        if self._delay_timer > 0:
            self._delay_timer -= 1
        if self._sound_timer > 0:
            self._sound_timer -= 1

    @property
    def sound_active(self) -> bool:
        return self._sound_timer > 0

    # ------------------------------------------------------------------
    # Key wait
    # ------------------------------------------------------------------

    def begin_key_wait(self, register: int) -> None:
        self.waiting_for_key = True
        self.wait_register = register
        self.wait_prev_keys = self.input_state.keys

    def cancel_key_wait(self) -> None:
        self.waiting_for_key = False
        self.wait_register = 0
        self.wait_prev_keys = ()

    # ------------------------------------------------------------------
    # Serialisation helpers (save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> dict:
        """Return an in-memory snapshot of the complete state."""
        return {
            "memory": self.memory.get_snapshot(),
            "frame_buffer": self.frame_buffer.get_snapshot(),
            "input_state": self.input_state.get_snapshot(),
            "v": bytes(self._v),
            "i": self.i,
            "pc": self.pc,
            "stack": list(self._stack),
            "sp": self.sp,
            "delay_timer": self._delay_timer,
            "sound_timer": self._sound_timer,
            "waiting_for_key": self.waiting_for_key,
            "wait_register": self.wait_register,
            "wait_prev_keys": list(self.wait_prev_keys),
        }

    def restore_snapshot(self, snap: dict) -> None:
        """Restore state captured by :meth:`get_snapshot`."""
        self.memory.restore_snapshot(snap["memory"])
        self.frame_buffer.restore_snapshot(snap["frame_buffer"])
        self.input_state.restore_snapshot(snap["input_state"])
        self._v[:] = snap["v"]
        self.i = snap["i"]
        self.pc = snap["pc"]
        self._stack[:] = snap["stack"]
        self.sp = snap["sp"]
        self._delay_timer = snap["delay_timer"]
        self._sound_timer = snap["sound_timer"]
        self.waiting_for_key = snap["waiting_for_key"]
        self.wait_register = snap["wait_register"]
        self.wait_prev_keys = tuple(snap["wait_prev_keys"])

    def __repr__(self) -> str:
        regs = " ".join(f"V{n:X}={v:02X}" for n, v in enumerate(self._v))
        return (
            f"Chip8State(PC=0x{self.pc:03X} I=0x{self.i:03X} SP={self.sp} "
            f"DT={self._delay_timer} ST={self._sound_timer} {regs})"
        )
