"""
Chip8Machine -- one interpreter session.

The machine owns a :class:`~chip8emu.core.state.Chip8State` and the
:class:`~chip8emu.core.cpu.Chip8CPU` that drives it, and exposes the
narrow interface the host collaborators use:

* **Program load** -- :meth:`load_rom` copies a ROM image to 0x200.
* **Display export** -- :attr:`frame_buffer` / :attr:`display`.
* **Sound signal** -- :attr:`sound_active`.
* **Key input** -- :meth:`set_keys` (full snapshot) or
  ``input_state.raise_input`` (per-key events, applied at the next frame).

The host calls :meth:`step` at the instruction rate and
:meth:`tick_timers` at 60 Hz, or :meth:`compute_next_frame` once per
60 Hz frame to do both.

A :class:`~chip8emu.core.errors.FatalExecutionError` halts the machine:
:attr:`machine_halt` becomes ``True``, :attr:`fault` keeps the exception,
and further steps do nothing until :meth:`reset` or :meth:`load_rom`.
"""

from __future__ import annotations

import random
from typing import Optional, Sequence

from chip8emu.core.chip8_tables import (
    MAX_ROM_SIZE,
    PROGRAM_START,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    TIMER_HZ,
)
from chip8emu.core.cpu import Chip8CPU
from chip8emu.core.decoder import decode, disassemble
from chip8emu.core.errors import FatalExecutionError, RomTooLargeError
from chip8emu.core.frame_buffer import FrameBuffer
from chip8emu.core.input_state import InputState
from chip8emu.core.logger import DEFAULT_LOGGER, LOG_ERROR, LOG_INFO, ILogger
from chip8emu.core.state import Chip8State
from chip8emu.core.types import Instruction

# Default instructions per 60 Hz frame (600 instructions per second).
DEFAULT_CYCLES_PER_FRAME: int = 10


class Chip8Machine:
    """A CHIP-8 session: state, engine and host-facing interface.

    Parameters
    ----------
    strict:
        Passed to the CPU; unknown opcodes become fatal.
    rng:
        Random source for ``CXKK``.
    logger:
        Core diagnostic logger.  Defaults to the silent
        :class:`~chip8emu.core.logger.NullLogger`: skipped unknown opcodes
        are still counted in ``cpu.unknown_opcodes`` but only reported
        when a :class:`~chip8emu.core.logger.ConsoleLogger` is passed.
    cycles_per_frame:
        Instructions executed by each :meth:`compute_next_frame`.
        Clamped to >= 1.
    """

    frame_hz: int = TIMER_HZ
    screen_width: int = SCREEN_WIDTH
    screen_height: int = SCREEN_HEIGHT

    def __init__(
        self,
        *,
        strict: bool = False,
        rng: Optional[random.Random] = None,
        logger: Optional[ILogger] = None,
        cycles_per_frame: int = DEFAULT_CYCLES_PER_FRAME,
    ) -> None:
        self.logger: ILogger = logger if logger is not None else DEFAULT_LOGGER
        self.state: Chip8State = Chip8State()
        self.cpu: Chip8CPU = Chip8CPU(
            self.state, strict=strict, rng=rng, logger=self.logger
        )
        self.cycles_per_frame: int = max(1, cycles_per_frame)

        self.rom: bytes = b""
        self.machine_halt: bool = False
        self.fault: Optional[FatalExecutionError] = None
        self.frame_number: int = 0

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------

    @property
    def frame_buffer(self) -> FrameBuffer:
        return self.state.frame_buffer

    @property
    def input_state(self) -> InputState:
        return self.state.input_state

    @property
    def display(self) -> memoryview:
        """Read-only 64x32 pixel buffer (row-major, 0/1 per byte)."""
        return self.state.frame_buffer.pixels

    @property
    def sound_active(self) -> bool:
        """``True`` while the sound timer is non-zero."""
        return self.state.sound_active

    @property
    def pc(self) -> int:
        return self.state.pc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load_rom(self, rom: bytes) -> None:
        """Reset the machine and copy *rom* into memory at 0x200.

        Raises:
            RomTooLargeError: If *rom* exceeds the 3584 bytes available.
                Nothing is modified in that case.
        """
        rom = bytes(rom)
        if len(rom) > MAX_ROM_SIZE:
            raise RomTooLargeError(len(rom), MAX_ROM_SIZE)
        self.rom = rom
        self.reset()
        self.logger.log(LOG_INFO, f"Loaded {len(rom)} byte ROM at 0x{PROGRAM_START:03X}")

    def reset(self) -> None:
        """Return to the power-on state with the current ROM reloaded."""
        self.state.reset()
        self.state.memory.write_block(PROGRAM_START, self.rom)
        self.cpu.reset()
        self.machine_halt = False
        self.fault = None
        self.frame_number = 0

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def step(self) -> Optional[Instruction]:
        """Execute one instruction.

        Returns the executed instruction, or ``None`` if the machine is
        halted.

        Raises:
            FatalExecutionError: The machine is halted before this
                propagates.
        """
        if self.machine_halt:
            return None
        try:
            return self.cpu.step()
        except FatalExecutionError as exc:
            self.machine_halt = True
            self.fault = exc
            self.logger.log(LOG_ERROR, f"Execution halted: {exc}")
            raise

    def tick_timers(self) -> None:
        self.cpu.tick_timers()

    def set_keys(self, states: Sequence[bool]) -> None:
        """Replace the keypad state with a 16-entry snapshot, effective
        immediately."""
        self.input_state.load_keys(states)
        self.input_state.capture_input_state()

    def compute_next_frame(self) -> None:
        """Advance by one 60 Hz frame.

        Captures staged input, runs :attr:`cycles_per_frame` instructions
        and ticks the timers once.  Does nothing while halted.
        """
        if self.machine_halt:
            return
        self.input_state.capture_input_state()
        self.frame_number += 1
        for _ in range(self.cycles_per_frame):
            self.step()
        self.tick_timers()

    # ------------------------------------------------------------------
    # Debugging helpers
    # ------------------------------------------------------------------

    def disassemble(self, address: int = PROGRAM_START, count: int = 16) -> list[str]:
        """Return ``count`` disassembled lines starting at *address*."""
        mem = self.state.memory
        lines = []
        for k in range(count):
            addr = (address + 2 * k) & 0xFFF
            word = mem.read_word(addr)
            lines.append(f"0x{addr:03X}: {word:04X}  {disassemble(decode(word))}")
        return lines

    # ------------------------------------------------------------------
    # Serialisation helpers (save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> dict:
        return {
            "state": self.state.get_snapshot(),
            "rom": self.rom,
            "machine_halt": self.machine_halt,
            "fault": self.fault,
            "frame_number": self.frame_number,
            "instructions_executed": self.cpu.instructions_executed,
        }

    def restore_snapshot(self, snapshot: dict) -> None:
        self.state.restore_snapshot(snapshot["state"])
        self.rom = snapshot.get("rom", self.rom)
        self.machine_halt = snapshot.get("machine_halt", False)
        self.fault = snapshot.get("fault") if self.machine_halt else None
        self.frame_number = snapshot.get("frame_number", 0)
        self.cpu.instructions_executed = snapshot.get("instructions_executed", 0)

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"rom={len(self.rom)} bytes, "
            f"pc=0x{self.state.pc:03X}, "
            f"frame={self.frame_number}, "
            f"halted={self.machine_halt})"
        )
