# CHIP-8 interpreter core
"""
The interpreter engine: memory, registers, timers, display and keypad
state, plus the fetch/decode/execute loop.

Nothing in this package imports pygame; the platform layer drives it.
"""

from chip8emu.core.cpu import Chip8CPU
from chip8emu.core.decoder import decode, disassemble
from chip8emu.core.errors import (
    Chip8Error,
    FatalExecutionError,
    InvalidKeyError,
    InvalidRegisterError,
    MisalignedPCError,
    RomLoadError,
    RomTooLargeError,
    StackOverflowError,
    StackUnderflowError,
    UnknownOpcodeError,
)
from chip8emu.core.machine import Chip8Machine
from chip8emu.core.state import Chip8State
from chip8emu.core.types import Instruction, Op

__all__ = [
    "Chip8CPU",
    "Chip8Machine",
    "Chip8State",
    "Instruction",
    "Op",
    "decode",
    "disassemble",
    # errors
    "Chip8Error",
    "FatalExecutionError",
    "InvalidKeyError",
    "InvalidRegisterError",
    "MisalignedPCError",
    "RomLoadError",
    "RomTooLargeError",
    "StackOverflowError",
    "StackUnderflowError",
    "UnknownOpcodeError",
]
