"""
Exception hierarchy for the CHIP-8 interpreter.

* :class:`RomLoadError` -- the ROM image cannot be loaded.  Raised before
  any memory is written.
* :class:`FatalExecutionError` -- the running program corrupted the
  machine (stack overflow/underflow, odd PC, or an unknown opcode in
  strict mode).  The machine halts.
* :class:`InvalidRegisterError` / :class:`InvalidKeyError` -- a caller
  passed an index outside 0..15.
"""

from __future__ import annotations

from typing import Optional


class Chip8Error(Exception):
    """Base class for all interpreter errors."""


class RomLoadError(Chip8Error):
    """The ROM image could not be loaded into memory."""


class RomTooLargeError(RomLoadError):
    """The ROM image does not fit between 0x200 and the end of memory."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"ROM is {size} bytes; at most {limit} bytes fit in memory")
        self.size: int = size
        self.limit: int = limit


class FatalExecutionError(Chip8Error):
    """Execution cannot continue.

    Attributes:
        pc: Address of the instruction that faulted, when known.
    """

    def __init__(self, message: str, pc: Optional[int] = None) -> None:
        if pc is not None:
            message = f"{message} (PC=0x{pc:03X})"
        super().__init__(message)
        self.pc: Optional[int] = pc


class StackOverflowError(FatalExecutionError):
    pass


class StackUnderflowError(FatalExecutionError):
    pass


class MisalignedPCError(FatalExecutionError):
    pass


class UnknownOpcodeError(FatalExecutionError):
    """Raised for unrecognised opcodes when the CPU runs in strict mode."""

    def __init__(self, opcode: int, pc: Optional[int] = None) -> None:
        super().__init__(f"Unknown opcode 0x{opcode:04X}", pc)
        self.opcode: int = opcode


class InvalidRegisterError(Chip8Error, IndexError):
    def __init__(self, index: int) -> None:
        super().__init__(f"Register index {index} out of range [0, 15]")
        self.index: int = index


class InvalidKeyError(Chip8Error, IndexError):
    def __init__(self, key: int) -> None:
        super().__init__(f"Key index {key} out of range [0, 15]")
        self.key: int = key
