"""
Machine creation factory.

Creates a :class:`~chip8emu.core.machine.Chip8Machine` with a ROM already
loaded, from a file path and optional interpreter settings.

Typical usage::

    machine = MachineFactory.create("games/pong.ch8")
    machine = MachineFactory.create("test.ch8", strict=True, seed=1234)
"""

from __future__ import annotations

import logging
import os
import random
from typing import Optional

from chip8emu.core.logger import ILogger
from chip8emu.core.machine import DEFAULT_CYCLES_PER_FRAME, Chip8Machine
from chip8emu.shell.services.rom_bytes_service import RomBytesService

logger = logging.getLogger(__name__)


class MachineFactory:
    """Create an interpreter session from a ROM file."""

    @staticmethod
    def create(
        rom_path: str,
        *,
        strict: bool = False,
        seed: Optional[int] = None,
        cycles_per_frame: int = DEFAULT_CYCLES_PER_FRAME,
        core_logger: Optional[ILogger] = None,
    ) -> Chip8Machine:
        """Build a machine and load the ROM at *rom_path* into it.

        Parameters
        ----------
        rom_path:
            Filesystem path to the program image.
        strict:
            Treat unknown opcodes as fatal.
        seed:
            Seed for the random-number instruction.  ``None`` seeds from
            the operating system.
        cycles_per_frame:
            Instructions per 60 Hz frame.
        core_logger:
            Diagnostic logger handed to the interpreter core.

        Raises
        ------
        FileNotFoundError
            If *rom_path* does not exist.
        RomLoadError
            If the ROM is empty or too large.
        """
        rom_path = os.path.expanduser(rom_path)
        logger.info("Loading ROM: %s", rom_path)
        rom_bytes = RomBytesService.read(rom_path)
        logger.info("ROM size: %d bytes", len(rom_bytes))

        rng = random.Random(seed)
        if seed is not None:
            logger.info("Random seed: %d", seed)

        machine = Chip8Machine(
            strict=strict,
            rng=rng,
            logger=core_logger,
            cycles_per_frame=cycles_per_frame,
        )
        machine.load_rom(rom_bytes)
        logger.info("Machine created: %r", machine)
        return machine

    @staticmethod
    def describe(rom_path: str) -> dict[str, str]:
        """Return a human-readable description of a ROM file.

        Returns a dict with keys: ``title``, ``rom_size``, ``free_bytes``,
        ``address_range``, ``opcodes``.
        """
        data = RomBytesService.read(os.path.expanduser(rom_path))
        info = RomBytesService.describe(rom_path, data)
        return {
            "title": info.title,
            "rom_size": f"{info.size} bytes",
            "free_bytes": f"{info.free_bytes} bytes",
            "address_range": f"0x200-0x{info.end_address:03X}",
            "opcodes": f"{info.known_opcodes} known, {info.unknown_opcodes} unknown/data",
        }
