"""
ROM loading service.

Responsibilities:
  - Read ROM images from disk.
  - Reject images that cannot fit in memory before the machine is touched.
  - Summarise a ROM for ``--info`` output.

CHIP-8 ROMs carry no header: the file is the raw program image loaded at
0x200.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from chip8emu.core.chip8_tables import MAX_ROM_SIZE, PROGRAM_START
from chip8emu.core.decoder import decode
from chip8emu.core.errors import RomLoadError, RomTooLargeError

# Common extensions used for CHIP-8 program images.
ROM_EXTENSIONS: frozenset[str] = frozenset({".ch8", ".c8", ".rom", ".bin"})


@dataclass(frozen=True)
class RomInfo:
    """Metadata for a ROM image."""

    title: str
    size: int
    free_bytes: int
    end_address: int
    known_opcodes: int
    unknown_opcodes: int


class RomBytesService:
    """Static utility for loading ROM files."""

    @staticmethod
    def read(path: str) -> bytes:
        """Read a ROM image from *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
            RomTooLargeError: If the image does not fit at 0x200.
            RomLoadError: If the file is empty.
        """
        with open(path, "rb") as fh:
            data = fh.read(MAX_ROM_SIZE + 1)
        RomBytesService.validate(data)
        return data

    @staticmethod
    def validate(data: bytes) -> None:
        if not data:
            raise RomLoadError("ROM image is empty")
        if len(data) > MAX_ROM_SIZE:
            raise RomTooLargeError(len(data), MAX_ROM_SIZE)

    @staticmethod
    def describe(path: str, data: bytes) -> RomInfo:
        """Summarise *data*, read from *path*.

        Opcode counts treat the image as a sequence of aligned words; data
        tables embedded in a program will show up as unknown opcodes.
        """
        known = unknown = 0
        for offset in range(0, len(data) - 1, 2):
            if decode((data[offset] << 8) | data[offset + 1]).known:
                known += 1
            else:
                unknown += 1

        return RomInfo(
            title=RomBytesService.title_for(path),
            size=len(data),
            free_bytes=MAX_ROM_SIZE - len(data),
            end_address=PROGRAM_START + len(data) - 1,
            known_opcodes=known,
            unknown_opcodes=unknown,
        )

    @staticmethod
    def title_for(path: str) -> str:
        """Derive a display title from the file name."""
        stem, ext = os.path.splitext(os.path.basename(path))
        if ext.lower() not in ROM_EXTENSIONS:
            stem = os.path.basename(path)
        return stem.replace("_", " ").strip() or "untitled"
