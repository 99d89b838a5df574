"""
Memory -- the 4 KB CHIP-8 address space.

Every access is masked with 0xFFF, so the address space is circular:
reading or writing past 0xFFF wraps around to 0x000 instead of raising.

Layout
------

=============  ===========================================
Range          Contents
=============  ===========================================
0x000-0x1FF    Reserved for the interpreter
0x050-0x09F    Built-in hexadecimal font (16 x 5 bytes)
0x200-0xFFF    Program image and working storage
=============  ===========================================
"""

from __future__ import annotations

from chip8emu.core.chip8_tables import ADDRESS_MASK, FONT_ADDR, FONTSET, MEMORY_SIZE


class Memory:
    """4096 bytes of RAM with wrap-around addressing."""

    SIZE: int = MEMORY_SIZE

    def __init__(self) -> None:
        self._data: bytearray = bytearray(self.SIZE)
        self.reset()

    def reset(self) -> None:
        """Zero all memory and reinstall the font."""
        self._data[:] = bytes(self.SIZE)
        self._data[FONT_ADDR:FONT_ADDR + len(FONTSET)] = FONTSET

    def __getitem__(self, addr: int) -> int:
        return self._data[addr & ADDRESS_MASK]

    def __setitem__(self, addr: int, value: int) -> None:
        self._data[addr & ADDRESS_MASK] = value & 0xFF

    def __len__(self) -> int:
        return self.SIZE

    def read_word(self, addr: int) -> int:
        """Read a big-endian 16-bit word at *addr* and *addr* + 1."""
        return (self[addr] << 8) | self[addr + 1]

    def read_block(self, addr: int, length: int) -> bytes:
        """Return *length* bytes starting at *addr*, wrapping at the end."""
        return bytes(self[addr + i] for i in range(length))

    def write_block(self, addr: int, data: bytes) -> None:
        """Copy *data* into memory starting at *addr*, wrapping at the end."""
        for i, value in enumerate(data):
            self[addr + i] = value

    # ------------------------------------------------------------------
    # Serialisation helpers (for save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> bytes:
        """Return an immutable copy of the memory contents."""
        return bytes(self._data)

    def restore_snapshot(self, data: bytes) -> None:
        """Restore memory contents from a previous snapshot.

        Raises:
            ValueError: If *data* is not the expected length.
        """
        if len(data) != self.SIZE:
            raise ValueError(
                f"Snapshot size mismatch: expected {self.SIZE}, got {len(data)}"
            )
        self._data[:] = data

    def __repr__(self) -> str:
        return f"Memory(size={self.SIZE})"
