"""
Fixed machine constants: address map, display geometry and the built-in
hexadecimal font.
"""

# Address space
MEMORY_SIZE: int = 0x1000
ADDRESS_MASK: int = MEMORY_SIZE - 1
PROGRAM_START: int = 0x200
MAX_ROM_SIZE: int = MEMORY_SIZE - PROGRAM_START

# Register file / stack / keypad
NUM_REGISTERS: int = 16
FLAG_REGISTER: int = 0xF
STACK_DEPTH: int = 16
NUM_KEYS: int = 16

# Display
SCREEN_WIDTH: int = 64
SCREEN_HEIGHT: int = 32
SPRITE_WIDTH: int = 8

# Timers tick at a fixed rate independent of the instruction rate.
TIMER_HZ: int = 60

# Font: sixteen 4x5 glyphs, one byte per row, high nibble used.
FONT_ADDR: int = 0x050
FONT_GLYPH_SIZE: int = 5

# fmt: off
FONTSET: bytes = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])
# fmt: on

assert len(FONTSET) == 16 * FONT_GLYPH_SIZE, f"Font must have 80 bytes, got {len(FONTSET)}"
assert FONT_ADDR + len(FONTSET) <= PROGRAM_START


def font_address(digit: int) -> int:
    """Return the address of the glyph for hexadecimal *digit* (low nibble)."""
    return FONT_ADDR + FONT_GLYPH_SIZE * (digit & 0xF)
