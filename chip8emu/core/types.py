"""
Core enumerations and type definitions for the CHIP-8 interpreter.

An opcode word is decoded once into an :class:`Instruction`: the
instruction kind (:class:`Op`) plus every operand field the standard
encoding can carry.  Handlers pick the fields they need.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Op(IntEnum):
    UNKNOWN = 0
    NOP = 1         # 0000
    CLS = 2         # 00E0
    RET = 3         # 00EE
    JP = 4          # 1NNN
    CALL = 5        # 2NNN
    SE_VX_KK = 6    # 3XKK
    SNE_VX_KK = 7   # 4XKK
    SE_VX_VY = 8    # 5XY0
    LD_VX_KK = 9    # 6XKK
    ADD_VX_KK = 10  # 7XKK
    LD_VX_VY = 11   # 8XY0
    OR = 12         # 8XY1
    AND = 13        # 8XY2
    XOR = 14        # 8XY3
    ADD_VX_VY = 15  # 8XY4
    SUB = 16        # 8XY5
    SHR = 17        # 8XY6
    SUBN = 18       # 8XY7
    SHL = 19        # 8XYE
    SNE_VX_VY = 20  # 9XY0
    LD_I = 21       # ANNN
    JP_V0 = 22      # BNNN
    RND = 23        # CXKK
    DRW = 24        # DXYN
    SKP = 25        # EX9E
    SKNP = 26       # EXA1
    LD_VX_DT = 27   # FX07
    LD_VX_K = 28    # FX0A
    LD_DT_VX = 29   # FX15
    LD_ST_VX = 30   # FX18
    ADD_I_VX = 31   # FX1E
    LD_F_VX = 32    # FX29
    LD_B_VX = 33    # FX33
    LD_I_VX = 34    # FX55
    LD_VX_I = 35    # FX65


@dataclass(frozen=True)
class Instruction:
    """A decoded 16-bit opcode word.

    ``x`` and ``y`` are register indices (second and third nibble),
    ``n`` the low nibble, ``kk`` the low byte and ``nnn`` the low
    twelve bits.
    """

    raw: int
    op: Op
    x: int
    y: int
    n: int
    kk: int
    nnn: int

    @property
    def known(self) -> bool:
        return self.op != Op.UNKNOWN
