"""
Opcode decoder and disassembler.

:func:`decode` splits a 16-bit opcode word into its operand fields and
classifies it as one :class:`~chip8emu.core.types.Op`.  The result is
cached per opcode value, since every word decodes the same way each
time it is fetched.

Encoding
--------

=========  ======================================================
Field      Bits
=========  ======================================================
major      15..12
X          11..8   (register)
Y          7..4    (register)
N          3..0    (nibble)
KK         7..0    (byte)
NNN        11..0   (address)
=========  ======================================================
"""

from __future__ import annotations

from functools import lru_cache

from chip8emu.core.types import Instruction, Op

# Opcodes identified by the major nibble alone.
_MAJOR_OPS: dict[int, Op] = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_VX_KK,
    0x4: Op.SNE_VX_KK,
    0x6: Op.LD_VX_KK,
    0x7: Op.ADD_VX_KK,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

# 8XYN: selected by N.
_ALU_OPS: dict[int, Op] = {
    0x0: Op.LD_VX_VY,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_VX_VY,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

# EXKK: selected by KK.
_KEY_OPS: dict[int, Op] = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

# FXKK: selected by KK.
_MISC_OPS: dict[int, Op] = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I_VX,
    0x29: Op.LD_F_VX,
    0x33: Op.LD_B_VX,
    0x55: Op.LD_I_VX,
    0x65: Op.LD_VX_I,
}


def _classify(opcode: int) -> Op:
    major = opcode >> 12
    n = opcode & 0x000F
    kk = opcode & 0x00FF

    op = _MAJOR_OPS.get(major)
    if op is not None:
        return op

    if major == 0x0:
        if opcode == 0x0000:
            return Op.NOP
        if opcode == 0x00E0:
            return Op.CLS
        if opcode == 0x00EE:
            return Op.RET
        return Op.UNKNOWN
    if major == 0x5:
        return Op.SE_VX_VY if n == 0 else Op.UNKNOWN
    if major == 0x8:
        return _ALU_OPS.get(n, Op.UNKNOWN)
    if major == 0x9:
        return Op.SNE_VX_VY if n == 0 else Op.UNKNOWN
    if major == 0xE:
        return _KEY_OPS.get(kk, Op.UNKNOWN)
    if major == 0xF:
        return _MISC_OPS.get(kk, Op.UNKNOWN)
    return Op.UNKNOWN


@lru_cache(maxsize=0x10000)
def decode(opcode: int) -> Instruction:
    """Decode a 16-bit opcode word into an :class:`Instruction`.

    Raises:
        ValueError: If *opcode* is not in the range 0..0xFFFF.
    """
    if not 0 <= opcode <= 0xFFFF:
        raise ValueError(f"opcode {opcode:#x} is not a 16-bit word")
    return Instruction(
        raw=opcode,
        op=_classify(opcode),
        x=(opcode >> 8) & 0xF,
        y=(opcode >> 4) & 0xF,
        n=opcode & 0xF,
        kk=opcode & 0xFF,
        nnn=opcode & 0xFFF,
    )


# ---------------------------------------------------------------------------
# Disassembly
# ---------------------------------------------------------------------------

_FORMATS: dict[Op, str] = {
    Op.NOP: "NOP",
    Op.CLS: "CLS",
    Op.RET: "RET",
    Op.JP: "JP 0x{nnn:03X}",
    Op.CALL: "CALL 0x{nnn:03X}",
    Op.SE_VX_KK: "SE V{x:X}, 0x{kk:02X}",
    Op.SNE_VX_KK: "SNE V{x:X}, 0x{kk:02X}",
    Op.SE_VX_VY: "SE V{x:X}, V{y:X}",
    Op.LD_VX_KK: "LD V{x:X}, 0x{kk:02X}",
    Op.ADD_VX_KK: "ADD V{x:X}, 0x{kk:02X}",
    Op.LD_VX_VY: "LD V{x:X}, V{y:X}",
    Op.OR: "OR V{x:X}, V{y:X}",
    Op.AND: "AND V{x:X}, V{y:X}",
    Op.XOR: "XOR V{x:X}, V{y:X}",
    Op.ADD_VX_VY: "ADD V{x:X}, V{y:X}",
    Op.SUB: "SUB V{x:X}, V{y:X}",
    Op.SHR: "SHR V{x:X}",
    Op.SUBN: "SUBN V{x:X}, V{y:X}",
    Op.SHL: "SHL V{x:X}",
    Op.SNE_VX_VY: "SNE V{x:X}, V{y:X}",
    Op.LD_I: "LD I, 0x{nnn:03X}",
    Op.JP_V0: "JP V0, 0x{nnn:03X}",
    Op.RND: "RND V{x:X}, 0x{kk:02X}",
    Op.DRW: "DRW V{x:X}, V{y:X}, {n}",
    Op.SKP: "SKP V{x:X}",
    Op.SKNP: "SKNP V{x:X}",
    Op.LD_VX_DT: "LD V{x:X}, DT",
    Op.LD_VX_K: "LD V{x:X}, K",
    Op.LD_DT_VX: "LD DT, V{x:X}",
    Op.LD_ST_VX: "LD ST, V{x:X}",
    Op.ADD_I_VX: "ADD I, V{x:X}",
    Op.LD_F_VX: "LD F, V{x:X}",
    Op.LD_B_VX: "LD B, V{x:X}",
    Op.LD_I_VX: "LD [I], V{x:X}",
    Op.LD_VX_I: "LD V{x:X}, [I]",
}


def disassemble(instruction: Instruction) -> str:
    """Return the conventional mnemonic for *instruction*.

    Unknown opcodes render as a data word, e.g. ``DW 0x5121``.
    """
    fmt = _FORMATS.get(instruction.op)
    if fmt is None:
        return f"DW 0x{instruction.raw:04X}"
    return fmt.format(
        x=instruction.x,
        y=instruction.y,
        n=instruction.n,
        kk=instruction.kk,
        nnn=instruction.nnn,
    )
