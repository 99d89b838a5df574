"""
CHIP-8 instruction engine.

Each call to :meth:`Chip8CPU.step` performs exactly one
fetch-decode-execute cycle against a :class:`~chip8emu.core.state.Chip8State`:

1. Fetch the big-endian word at PC (PC must be even).
2. Decode it with :func:`~chip8emu.core.decoder.decode`.
3. Run the handler for its :class:`~chip8emu.core.types.Op`.
4. Advance PC by 2, unless the handler returned an explicit next PC
   (jumps, calls, returns, skips and the key wait do).

Behaviour notes:

* Arithmetic handlers write their result first and VF last, so when the
  destination is VF the flag wins.
* ``8XY6`` / ``8XYE`` shift VX in place and ignore VY.
* ``FX55`` / ``FX65`` transfer V0..VX inclusive and leave I unchanged.
* ``FX0A`` is cooperative: while no new key press is seen the handler
  returns the current PC, so the same instruction runs again next step.
* Unknown opcodes are skipped and reported through the core logger, or
  raise :class:`~chip8emu.core.errors.UnknownOpcodeError` in strict mode.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, Optional

from chip8emu.core.chip8_tables import (
    ADDRESS_MASK,
    NUM_KEYS,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
    SPRITE_WIDTH,
    font_address,
)
from chip8emu.core.decoder import decode, disassemble
from chip8emu.core.errors import MisalignedPCError, UnknownOpcodeError
from chip8emu.core.logger import DEFAULT_LOGGER, LOG_DEBUG, LOG_WARNING, ILogger
from chip8emu.core.state import Chip8State
from chip8emu.core.types import Instruction, Op

Handler = Callable[[Instruction], Optional[int]]


class Chip8CPU:
    """Fetch/decode/execute engine.

    Parameters
    ----------
    state:
        The state store this engine reads and mutates.
    strict:
        When ``True`` an unrecognised opcode raises
        :class:`UnknownOpcodeError` instead of being skipped.
    rng:
        Source for ``CXKK``.  Anything with a ``randrange`` method;
        defaults to a fresh :class:`random.Random`.
    logger:
        Core diagnostic logger (see :mod:`chip8emu.core.logger`).
    """

    def __init__(
        self,
        state: Chip8State,
        *,
        strict: bool = False,
        rng: Optional[random.Random] = None,
        logger: Optional[ILogger] = None,
    ) -> None:
        self.state: Chip8State = state
        self.strict: bool = strict
        self.rng = rng if rng is not None else random.Random()
        self.logger: ILogger = logger if logger is not None else DEFAULT_LOGGER

        self.instructions_executed: int = 0
        self.unknown_opcodes: int = 0

        self._dispatch: Dict[Op, Handler] = self._build_dispatch_table()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def fetch(self) -> int:
        """Return the opcode word at PC without advancing it.

        Raises:
            MisalignedPCError: If PC is odd.
        """
        pc = self.state.pc
        if pc & 1:
            raise MisalignedPCError("Program counter is not instruction-aligned", pc)
        return self.state.memory.read_word(pc)

    def step(self) -> Instruction:
        """Execute one instruction and return it."""
        state = self.state
        pc = state.pc
        instruction = decode(self.fetch())

        if self.logger.level >= LOG_DEBUG:
            self.logger.log(
                LOG_DEBUG, f"0x{pc:03X}: {instruction.raw:04X}  {disassemble(instruction)}"
            )

        next_pc = self._dispatch[instruction.op](instruction)
        if next_pc is None:
            next_pc = pc + 2
        state.pc = next_pc & ADDRESS_MASK

        self.instructions_executed += 1
        return instruction

    def tick_timers(self) -> None:
        """Decrement the delay and sound timers (call at 60 Hz)."""
        self.state.decrement_timers()

    def reset(self) -> None:
        self.instructions_executed = 0
        self.unknown_opcodes = 0

    # ------------------------------------------------------------------
    # Register helpers
    # ------------------------------------------------------------------

    def _v(self, index: int) -> int:
        return self.state.get_register(index)

    def _set_v(self, index: int, value: int) -> None:
        self.state.set_register(index, value)

    # ------------------------------------------------------------------
    # 0x0 -- system
    # ------------------------------------------------------------------

    def i_unknown(self, ins: Instruction) -> None:
        pc = self.state.pc
        if self.strict:
            raise UnknownOpcodeError(ins.raw, pc)
        self.unknown_opcodes += 1
        self.logger.log(
            LOG_WARNING, f"Unknown opcode 0x{ins.raw:04X} at 0x{pc:03X}; skipped"
        )

    def i_nop(self, ins: Instruction) -> None:
        pass

    def i_cls(self, ins: Instruction) -> None:
        """CLS -- clear the display."""
        self.state.frame_buffer.clear()

    def i_ret(self, ins: Instruction) -> int:
        """RET -- return from subroutine."""
        return self.state.pop()

    # ------------------------------------------------------------------
    # Flow control
    # ------------------------------------------------------------------

    def i_jp(self, ins: Instruction) -> int:
        return ins.nnn

    def i_call(self, ins: Instruction) -> int:
        """CALL -- push the address of the next instruction, jump to NNN."""
        self.state.push(self.state.pc + 2)
        return ins.nnn

    def i_jp_v0(self, ins: Instruction) -> int:
        return self._v(0) + ins.nnn

    def _skip_if(self, cond: bool) -> Optional[int]:
        if cond:
            return self.state.pc + 4
        return None

    def i_se_vx_kk(self, ins: Instruction) -> Optional[int]:
        return self._skip_if(self._v(ins.x) == ins.kk)

    def i_sne_vx_kk(self, ins: Instruction) -> Optional[int]:
        return self._skip_if(self._v(ins.x) != ins.kk)

    def i_se_vx_vy(self, ins: Instruction) -> Optional[int]:
        return self._skip_if(self._v(ins.x) == self._v(ins.y))

    def i_sne_vx_vy(self, ins: Instruction) -> Optional[int]:
        return self._skip_if(self._v(ins.x) != self._v(ins.y))

    # ------------------------------------------------------------------
    # Loads and immediate arithmetic
    # ------------------------------------------------------------------

    def i_ld_vx_kk(self, ins: Instruction) -> None:
        self._set_v(ins.x, ins.kk)

    def i_add_vx_kk(self, ins: Instruction) -> None:
        """ADD Vx, byte -- no carry flag."""
        self._set_v(ins.x, self._v(ins.x) + ins.kk)

    def i_ld_i(self, ins: Instruction) -> None:
        self.state.i = ins.nnn

    def i_rnd(self, ins: Instruction) -> None:
        self._set_v(ins.x, self.rng.randrange(256) & ins.kk)

    # ------------------------------------------------------------------
    # 0x8 -- register/register ALU
    # ------------------------------------------------------------------

    def i_ld_vx_vy(self, ins: Instruction) -> None:
        self._set_v(ins.x, self._v(ins.y))

    def i_or(self, ins: Instruction) -> None:
        self._set_v(ins.x, self._v(ins.x) | self._v(ins.y))

    def i_and(self, ins: Instruction) -> None:
        self._set_v(ins.x, self._v(ins.x) & self._v(ins.y))

    def i_xor(self, ins: Instruction) -> None:
        self._set_v(ins.x, self._v(ins.x) ^ self._v(ins.y))

    def i_add_vx_vy(self, ins: Instruction) -> None:
        """ADD Vx, Vy -- VF = carry."""
        total = self._v(ins.x) + self._v(ins.y)
        self._set_v(ins.x, total)
        self.state.vf = 1 if total > 0xFF else 0

    def i_sub(self, ins: Instruction) -> None:
        """SUB Vx, Vy -- Vx = Vx - Vy, VF = NOT borrow."""
        a, b = self._v(ins.x), self._v(ins.y)
        self._set_v(ins.x, a - b)
        self.state.vf = 1 if a >= b else 0

    def i_subn(self, ins: Instruction) -> None:
        """SUBN Vx, Vy -- Vx = Vy - Vx, VF = NOT borrow."""
        a, b = self._v(ins.x), self._v(ins.y)
        self._set_v(ins.x, b - a)
        self.state.vf = 1 if b >= a else 0

    def i_shr(self, ins: Instruction) -> None:
        """SHR Vx -- VF = bit shifted out."""
        val = self._v(ins.x)
        self._set_v(ins.x, val >> 1)
        self.state.vf = val & 0x01

    def i_shl(self, ins: Instruction) -> None:
        """SHL Vx -- VF = bit shifted out."""
        val = self._v(ins.x)
        self._set_v(ins.x, val << 1)
        self.state.vf = (val >> 7) & 0x01

    # ------------------------------------------------------------------
    # 0xD -- draw
    # ------------------------------------------------------------------

    def i_drw(self, ins: Instruction) -> None:
        """DRW Vx, Vy, N -- XOR an 8xN sprite from [I] onto the display.

        VF is set to 1 if any set pixel was cleared, otherwise 0.
        """
        state = self.state
        mem = state.memory
        fb = state.frame_buffer
        x0 = self._v(ins.x) % SCREEN_WIDTH
        y0 = self._v(ins.y) % SCREEN_HEIGHT

        collision = False
        for row in range(ins.n):
            bits = mem[state.i + row]
            if not bits:
                continue
            for col in range(SPRITE_WIDTH):
                if bits & (0x80 >> col):
                    if fb.xor_pixel(x0 + col, y0 + row):
                        collision = True
        state.vf = 1 if collision else 0

    # ------------------------------------------------------------------
    # 0xE -- keypad
    # ------------------------------------------------------------------

    def i_skp(self, ins: Instruction) -> Optional[int]:
        keys = self.state.input_state
        return self._skip_if(keys.is_pressed(self._v(ins.x) & 0xF))

    def i_sknp(self, ins: Instruction) -> Optional[int]:
        keys = self.state.input_state
        return self._skip_if(not keys.is_pressed(self._v(ins.x) & 0xF))

    def i_ld_vx_k(self, ins: Instruction) -> Optional[int]:
        """LD Vx, K -- hold PC until a key goes down, then store it in Vx."""
        state = self.state
        if not state.waiting_for_key:
            state.begin_key_wait(ins.x)
            return state.pc

        keys = state.input_state.keys
        prev = state.wait_prev_keys
        for key in range(NUM_KEYS):
            if keys[key] and not prev[key]:
                self._set_v(state.wait_register, key)
                state.cancel_key_wait()
                return None

        state.wait_prev_keys = keys
        return state.pc

    # ------------------------------------------------------------------
    # 0xF -- timers, index register, memory
    # ------------------------------------------------------------------

    def i_ld_vx_dt(self, ins: Instruction) -> None:
        self._set_v(ins.x, self.state.delay_timer)

    def i_ld_dt_vx(self, ins: Instruction) -> None:
        self.state.delay_timer = self._v(ins.x)

    def i_ld_st_vx(self, ins: Instruction) -> None:
        self.state.sound_timer = self._v(ins.x)

    def i_add_i_vx(self, ins: Instruction) -> None:
        self.state.i = (self.state.i + self._v(ins.x)) & 0xFFFF

    def i_ld_f_vx(self, ins: Instruction) -> None:
        self.state.i = font_address(self._v(ins.x))

    def i_ld_b_vx(self, ins: Instruction) -> None:
        """LD B, Vx -- store hundreds, tens and ones of Vx at I..I+2."""
        val = self._v(ins.x)
        mem = self.state.memory
        i = self.state.i
        mem[i] = val // 100
        mem[i + 1] = (val // 10) % 10
        mem[i + 2] = val % 10

    def i_ld_i_vx(self, ins: Instruction) -> None:
        mem = self.state.memory
        i = self.state.i
        for r in range(ins.x + 1):
            mem[i + r] = self._v(r)

    def i_ld_vx_i(self, ins: Instruction) -> None:
        mem = self.state.memory
        i = self.state.i
        for r in range(ins.x + 1):
            self._set_v(r, mem[i + r])

    # ==================================================================
    # Dispatch table
    # ==================================================================

    def _build_dispatch_table(self) -> Dict[Op, Handler]:
        """Map every :class:`Op` to its handler.

        Handlers return ``None`` for the default PC advance, or the
        address execution continues at.
        """
        table: Dict[Op, Handler] = {
            Op.UNKNOWN: self.i_unknown,
            Op.NOP: self.i_nop,
            Op.CLS: self.i_cls,
            Op.RET: self.i_ret,
            Op.JP: self.i_jp,
            Op.CALL: self.i_call,
            Op.SE_VX_KK: self.i_se_vx_kk,
            Op.SNE_VX_KK: self.i_sne_vx_kk,
            Op.SE_VX_VY: self.i_se_vx_vy,
            Op.LD_VX_KK: self.i_ld_vx_kk,
            Op.ADD_VX_KK: self.i_add_vx_kk,
            Op.LD_VX_VY: self.i_ld_vx_vy,
            Op.OR: self.i_or,
            Op.AND: self.i_and,
            Op.XOR: self.i_xor,
            Op.ADD_VX_VY: self.i_add_vx_vy,
            Op.SUB: self.i_sub,
            Op.SHR: self.i_shr,
            Op.SUBN: self.i_subn,
            Op.SHL: self.i_shl,
            Op.SNE_VX_VY: self.i_sne_vx_vy,
            Op.LD_I: self.i_ld_i,
            Op.JP_V0: self.i_jp_v0,
            Op.RND: self.i_rnd,
            Op.DRW: self.i_drw,
            Op.SKP: self.i_skp,
            Op.SKNP: self.i_sknp,
            Op.LD_VX_DT: self.i_ld_vx_dt,
            Op.LD_VX_K: self.i_ld_vx_k,
            Op.LD_DT_VX: self.i_ld_dt_vx,
            Op.LD_ST_VX: self.i_ld_st_vx,
            Op.ADD_I_VX: self.i_add_i_vx,
            Op.LD_F_VX: self.i_ld_f_vx,
            Op.LD_B_VX: self.i_ld_b_vx,
            Op.LD_I_VX: self.i_ld_i_vx,
            Op.LD_VX_I: self.i_ld_vx_i,
        }
        missing = set(Op) - set(table)
        assert not missing, f"No handler for {sorted(missing)}"
        return table

    def __repr__(self) -> str:
        return (
            f"Chip8CPU(PC=0x{self.state.pc:03X}, strict={self.strict}, "
            f"executed={self.instructions_executed})"
        )
