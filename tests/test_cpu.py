"""
Instruction-level tests for Chip8CPU, driven through Chip8Machine.
"""
import logging
import random

import pytest

from chip8emu.core.errors import (
    MisalignedPCError,
    StackOverflowError,
    StackUnderflowError,
    UnknownOpcodeError,
)
from chip8emu.core.logger import LOG_WARNING, ConsoleLogger
from chip8emu.core.machine import Chip8Machine

from conftest import assemble_words


def _load(*words, **kwargs):
    kwargs.setdefault("rng", random.Random(1234))
    m = Chip8Machine(**kwargs)
    m.load_rom(assemble_words(*words))
    return m


def _v(m, n):
    return m.state.get_register(n)


class TestFlowControl:

    def test_jump(self, run_program):
        m = run_program([0x1ABC])
        assert m.pc == 0xABC

    def test_call_and_return(self, run_program):
        # 0x200 CALL 0x206 / 0x202 LD V1,1 / 0x204 JP 0x204 / 0x206 LD V0,7 / 0x208 RET
        m = run_program([0x2206, 0x6101, 0x1204, 0x6007, 0x00EE], steps=1)
        assert m.pc == 0x206
        assert m.state.stack == (0x202,)
        m.step()
        m.step()
        assert m.pc == 0x202
        assert m.state.sp == 0
        m.step()
        assert _v(m, 0) == 7
        assert _v(m, 1) == 1

    def test_jump_plus_v0_wraps_to_twelve_bits(self, run_program):
        m = run_program([0x60FF, 0xBFFF])
        assert m.pc == 0x0FE

    def test_call_past_sixteen_levels_overflows(self):
        m = _load(0x2200)
        for _ in range(16):
            m.step()
        with pytest.raises(StackOverflowError):
            m.step()
        assert m.machine_halt

    def test_return_with_empty_stack(self):
        m = _load(0x00EE)
        with pytest.raises(StackUnderflowError):
            m.step()

    def test_misaligned_pc(self):
        m = _load(0x6001, 0xB200)
        m.step()
        m.step()
        assert m.pc == 0x201
        with pytest.raises(MisalignedPCError):
            m.step()

    def test_pc_wraps_at_end_of_memory(self):
        m = _load(0x1FFE)
        m.step()
        m.step()  # 0x0000 at 0xFFE is a no-op
        assert m.pc == 0x000


class TestSkips:

    @pytest.mark.parametrize("words, expected_pc", [
        ([0x6005, 0x3005], 0x206),
        ([0x6005, 0x3006], 0x204),
        ([0x6005, 0x4006], 0x206),
        ([0x6005, 0x4005], 0x204),
        ([0x6005, 0x6105, 0x5010], 0x208),
        ([0x6005, 0x6106, 0x5010], 0x206),
        ([0x6005, 0x6106, 0x9010], 0x208),
        ([0x6005, 0x6105, 0x9010], 0x206),
    ])
    def test_conditional_skip(self, run_program, words, expected_pc):
        m = run_program(words)
        assert m.pc == expected_pc


class TestArithmetic:

    def test_load_and_add_immediate_wraps_without_flag(self, run_program):
        m = run_program([0x60FF, 0x6F05, 0x7002])
        assert _v(m, 0) == 0x01
        assert _v(m, 0xF) == 0x05

    def test_register_copy_and_logic(self, run_program):
        m = run_program([0x600C, 0x610A, 0x8200, 0x8211, 0x6300, 0x8302, 0x640C, 0x8413])
        assert _v(m, 2) == 0x0E      # 0x0C | 0x0A
        assert _v(m, 3) == 0x00      # 0x00 & 0x0C
        assert _v(m, 4) == 0x06      # 0x0C ^ 0x0A

    @pytest.mark.parametrize("a, b, result, flag", [
        (0xFF, 0x02, 0x01, 1),
        (0x10, 0x20, 0x30, 0),
        (0x80, 0x80, 0x00, 1),
    ])
    def test_add_sets_carry(self, run_program, a, b, result, flag):
        m = run_program([0x6000 | a, 0x6100 | b, 0x8014])
        assert _v(m, 0) == result
        assert _v(m, 0xF) == flag

    @pytest.mark.parametrize("a, b, result, flag", [
        (0x05, 0x03, 0x02, 1),
        (0x05, 0x05, 0x00, 1),
        (0x03, 0x05, 0xFE, 0),
    ])
    def test_sub_sets_not_borrow(self, run_program, a, b, result, flag):
        m = run_program([0x6000 | a, 0x6100 | b, 0x8015])
        assert _v(m, 0) == result
        assert _v(m, 0xF) == flag

    @pytest.mark.parametrize("a, b, result, flag", [
        (0x03, 0x05, 0x02, 1),
        (0x05, 0x05, 0x00, 1),
        (0x05, 0x03, 0xFE, 0),
    ])
    def test_subn_sets_not_borrow(self, run_program, a, b, result, flag):
        m = run_program([0x6000 | a, 0x6100 | b, 0x8017])
        assert _v(m, 0) == result
        assert _v(m, 0xF) == flag

    def test_shift_right_uses_vx(self, run_program):
        m = run_program([0x6005, 0x61FF, 0x8016])
        assert _v(m, 0) == 0x02
        assert _v(m, 0xF) == 1

    def test_shift_left(self, run_program):
        m = run_program([0x6081, 0x800E])
        assert _v(m, 0) == 0x02
        assert _v(m, 0xF) == 1

    def test_flag_wins_when_destination_is_vf(self, run_program):
        m = run_program([0x6F02, 0x8FF6])
        assert _v(m, 0xF) == 0
        m = run_program([0x6FFF, 0x6E01, 0x8FE4])
        assert _v(m, 0xF) == 1

    def test_random_is_masked(self):
        m = _load(0xC00F, rng=random.Random(99))
        m.step()
        assert _v(m, 0) == random.Random(99).randrange(256) & 0x0F

    def test_random_with_zero_mask(self, run_program):
        m = run_program([0x60AA, 0xC000])
        assert _v(m, 0) == 0


class TestIndexAndMemory:

    def test_load_index(self, run_program):
        assert run_program([0xA123]).state.i == 0x123

    def test_add_to_index_does_not_wrap_at_twelve_bits(self, run_program):
        m = run_program([0xAFFF, 0x6002, 0xF01E])
        assert m.state.i == 0x1001

    def test_font_address(self, run_program):
        m = run_program([0x601A, 0xF029])
        assert m.state.i == 0x050 + 5 * 0xA

    @pytest.mark.parametrize("value, digits", [
        (254, (2, 5, 4)),
        (7, (0, 0, 7)),
        (100, (1, 0, 0)),
    ])
    def test_bcd(self, run_program, value, digits):
        m = run_program([0x6000 | value, 0xA300, 0xF033])
        mem = m.state.memory
        assert (mem[0x300], mem[0x301], mem[0x302]) == digits

    def test_store_registers_inclusive(self, run_program):
        m = run_program([0x6011, 0x6122, 0x6233, 0x6344, 0xA300, 0xF255])
        mem = m.state.memory
        assert mem.read_block(0x300, 4) == bytes([0x11, 0x22, 0x33, 0x00])
        assert m.state.i == 0x300

    def test_load_registers_inclusive(self):
        m = _load(0xA300, 0xF265)
        m.state.memory.write_block(0x300, b"\x0A\x0B\x0C\x0D")
        m.step()
        m.step()
        assert m.state.registers[:4] == (0x0A, 0x0B, 0x0C, 0x00)
        assert m.state.i == 0x300


class TestIndexWraparound:

    @pytest.mark.parametrize("words, expected", [
        # BCD of 254 with I at the last byte
        ([0xAFFF, 0x60FE, 0xF033], {0xFFF: 2, 0x000: 5, 0x001: 4}),
        # V0..V2 stored from 0xFFE
        ([0xAFFE, 0x6011, 0x6122, 0x6233, 0xF255], {0xFFE: 0x11, 0xFFF: 0x22, 0x000: 0x33}),
        # I pushed past 12 bits, then stored through
        ([0xAFFF, 0x6002, 0xF01E, 0xF055], {0x001: 0x02}),
    ])
    def test_writes_through_i_wrap(self, run_program, words, expected):
        m = run_program(words)
        mem = m.state.memory
        assert {addr: mem[addr] for addr in expected} == expected

    def test_load_registers_across_end_of_memory(self):
        m = _load(0xAFFE, 0xF265)
        mem = m.state.memory
        mem[0xFFE] = 0x0A
        mem[0xFFF] = 0x0B
        mem[0x000] = 0x0C
        m.step()
        m.step()
        assert m.state.registers[:3] == (0x0A, 0x0B, 0x0C)
        assert m.state.i == 0xFFE

    def test_sprite_rows_read_across_end_of_memory(self):
        m = _load(0x6000, 0x6100, 0xAFFF, 0xD012)
        m.state.memory[0xFFF] = 0x80
        m.state.memory[0x000] = 0x40
        for _ in range(4):
            m.step()
        fb = m.frame_buffer
        assert fb.get_pixel(0, 0)
        assert fb.get_pixel(1, 1)
        assert fb.count_set() == 2


class TestTimers:

    def test_set_and_read_timers(self, run_program):
        m = run_program([0x600A, 0xF015, 0xF018])
        assert m.state.delay_timer == 10
        assert m.sound_active
        m.tick_timers()
        m.state.memory.write_block(0x206, assemble_words(0xF107))
        m.step()
        assert _v(m, 1) == 9


class TestDisplay:

    def test_clear_screen(self, run_program):
        m = run_program([0x00E0], steps=0)
        m.frame_buffer.set_pixel(10, 10, True)
        m.step()
        assert m.frame_buffer.count_set() == 0

    def test_draw_twice_restores_existing_screen(self, run_program):
        m = run_program([0x6000, 0xF029, 0xD015, 0xD015], steps=0)
        fb = m.frame_buffer
        fb.set_pixel(0, 0, True)     # under the glyph's top row
        fb.set_pixel(40, 20, True)
        fb.set_pixel(2, 1, True)     # inside the glyph box, outside its strokes
        before = bytes(fb.pixels)

        for _ in range(3):
            m.step()
        assert _v(m, 0xF) == 1
        assert not fb.get_pixel(0, 0)

        m.step()
        assert _v(m, 0xF) == 1
        assert bytes(fb.pixels) == before

    def test_draw_twice_erases_and_reports_collision(self, run_program):
        m = run_program([0x6000, 0xF029, 0xD015])
        assert m.frame_buffer.count_set() == 14
        assert _v(m, 0xF) == 0
        assert m.frame_buffer.rows()[0][:4] == bytes([1, 1, 1, 1])

        m.state.memory.write_block(0x206, assemble_words(0xD015))
        m.step()
        assert m.frame_buffer.count_set() == 0
        assert _v(m, 0xF) == 1

    def test_sprite_wraps_at_edges(self, run_program):
        m = run_program([0x603E, 0x611F, 0xA050, 0xD012])
        fb = m.frame_buffer
        # 0xF0 on row 31, columns 62, 63, 0, 1
        for x in (62, 63, 0, 1):
            assert fb.get_pixel(x, 31)
        # 0x90 wraps to row 0
        assert fb.get_pixel(62, 0)
        assert fb.get_pixel(1, 0)
        assert not fb.get_pixel(63, 0)

    def test_start_coordinates_wrap(self, run_program):
        m = run_program([0x6042, 0x6122, 0xA050, 0xD011])
        assert m.frame_buffer.get_pixel(2, 2)

    def test_zero_height_sprite(self, run_program):
        m = run_program([0x6F01, 0xA050, 0xD010])
        assert m.frame_buffer.count_set() == 0
        assert _v(m, 0xF) == 0


class TestKeypad:

    def test_skip_if_pressed_uses_low_nibble(self):
        m = _load(0x6015, 0xE09E)
        m.set_keys([k == 5 for k in range(16)])
        m.step()
        m.step()
        assert m.pc == 0x206

    def test_skip_if_not_pressed(self):
        m = _load(0x6005, 0xE0A1)
        m.step()
        m.step()
        assert m.pc == 0x206
        m = _load(0x6005, 0xE0A1)
        m.set_keys([k == 5 for k in range(16)])
        m.step()
        m.step()
        assert m.pc == 0x204

    def test_wait_for_key_holds_pc(self):
        m = _load(0xF30A)
        for _ in range(3):
            m.step()
            assert m.pc == 0x200
            assert m.state.waiting_for_key
        m.set_keys([k == 0xB for k in range(16)])
        m.step()
        assert _v(m, 3) == 0xB
        assert m.pc == 0x202
        assert not m.state.waiting_for_key

    def test_wait_for_key_ignores_key_already_held(self):
        m = _load(0xF30A)
        held = [k == 4 for k in range(16)]
        m.set_keys(held)
        m.step()
        m.step()
        assert m.pc == 0x200
        m.set_keys([False] * 16)
        m.step()
        m.set_keys(held)
        m.step()
        assert _v(m, 3) == 4
        assert m.pc == 0x202

    def test_wait_for_key_lowest_new_key_wins(self):
        m = _load(0xF20A)
        m.step()
        m.set_keys([k in (9, 2, 0xE) for k in range(16)])
        m.step()
        assert _v(m, 2) == 2


class TestUnknownOpcodes:

    def test_tolerant_mode_skips(self, run_program):
        m = run_program([0x0123, 0x6001])
        assert m.pc == 0x204
        assert _v(m, 0) == 1
        assert m.cpu.unknown_opcodes == 1
        assert not m.machine_halt

    def test_strict_mode_halts(self):
        m = _load(0x5121, strict=True)
        with pytest.raises(UnknownOpcodeError) as info:
            m.step()
        assert info.value.opcode == 0x5121
        assert info.value.pc == 0x200
        assert m.machine_halt
        assert m.fault is info.value

    def test_warning_logged(self, caplog):
        m = _load(0xF1FF, logger=ConsoleLogger(LOG_WARNING))
        with caplog.at_level(logging.WARNING, logger="chip8emu.core"):
            m.step()
        assert "Unknown opcode 0xF1FF" in caplog.text

    def test_default_logger_counts_silently(self, caplog):
        m = _load(0xF1FF, 0xF1FF)
        with caplog.at_level(logging.DEBUG, logger="chip8emu.core"):
            m.step()
            m.step()
        assert m.cpu.unknown_opcodes == 2
        assert caplog.records == []
