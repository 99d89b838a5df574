"""
Tests for the Chip8State store: registers, stack, timers, lifecycle.
"""
import pytest

from chip8emu.core.errors import (
    FatalExecutionError,
    InvalidRegisterError,
    StackOverflowError,
    StackUnderflowError,
)
from chip8emu.core.state import Chip8State


class TestRegisters:

    def test_power_on_values(self):
        s = Chip8State()
        assert s.pc == 0x200
        assert s.i == 0
        assert s.sp == 0
        assert s.registers == (0,) * 16
        assert s.delay_timer == 0
        assert s.sound_timer == 0

    def test_set_register_masks_to_byte(self):
        s = Chip8State()
        s.set_register(3, 0x1FE)
        assert s.get_register(3) == 0xFE

    @pytest.mark.parametrize("index", [-1, 16, 100])
    def test_invalid_register(self, index):
        s = Chip8State()
        with pytest.raises(InvalidRegisterError):
            s.get_register(index)
        with pytest.raises(InvalidRegisterError):
            s.set_register(index, 0)

    def test_vf_is_register_fifteen(self):
        s = Chip8State()
        s.set_register(0xF, 9)
        assert s.vf == 9
        s.vf = 1
        assert s.get_register(15) == 1


class TestStack:

    def test_push_pop_lifo(self):
        s = Chip8State()
        s.push(0x202)
        s.push(0x304)
        assert s.stack == (0x202, 0x304)
        assert s.pop() == 0x304
        assert s.pop() == 0x202
        assert s.sp == 0

    def test_sixteen_levels_then_overflow(self):
        s = Chip8State()
        for n in range(16):
            s.push(0x200 + 2 * n)
        assert s.sp == 16
        with pytest.raises(StackOverflowError):
            s.push(0x400)
        assert s.sp == 16

    def test_underflow(self):
        s = Chip8State()
        with pytest.raises(StackUnderflowError) as info:
            s.pop()
        assert isinstance(info.value, FatalExecutionError)
        assert info.value.pc == 0x200


class TestTimers:

    def test_decrement_independently(self):
        s = Chip8State()
        s.delay_timer = 3
        s.sound_timer = 1
        s.decrement_timers()
        assert (s.delay_timer, s.sound_timer) == (2, 0)
        assert not s.sound_active

    def test_zero_timers_stay_zero(self):
        s = Chip8State()
        for _ in range(10):
            s.decrement_timers()
        assert s.delay_timer == 0
        assert s.sound_timer == 0

    def test_sound_active_while_nonzero(self):
        s = Chip8State()
        s.sound_timer = 2
        assert s.sound_active
        s.decrement_timers()
        assert s.sound_active
        s.decrement_timers()
        assert not s.sound_active


class TestLifecycle:

    def test_reset_restores_power_on_state(self):
        s = Chip8State()
        s.memory[0x300] = 1
        s.set_register(2, 5)
        s.i = 0x123
        s.pc = 0x456
        s.push(0x202)
        s.delay_timer = 9
        s.frame_buffer.set_pixel(1, 1, True)
        s.begin_key_wait(4)
        s.reset()
        assert s.memory[0x300] == 0
        assert s.memory[0x050] == 0xF0
        assert s.registers == (0,) * 16
        assert (s.i, s.pc, s.sp, s.delay_timer) == (0, 0x200, 0, 0)
        assert s.frame_buffer.count_set() == 0
        assert not s.waiting_for_key

    def test_snapshot_round_trip(self):
        s = Chip8State()
        s.set_register(1, 0x42)
        s.push(0x222)
        s.sound_timer = 7
        snap = s.get_snapshot()

        other = Chip8State()
        other.restore_snapshot(snap)
        assert other.get_register(1) == 0x42
        assert other.stack == (0x222,)
        assert other.sound_timer == 7
