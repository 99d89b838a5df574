"""
Tests for the memory, frame buffer and keypad components.
"""
import pytest

from chip8emu.core.chip8_tables import FONT_ADDR, FONTSET, MEMORY_SIZE
from chip8emu.core.errors import InvalidKeyError
from chip8emu.core.frame_buffer import FrameBuffer
from chip8emu.core.input_state import InputState
from chip8emu.core.memory import Memory


class TestMemory:

    def test_font_installed_at_reset(self):
        mem = Memory()
        assert mem.read_block(FONT_ADDR, len(FONTSET)) == FONTSET
        assert mem[0x000] == 0
        assert mem[0x200] == 0

    def test_glyph_zero_and_f(self):
        mem = Memory()
        assert mem.read_block(0x050, 5) == bytes([0xF0, 0x90, 0x90, 0x90, 0xF0])
        assert mem.read_block(0x09B, 5) == bytes([0xF0, 0x80, 0xF0, 0x80, 0x80])

    @pytest.mark.parametrize("k", [1, 2, 0x200, 0xFFF])
    def test_write_past_end_wraps(self, k):
        mem = Memory()
        mem[4095 + k] = 0xAB
        assert mem[(4095 + k) % MEMORY_SIZE] == 0xAB

    def test_values_masked_to_byte(self):
        mem = Memory()
        mem[0x300] = 0x1FF
        assert mem[0x300] == 0xFF

    def test_read_word_big_endian_and_wrapping(self):
        mem = Memory()
        mem[0xFFF] = 0x12
        mem[0x000] = 0x34
        assert mem.read_word(0xFFF) == 0x1234

    def test_write_block_wraps(self):
        mem = Memory()
        mem.write_block(0xFFE, b"\x01\x02\x03")
        assert mem[0xFFE] == 1
        assert mem[0xFFF] == 2
        assert mem[0x000] == 3

    def test_snapshot_round_trip_and_size_check(self):
        mem = Memory()
        mem[0x400] = 7
        snap = mem.get_snapshot()
        mem.reset()
        assert mem[0x400] == 0
        mem.restore_snapshot(snap)
        assert mem[0x400] == 7
        with pytest.raises(ValueError):
            mem.restore_snapshot(b"\x00" * 10)


class TestFrameBuffer:

    def test_starts_clear(self):
        fb = FrameBuffer()
        assert fb.count_set() == 0
        assert len(fb.pixels) == 64 * 32

    def test_xor_reports_collision(self):
        fb = FrameBuffer()
        assert fb.xor_pixel(3, 4) is False
        assert fb.get_pixel(3, 4)
        assert fb.xor_pixel(3, 4) is True
        assert not fb.get_pixel(3, 4)

    def test_xor_wraps_coordinates(self):
        fb = FrameBuffer()
        fb.xor_pixel(64 + 2, 32 + 1)
        assert fb.get_pixel(2, 1)

    def test_pixels_view_is_read_only(self):
        fb = FrameBuffer()
        with pytest.raises(TypeError):
            fb.pixels[0] = 1

    def test_row_major_layout(self):
        fb = FrameBuffer()
        fb.set_pixel(5, 2, True)
        assert fb.pixels[2 * 64 + 5] == 1
        assert fb.rows()[2][5] == 1

    def test_get_pixel_out_of_range(self):
        fb = FrameBuffer()
        with pytest.raises(IndexError):
            fb.get_pixel(64, 0)

    def test_clear(self):
        fb = FrameBuffer()
        fb.set_pixel(0, 0, True)
        fb.set_pixel(63, 31, True)
        fb.clear()
        assert fb.count_set() == 0


class TestInputState:

    def test_staged_input_needs_capture(self):
        keys = InputState()
        keys.raise_input(0xA, True)
        assert not keys.is_pressed(0xA)
        keys.capture_input_state()
        assert keys.is_pressed(0xA)
        assert keys.pressed_keys() == [0xA]

    def test_load_keys_overwrites_everything(self):
        keys = InputState()
        keys.raise_input(1, True)
        snapshot = [False] * 16
        snapshot[7] = True
        keys.load_keys(snapshot)
        keys.capture_input_state()
        assert keys.pressed_keys() == [7]

    def test_load_keys_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            InputState().load_keys([True] * 15)

    @pytest.mark.parametrize("key", [-1, 16, 255])
    def test_invalid_key_index(self, key):
        keys = InputState()
        with pytest.raises(InvalidKeyError):
            keys.raise_input(key, True)
        with pytest.raises(InvalidKeyError):
            keys.is_pressed(key)

    def test_set_key_is_immediate(self):
        keys = InputState()
        keys.set_key(3, True)
        assert keys.is_pressed(3)
        keys.capture_input_state()
        assert keys.is_pressed(3)
