"""
Shared fixtures for the chip8emu test suite.
"""
import os
import random
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from chip8emu.core.machine import Chip8Machine


def assemble_words(*words: int) -> bytes:
    """Pack 16-bit opcode words into a big-endian ROM image."""
    out = bytearray()
    for w in words:
        out += bytes(((w >> 8) & 0xFF, w & 0xFF))
    return bytes(out)


@pytest.fixture
def machine() -> Chip8Machine:
    """A machine with a deterministic RNG and an empty ROM."""
    m = Chip8Machine(rng=random.Random(1234))
    m.load_rom(b"")
    return m


@pytest.fixture
def run_program():
    """Load opcode words into a fresh machine and execute *steps* of them."""

    def _run(words, steps=None, **kwargs):
        kwargs.setdefault("rng", random.Random(1234))
        m = Chip8Machine(**kwargs)
        m.load_rom(assemble_words(*words))
        for _ in range(len(words) if steps is None else steps):
            m.step()
        return m

    return _run
