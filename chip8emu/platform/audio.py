"""
Audio output device.
Uses pygame.mixer to sound a square-wave beep while the machine's sound
timer is non-zero.

CHIP-8 has a single tone generator with no pitch or volume control: the
beeper is either on or off.  A short square-wave buffer is generated
with numpy once, then played on a loop for as long as
``machine.sound_active`` stays true.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pygame

logger = logging.getLogger(__name__)

_SAMPLE_RATE: int = 44100
_MIXER_BUFFER_SAMPLES: int = 512
_AMPLITUDE: int = 8000

DEFAULT_TONE_HZ: int = 440


def build_square_wave(
    frequency: float,
    sample_rate: int = _SAMPLE_RATE,
    amplitude: int = _AMPLITUDE,
) -> np.ndarray:
    """Return one period-aligned buffer of signed 16-bit square wave.

    The buffer holds a whole number of periods so it loops without a click.
    """
    if frequency <= 0:
        raise ValueError(f"frequency must be positive, got {frequency}")
    period = max(2, int(round(sample_rate / frequency)))
    periods = max(1, sample_rate // 10 // period)
    t = np.arange(period * periods)
    wave = np.where((t % period) < period // 2, amplitude, -amplitude)
    return wave.astype(np.int16)


class AudioDevice:
    """Drive a beeper from the machine's sound signal.

    Parameters
    ----------
    machine:
        The emulated machine.  Expected attribute:

        * ``sound_active`` -- ``bool``
    enabled:
        Set to ``False`` to create the device in a silent / no-op mode.
    tone_hz:
        Beep frequency in Hz.
    """

    def __init__(
        self,
        machine: object,
        *,
        enabled: bool = True,
        tone_hz: int = DEFAULT_TONE_HZ,
    ) -> None:
        self._machine = machine
        self._enabled: bool = enabled
        self._tone_hz: int = tone_hz
        self._sound: Optional[pygame.mixer.Sound] = None
        self._playing: bool = False

        if not self._enabled:
            logger.info("AudioDevice: disabled (silent mode)")
            return

        self._init_mixer()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def update(self) -> None:
        """Start or stop the beep to match ``machine.sound_active``.

        Call once per frame, after the machine has run.
        """
        if not self._enabled or self._sound is None:
            return

        active = bool(getattr(self._machine, "sound_active", False))
        if active and not self._playing:
            self._sound.play(loops=-1)
            self._playing = True
        elif not active and self._playing:
            self._sound.stop()
            self._playing = False

    def shutdown(self) -> None:
        """Stop playback and release the mixer."""
        if self._sound is not None:
            self._sound.stop()
            self._sound = None
        self._playing = False
        if pygame.mixer.get_init():
            pygame.mixer.quit()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _init_mixer(self) -> None:
        try:
            pygame.mixer.init(
                frequency=_SAMPLE_RATE,
                size=-16,       # signed 16-bit
                channels=1,     # mono
                buffer=_MIXER_BUFFER_SAMPLES,
            )
        except pygame.error as exc:
            logger.warning("AudioDevice: mixer init failed (%s); audio disabled", exc)
            self._enabled = False
            return

        rate, _size, channels = pygame.mixer.get_init()
        wave = build_square_wave(self._tone_hz, rate)
        if channels > 1:
            wave = np.repeat(wave[:, np.newaxis], channels, axis=1)
        self._sound = pygame.sndarray.make_sound(np.ascontiguousarray(wave))

        logger.info(
            "AudioDevice: mixer ready at %d Hz, %d ch, tone %d Hz",
            rate,
            channels,
            self._tone_hz,
        )
