"""
Diagnostic logging for the interpreter core.

The core never configures :mod:`logging` itself.  Components take an
:class:`ILogger` and report through ``log(level, message)``; lower levels
are more important.  :class:`ConsoleLogger` forwards anything at or below
its level to the ``chip8emu.core`` standard logger.
"""

import logging
from abc import ABC, abstractmethod

# Core diagnostic levels.
LOG_ERROR: int = 0
LOG_WARNING: int = 1
LOG_INFO: int = 2
LOG_DEBUG: int = 3

_STD_LEVELS: dict[int, int] = {
    LOG_ERROR: logging.ERROR,
    LOG_WARNING: logging.WARNING,
    LOG_INFO: logging.INFO,
    LOG_DEBUG: logging.DEBUG,
}


class ILogger(ABC):
    """Logging interface with level-based filtering."""

    @property
    @abstractmethod
    def level(self) -> int: ...

    @level.setter
    @abstractmethod
    def level(self, value: int): ...

    @abstractmethod
    def log(self, level: int, message: str): ...


class NullLogger(ILogger):
    """No-op logger implementation."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._level = 0
        return cls._instance

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        pass


class ConsoleLogger(ILogger):
    """Logger that forwards to the ``chip8emu.core`` standard logger."""

    def __init__(self, level: int = LOG_WARNING):
        self._level = level
        self._logger = logging.getLogger("chip8emu.core")

    @property
    def level(self) -> int:
        return self._level

    @level.setter
    def level(self, value: int):
        self._level = value

    def log(self, level: int, message: str):
        if level <= self._level:
            self._logger.log(_STD_LEVELS.get(level, logging.DEBUG), message)


# Default logger instance
DEFAULT_LOGGER: ILogger = NullLogger()
