"""Key codes and polling for a serial-line keyboard.

Arrow keys arrive as an escape character followed by a letter; they are
combined into one code, ``(27 << 8) | letter``.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Callable

__all__ = ["Key", "poll_key"]

_DATA_READY = 1 << 8
_SETTLE_MS = 10
_SEQUENCE_TIMEOUT_MS = 100


class Key(IntEnum):
    """Codes of the special keys."""

    ESCAPE = 27
    UP = (27 << 8) | 65
    DOWN = (27 << 8) | 66
    RIGHT = (27 << 8) | 67
    LEFT = (27 << 8) | 68
    BACKSPACE = 8
    ENTER = 13


def _as_key(code: int) -> int:
    try:
        return Key(code)
    except ValueError:
        return code


def poll_key(read_uart: Callable[[], int], milliseconds: Callable[[], int]) -> int | None:
    """Read one key from the UART data register, if any is waiting.

    *read_uart* returns the register value, bit 8 set when a byte is ready;
    *milliseconds* returns the current time in milliseconds. Returns ``None``
    when no byte is ready, otherwise the key code (a :class:`Key` member when
    it is one). After an escape byte the line is left to settle for 10 ms,
    then watched for up to 100 ms for the rest of a two-byte sequence.
    """
    value = read_uart()
    if not value & _DATA_READY:
        return None

    code = value & 0xFF
    if code != Key.ESCAPE:
        return _as_key(code)

    start = milliseconds()
    while milliseconds() - start < _SETTLE_MS:
        pass
    while milliseconds() - start < _SEQUENCE_TIMEOUT_MS:
        follow = read_uart()
        if follow & _DATA_READY:
            return _as_key((Key.ESCAPE << 8) | (follow & 0xFF))

    return Key.ESCAPE