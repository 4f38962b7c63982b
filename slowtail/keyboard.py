"""
Keyboard input from the controlling terminal.

Keys are read from /dev/tty rather than stdin, so the speed can be
changed even while the lines themselves arrive through a pipe.
"""

import enum
import logging
import os
import select
import shutil
import termios
import threading
import tty
from typing import Iterator, List, Optional

from slowtail.errors import TerminalIOFailure


logger = logging.getLogger(__name__)

TTY_PATH = '/dev/tty'

CTRL_C = 0x03
ESC = 0x1b


class Key(enum.Enum):
    SLOWER = 'slower'
    FASTER = 'faster'
    INTERRUPT = 'interrupt'
    OTHER = 'other'


# Arrow sequences in normal (CSI) and application (SS3) cursor mode
_ARROWS = {
    b'\x1b[A': Key.FASTER,
    b'\x1b[B': Key.SLOWER,
    b'\x1bOA': Key.FASTER,
    b'\x1bOB': Key.SLOWER,
}


def decode_keys(data: bytes) -> List[Key]:
    """
    Turn a chunk of raw terminal input into key events.

    Arrow up is faster, arrow down is slower, Ctrl-C interrupts. Any other
    escape sequence or byte is reported as OTHER.
    """
    keys = []
    i = 0
    while i < len(data):
        byte = data[i]
        if byte == CTRL_C:
            keys.append(Key.INTERRUPT)
            i += 1
        elif byte == ESC:
            seq = data[i:i + 3]
            if seq in _ARROWS:
                keys.append(_ARROWS[seq])
                i += 3
            else:
                keys.append(Key.OTHER)
                i += 1
                # swallow the rest of an unknown CSI sequence
                if data[i:i + 1] == b'[':
                    i += 1
                    while i < len(data) and not 0x40 <= data[i] <= 0x7e:
                        i += 1
                    i += 1
        else:
            keys.append(Key.OTHER)
            i += 1
    return keys


class TerminalKeys:
    """
    Exclusive hold on the terminal for reading single key presses.

    Opening switches the terminal to cbreak mode with echo and signal
    generation off, so Ctrl-C arrives as a key. ``close`` restores the
    saved mode and may be called more than once.
    """

    def __init__(self, tty_path: str = TTY_PATH, poll_timeout: float = 0.1):
        self.tty_path = tty_path
        self.poll_timeout = poll_timeout
        self._fd: Optional[int] = None
        self._saved_attrs = None

    def open(self) -> 'TerminalKeys':
        try:
            self._fd = os.open(self.tty_path, os.O_RDONLY | os.O_NOCTTY)
            self._saved_attrs = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd, termios.TCSANOW)
            attrs = termios.tcgetattr(self._fd)
            attrs[3] &= ~(termios.ECHO | termios.ISIG)
            termios.tcsetattr(self._fd, termios.TCSANOW, attrs)
        except (OSError, termios.error) as e:
            self.close()
            raise TerminalIOFailure(f"cannot take over the terminal: {e}") from e

        logger.debug(f"Terminal {self.tty_path} switched to cbreak mode")
        return self

    def close(self) -> None:
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            if self._saved_attrs is not None:
                termios.tcsetattr(fd, termios.TCSAFLUSH, self._saved_attrs)
                logger.debug("Terminal mode restored")
        except termios.error as e:
            logger.warning(f"Could not restore terminal mode: {e}")
        finally:
            self._saved_attrs = None
            os.close(fd)

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def width(self) -> int:
        if self._fd is not None:
            try:
                return os.get_terminal_size(self._fd).columns
            except OSError:
                pass
        return shutil.get_terminal_size().columns

    def events(self, shutdown: threading.Event) -> Iterator[Key]:
        """Yield key events until shutdown is set."""
        if self._fd is None:
            raise TerminalIOFailure("terminal is not open")

        while not shutdown.is_set():
            try:
                ready, _, _ = select.select([self._fd], [], [], self.poll_timeout)
                if not ready:
                    continue
                data = os.read(self._fd, 32)
            except OSError as e:
                raise TerminalIOFailure(f"reading keys failed: {e}") from e

            if not data:
                raise TerminalIOFailure("terminal closed")

            for key in decode_keys(data):
                yield key
