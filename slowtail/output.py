import sys
import threading
from typing import Optional, TextIO

from rich.console import Console


class OutputSink:
    """
    The one place relayed lines are written to.

    The rewind replay, the relay loop and the speed banners all write
    here, possibly from different threads, so every line is written and
    flushed under a lock.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def write_line(self, text: str) -> None:
        with self._lock:
            self.stream.write(text + '\n')
            self.stream.flush()


def _stderr_console() -> Console:
    # Built per call so it always binds the current sys.stderr
    return Console(stderr=True, highlight=False)


def print_error(message: str, console: Optional[Console] = None) -> None:
    """Print an error in red on stderr."""
    console = console or _stderr_console()
    console.print(f"ERROR: {message}", style="bold red", markup=False)


def print_notice(message: str, console: Optional[Console] = None) -> None:
    console = console or _stderr_console()
    console.print(message, style="dim", markup=False)
