import enum
import logging
import threading
from typing import Callable, Optional

from slowtail.errors import TerminalIOFailure
from slowtail.keyboard import Key, TerminalKeys
from slowtail.pacing import PaceState


logger = logging.getLogger(__name__)

REAL_TIME_MESSAGE = "Working in real-time…"


class ControllerState(enum.Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    TERMINATED = 'terminated'


def speed_banner(slower: bool, delay_ms: int, width: int) -> str:
    """
    Build the banner shown after a speed change.

    Narrower terminals get terser banners; below 20 columns there is none.

    Args:
        slower: Direction of the change
        delay_ms: Delay after the change
        width: Terminal width in columns

    Returns:
        Banner text, or an empty string if the terminal is too narrow
    """
    direction = "slower" if slower else "faster"
    going = f"Going {direction} (delay: {delay_ms} ms)"

    if width >= 70:
        text, real_time = f"{'━' * 16} {going} {'━' * 16}", f"{'━' * 19} {REAL_TIME_MESSAGE} {'━' * 19}"
    elif width >= 55:
        text, real_time = f"{'━' * 9} {going} {'━' * 9}", f"{'━' * 11} {REAL_TIME_MESSAGE} {'━' * 11}"
    elif width >= 40:
        text, real_time = f"━━ {going} ━━", f"━━ {REAL_TIME_MESSAGE} ━━"
    elif width >= 20:
        text, real_time = f"━ {delay_ms} ms ━", "━━━ RT ━━━"
    else:
        return ""

    return text if delay_ms > 0 else real_time


class SpeedController(threading.Thread):
    """
    Interactive speed control: arrow keys change the shared delay.

    Runs in its own thread. Once it holds the terminal it sets ``ready``;
    the caller must wait for that before streaming starts. Ctrl-C or a
    terminal failure sets the shared shutdown event, and the terminal is
    released on every way out.

    Args:
        pace: Shared delay to adjust
        shutdown: Process-wide shutdown signal
        write_line: Sink for speed banners
        human_friendly: Print a banner after every speed change
        keys_factory: Builds the key source (TerminalKeys by default)
    """

    def __init__(
        self,
        pace: PaceState,
        shutdown: threading.Event,
        write_line: Callable[[str], None],
        human_friendly: bool = False,
        keys_factory: Callable[[], TerminalKeys] = TerminalKeys
    ):
        super().__init__(name='slowtail-speed', daemon=True)
        self.pace = pace
        self.shutdown = shutdown
        self.write_line = write_line
        self.human_friendly = human_friendly
        self.keys_factory = keys_factory
        self.ready = threading.Event()
        self.state = ControllerState.IDLE
        self.error: Optional[TerminalIOFailure] = None
        self.interrupted = False
        self._keys = None

    def run(self):
        keys = self.keys_factory()
        try:
            keys.open()
        except TerminalIOFailure as e:
            self._fail(e)
            self.ready.set()
            return

        self._keys = keys
        self.state = ControllerState.RUNNING
        logger.info("Speed controller running")
        self.ready.set()

        try:
            for key in keys.events(self.shutdown):
                if not self.handle_key(key, keys.width):
                    break
        except TerminalIOFailure as e:
            self._fail(e)
        finally:
            keys.close()
            self.state = ControllerState.TERMINATED
            logger.info("Speed controller terminated")

    def _fail(self, error: TerminalIOFailure) -> None:
        self.error = error
        self.state = ControllerState.TERMINATED
        self.shutdown.set()

    def handle_key(self, key: Key, width: Callable[[], int]) -> bool:
        """Apply one key event. Returns False once the controller should stop."""
        if key is Key.SLOWER:
            self._announce(True, self.pace.slower(), width)
        elif key is Key.FASTER:
            self._announce(False, self.pace.faster(), width)
        elif key is Key.INTERRUPT:
            logger.info("Interrupt key pressed")
            self.interrupted = True
            self.shutdown.set()
            return False
        return True

    def _announce(self, slower: bool, delay_ms: int, width: Callable[[], int]) -> None:
        logger.debug(f"Delay is now {delay_ms} ms")
        if not self.human_friendly:
            return
        banner = speed_banner(slower, delay_ms, width())
        if banner:
            self.write_line(banner)

    def wait_ready(self) -> None:
        """Block until the terminal is ours, or raise why it never will be."""
        self.ready.wait()
        if self.error is not None:
            raise self.error

    def stop(self, timeout: float = 1.0) -> None:
        self.shutdown.set()
        if self.is_alive():
            self.join(timeout)
        # the thread restores the terminal itself unless it is stuck
        if self.is_alive() and self._keys is not None:
            self._keys.close()
