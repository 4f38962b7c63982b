import logging
import queue
import threading
from typing import Callable, Iterator, Optional

from slowtail.errors import SlowtailError, SourceUnavailable
from slowtail.pacing import Pacer
from slowtail.sources import LineRecord, LineSource


logger = logging.getLogger(__name__)

_CLOSED = object()


class LineChannel:
    """
    Single-slot handoff between the producer thread and the relay loop.

    A put blocks while the slot is full, so at most one line is ever
    buffered ahead of the reader. Blocking calls wake up periodically to
    check the shutdown event.
    """

    def __init__(self, shutdown: threading.Event, capacity: int = 1,
                 poll_timeout: float = 0.1):
        self._queue = queue.Queue(maxsize=capacity)
        self.shutdown = shutdown
        self.poll_timeout = poll_timeout

    def _put(self, item) -> bool:
        while not self.shutdown.is_set():
            try:
                self._queue.put(item, timeout=self.poll_timeout)
                return True
            except queue.Full:
                continue
        return False

    def put(self, record: LineRecord) -> bool:
        """Hand over a record. Returns False if shutdown interrupted the wait."""
        return self._put(record)

    def close(self) -> None:
        self._put(_CLOSED)

    def __iter__(self) -> Iterator[LineRecord]:
        while not self.shutdown.is_set():
            try:
                item = self._queue.get(timeout=self.poll_timeout)
            except queue.Empty:
                continue
            if item is _CLOSED:
                return
            yield item


class Producer(threading.Thread):
    """
    Background thread that drains a LineSource into a LineChannel.

    A source failure is kept in ``error`` for the main thread to raise,
    and the channel is closed either way so the relay loop ends.
    """

    def __init__(self, source: LineSource, channel: LineChannel):
        super().__init__(name='slowtail-producer', daemon=True)
        self.source = source
        self.channel = channel
        self.error: Optional[Exception] = None
        self.produced = 0

    def run(self):
        try:
            for record in self.source.records(self.channel.shutdown):
                if not self.channel.put(record):
                    break
                self.produced += 1
        except (SlowtailError, BrokenPipeError) as e:
            logger.debug(f"Producer failed: {e!r}")
            self.error = e
        except (OSError, ValueError) as e:
            # read, decode or replay-write failures end the run like any other
            logger.debug(f"Producer failed: {e!r}")
            self.error = SourceUnavailable(f"reading input failed: {e}")
        finally:
            self.channel.close()
            logger.info(f"Producer finished: {self.produced} lines handed over")

    def raise_if_failed(self) -> None:
        if self.error is not None:
            raise self.error


def relay(
    channel: LineChannel,
    pacer: Pacer,
    write_line: Callable[[str], None]
) -> int:
    """
    Write each record as soon as it arrives, then pace.

    Args:
        channel: Source of records, in arrival order
        pacer: Applies the current delay after every line
        write_line: Output sink

    Returns:
        Number of lines relayed
    """
    relayed = 0
    for record in channel:
        write_line(record.text)
        relayed += 1
        pacer.wait()
    return relayed
