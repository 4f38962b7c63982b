"""
Line sources: where relayed lines come from.

Two variants share one contract, ``records(shutdown)``:

- StreamSource reads stdin (or any text stream) once, line by line, until
  end of input. It cannot rewind; a rewind count skips leading lines instead.
- FileSource optionally replays the tail of an existing file, then follows
  it for appended lines forever.

The variant is picked once by ``open_source`` and nothing downstream
needs to know which one it got.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, TextIO

from slowtail.config import StreamConfig
from slowtail.rewind import compute_rewind_plan, replay
from slowtail.watcher import decode_line, follow


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineRecord:
    index: int
    text: str


class LineSource(ABC):
    """Produces LineRecords in arrival order."""

    @abstractmethod
    def records(self, shutdown: threading.Event) -> Iterator[LineRecord]:
        ...


class StreamSource(LineSource):
    """
    Lines from a text stream, consumed exactly once as they arrive.

    Bytes are read from the stream's binary buffer when it has one and
    decoded like file lines, so invalid UTF-8 is replaced, not fatal.

    Args:
        stream: Text stream to read
        skip_lines: Number of leading lines to drop without emitting
    """

    def __init__(self, stream: TextIO, skip_lines: int = 0):
        self.stream = stream
        self.skip_lines = skip_lines

    def records(self, shutdown: threading.Event) -> Iterator[LineRecord]:
        remaining_skip = self.skip_lines
        index = 0

        for line in self._lines():
            if shutdown.is_set():
                break

            if remaining_skip > 0:
                remaining_skip -= 1
            else:
                yield LineRecord(index, line)
            index += 1

        if remaining_skip > 0:
            logger.info(f"Input ended with {remaining_skip} lines still to skip")
        logger.info(f"Stream source exhausted after {index} lines")

    def _lines(self) -> Iterator[str]:
        buffer = getattr(self.stream, 'buffer', None)
        if buffer is not None:
            for raw in iter(buffer.readline, b''):
                yield decode_line(raw)
        else:
            for line in iter(self.stream.readline, ''):
                yield line.rstrip('\r\n')


class FileSource(LineSource):
    """
    Lines appended to a file, optionally preceded by a rewind replay.

    The replay is written straight to ``write_line`` without pacing.
    Following never ends on its own, only the shutdown event stops it.

    Args:
        file_path: File to follow
        rewind_lines: Lines to replay from the end before following
        write_line: Sink for the replayed lines
        poll_interval: Seconds between polls for new data
    """

    def __init__(
        self,
        file_path: str,
        rewind_lines: int,
        write_line: Callable[[str], None],
        poll_interval: float = 0.25
    ):
        self.file_path = file_path
        self.rewind_lines = rewind_lines
        self.write_line = write_line
        self.poll_interval = poll_interval

    def records(self, shutdown: threading.Event) -> Iterator[LineRecord]:
        offset: Optional[int] = None
        index = 0

        if self.rewind_lines > 0:
            plan = compute_rewind_plan(self.file_path, self.rewind_lines)
            offset = replay(self.file_path, plan, self.write_line)
            index = plan.total_lines

        for text in follow(self.file_path, shutdown, offset=offset,
                           poll_interval=self.poll_interval):
            yield LineRecord(index, text)
            index += 1


def open_source(
    config: StreamConfig,
    stdin: TextIO,
    write_line: Callable[[str], None]
) -> LineSource:
    """Pick the source variant for this run."""
    if config.is_stream:
        logger.info("Reading from stdin")
        return StreamSource(stdin, skip_lines=config.rewind_lines)

    logger.info(f"Following {config.source_path}")
    return FileSource(
        config.source_path,
        config.rewind_lines,
        write_line,
        poll_interval=config.poll_interval,
    )
