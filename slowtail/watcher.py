import logging
import os
import threading
from typing import Iterator, Optional

from slowtail.errors import SourceUnavailable


logger = logging.getLogger(__name__)


def decode_line(raw: bytes) -> str:
    """Strip the line terminator (LF, optionally preceded by CR) and decode."""
    if raw.endswith(b'\n'):
        raw = raw[:-1]
    if raw.endswith(b'\r'):
        raw = raw[:-1]
    return raw.decode('utf-8', errors='replace')


def follow(
    file_path: str,
    shutdown: threading.Event,
    offset: Optional[int] = None,
    poll_interval: float = 0.25
) -> Iterator[str]:
    """
    Yield complete lines as they are appended to a file.

    Polls instead of relying on filesystem notifications. A partial line
    is held back until its newline arrives. If the file shrinks below the
    read position it was truncated, and reading restarts from the top.

    Args:
        file_path: Path to file
        shutdown: Stops the generator once set
        offset: Byte offset to start from (None = current end of file)
        poll_interval: Seconds to wait when no new data is available

    Yields:
        Line text without its terminator
    """
    try:
        f = open(file_path, 'rb')
    except OSError as e:
        raise SourceUnavailable(f"{file_path}: {e.strerror or e}") from e

    with f:
        try:
            if offset is None:
                f.seek(0, os.SEEK_END)
            else:
                f.seek(offset, os.SEEK_SET)
        except OSError as e:
            raise SourceUnavailable(f"{file_path}: cannot watch ({e})") from e

        logger.info(f"Watching {file_path} from byte {f.tell()}")
        pending = b''

        while not shutdown.is_set():
            chunk = f.readline()

            if not chunk:
                try:
                    size = os.fstat(f.fileno()).st_size
                except OSError as e:
                    raise SourceUnavailable(f"{file_path}: watch lost ({e})") from e

                if size < f.tell():
                    logger.warning(f"{file_path} was truncated, reading from the start")
                    f.seek(0, os.SEEK_SET)
                    pending = b''
                    continue

                shutdown.wait(poll_interval)
                continue

            pending += chunk
            if not pending.endswith(b'\n'):
                continue

            line, pending = pending, b''
            yield decode_line(line)

    logger.debug(f"Stopped watching {file_path}")
