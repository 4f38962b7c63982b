import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Tuple

from slowtail.errors import SourceUnavailable
from slowtail.watcher import decode_line


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewindPlan:
    total_lines: int
    skip_threshold: int


def _iter_raw_lines(file_path: str) -> Iterator[Tuple[bytes, int]]:
    """Yield (raw_line, offset_after_line) for every line in the file."""
    try:
        f = open(file_path, 'rb')
    except OSError as e:
        raise SourceUnavailable(f"{file_path}: {e.strerror or e}") from e

    with f:
        offset = 0
        for raw in f:
            offset += len(raw)
            yield raw, offset


def count_lines(file_path: str) -> int:
    """
    Count newline-terminated lines with one full pass over the file.

    A trailing line still being written (no newline yet) is not counted.

    Args:
        file_path: Path to file

    Returns:
        Number of lines
    """
    total = 0
    for raw, _ in _iter_raw_lines(file_path):
        if raw.endswith(b'\n'):
            total += 1
    return total


def compute_rewind_plan(file_path: str, rewind_lines: int) -> RewindPlan:
    """
    Work out from which line a rewind replay starts.

    The threshold is the absolute difference between the requested rewind
    and the file length, so asking for more lines than the file holds
    reflects around zero instead of failing.

    Args:
        file_path: Path to file
        rewind_lines: Number of lines to rewind from the end

    Returns:
        RewindPlan
    """
    total_lines = count_lines(file_path)
    plan = RewindPlan(
        total_lines=total_lines,
        skip_threshold=abs(rewind_lines - total_lines),
    )
    logger.info(f"Rewind plan for {file_path}: {plan.total_lines} lines, "
                f"replaying from line {plan.skip_threshold}")
    return plan


def replay(file_path: str, plan: RewindPlan, write_line: Callable[[str], None]) -> int:
    """
    Second pass: write every line at or past the plan's threshold.

    Stops at the last newline, so a partially written last line is left
    for the watcher to pick up once it is complete.

    Args:
        file_path: Path to file
        plan: Plan from compute_rewind_plan
        write_line: Output sink

    Returns:
        Byte offset after the last complete line, for the watcher to resume from
    """
    offset = 0
    for line_num, (raw, end) in enumerate(_iter_raw_lines(file_path)):
        if not raw.endswith(b'\n'):
            break
        if line_num >= plan.skip_threshold:
            write_line(decode_line(raw))
        offset = end
    return offset
