import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TextIO

from slowtail import __version__
from slowtail.errors import InvalidConfiguration, SourceUnavailable


INT32_MAX = 2 ** 31 - 1
STDIN_MARKER = "-"

DEFAULT_DELAY_MS = 250
DEFAULT_POLL_INTERVAL = 0.25


@dataclass(frozen=True)
class StreamConfig:
    """Validated settings for one run. Built once, never mutated."""

    delay_ms: int = DEFAULT_DELAY_MS
    rewind_lines: int = 0
    source_path: str = STDIN_MARKER
    interactive: bool = False
    human_friendly: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL

    @property
    def is_stream(self) -> bool:
        return self.source_path == STDIN_MARKER


class _ArgumentParser(argparse.ArgumentParser):
    """argparse parser that raises instead of exiting on bad usage."""

    def error(self, message):
        raise InvalidConfiguration(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='slowtail',
        description='Slow Tail: relay lines from a growing file or stdin at a readable pace',
        epilog="Keep in mind: you can't rewind STDIN, but --rewind N skips "
               "the first N lines of it without delay."
    )
    parser.add_argument('file', nargs='?', default=STDIN_MARKER,
                        help='File to follow ("-" or omitted reads stdin)')
    parser.add_argument('-d', '--delay', type=int, default=DEFAULT_DELAY_MS,
                        help='Delay between lines in milliseconds (default: 250)')
    parser.add_argument('-r', '--rewind', type=int, default=0,
                        help='Rewind N lines back from the end of file (default: 0)')
    parser.add_argument('-i', '--interactive', action='store_true',
                        help='Interactive mode (arrow up/down make the flow faster/slower)')
    parser.add_argument('-p', '--porcelain', action='store_true',
                        help='Human friendly banners in interactive mode; '
                             'output should not be piped into other commands')
    parser.add_argument('--poll-interval', type=float, default=DEFAULT_POLL_INTERVAL,
                        help='How often to poll the file for new lines, in seconds')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Diagnostics on stderr (-v info, -vv debug)')
    parser.add_argument('--log-file', help='Also write diagnostics to this file')
    parser.add_argument('--version', action='version',
                        version=f'Slow Tail v{__version__}')
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def build_config(args: argparse.Namespace, stdin: Optional[TextIO] = None) -> StreamConfig:
    """
    Validate parsed arguments and freeze them into a StreamConfig.

    Args:
        args: Namespace from parse_args
        stdin: Stream checked for a terminal when reading stdin

    Returns:
        StreamConfig

    Raises:
        InvalidConfiguration: numbers out of range or nothing to read
        SourceUnavailable: FILE is not a readable regular file
    """
    if args.delay < 0 or args.delay > INT32_MAX:
        raise InvalidConfiguration("--delay must be a positive number of milliseconds")

    if args.rewind < 0 or args.rewind > INT32_MAX:
        raise InvalidConfiguration("--rewind must be a positive number of lines")

    if args.poll_interval <= 0:
        raise InvalidConfiguration("--poll-interval must be greater than zero")

    if args.file == STDIN_MARKER:
        stdin = stdin if stdin is not None else sys.stdin
        if stdin is None or stdin.isatty():
            raise InvalidConfiguration("no input: pipe data in or name a FILE")
    else:
        path = Path(args.file)
        if not path.is_file():
            raise SourceUnavailable(f"{args.file}: no such file")
        if not os.access(path, os.R_OK):
            raise SourceUnavailable(f"{args.file}: permission denied")

    return StreamConfig(
        delay_ms=args.delay,
        rewind_lines=args.rewind,
        source_path=args.file,
        interactive=args.interactive,
        human_friendly=args.porcelain,
        poll_interval=args.poll_interval,
    )
