"""
Entry point for the slowtail command.

Wires the pieces together for one run:
- optional speed controller, waited on before any line is read
- line source (stdin or followed file) feeding a producer thread
- relay loop on the main thread, pacing after every line
"""

import logging
import os
import sys
import threading
from typing import Callable, List, Optional, TextIO

from slowtail.config import StreamConfig, build_config, parse_args
from slowtail.controller import SpeedController
from slowtail.errors import InvalidConfiguration, SlowtailError
from slowtail.keyboard import TerminalKeys
from slowtail.logger_config import setup_logger, verbosity_to_level
from slowtail.output import OutputSink, print_error, print_notice
from slowtail.pacing import PaceState, Pacer
from slowtail.relay import LineChannel, Producer, relay
from slowtail.sources import open_source


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INTERRUPTED = 130


def run(
    config: StreamConfig,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    shutdown: Optional[threading.Event] = None,
    keys_factory: Callable[[], TerminalKeys] = TerminalKeys
) -> int:
    """
    Relay lines from the configured source until it ends or shutdown.

    Args:
        config: Validated run settings
        stdin: Stream read when the source is stdin
        stdout: Stream the lines are written to
        shutdown: Stops every thread once set (created if not given)
        keys_factory: Key source for interactive mode

    Returns:
        Exit code

    Raises:
        SlowtailError: source or terminal failure
    """
    shutdown = shutdown if shutdown is not None else threading.Event()
    sink = OutputSink(stdout)
    pace = PaceState(config.delay_ms)
    pacer = Pacer(pace, shutdown)
    controller = None

    try:
        if config.interactive:
            controller = SpeedController(
                pace, shutdown, sink.write_line,
                human_friendly=config.human_friendly,
                keys_factory=keys_factory,
            )
            controller.start()
            controller.wait_ready()

        source = open_source(config, stdin if stdin is not None else sys.stdin, sink.write_line)
        channel = LineChannel(shutdown)
        producer = Producer(source, channel)
        producer.start()

        relayed = relay(channel, pacer, sink.write_line)
        logger.info(f"Relay finished: {relayed} lines relayed")

        producer.raise_if_failed()
        if controller is not None:
            controller.stop()
            if controller.error is not None:
                raise controller.error
            if controller.interrupted and config.human_friendly:
                print_notice("Bye! 🐕")

        return EXIT_OK

    except KeyboardInterrupt:
        shutdown.set()
        raise

    finally:
        if controller is not None:
            controller.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    try:
        args = parse_args(argv)
    except InvalidConfiguration as e:
        print_error(str(e))
        return e.exit_code

    setup_logger(log_file=args.log_file, level=verbosity_to_level(args.verbose))

    try:
        config = build_config(args)
        logger.info(f"Starting: source={config.source_path}, delay={config.delay_ms} ms, "
                    f"rewind={config.rewind_lines}, interactive={config.interactive}")
        return run(config)
    except SlowtailError as e:
        print_error(str(e))
        return e.exit_code
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except BrokenPipeError:
        # Reader went away (e.g. piped into head); keep the interpreter
        # from complaining again while it flushes stdout at exit
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
