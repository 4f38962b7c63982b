"""Error kinds raised by slowtail. Every one of them is fatal for the run."""


class SlowtailError(Exception):
    """Base class for all slowtail failures."""

    exit_code = 1


class InvalidConfiguration(SlowtailError):
    """Malformed or out-of-range command line values."""

    exit_code = 2


class SourceUnavailable(SlowtailError):
    """File missing, unreadable, or a watch could not be established."""


class TerminalIOFailure(SlowtailError):
    """Terminal could not be acquired or polled in interactive mode."""
