import threading

import pytest

from slowtail.errors import TerminalIOFailure


class FakeKeys:
    """Stands in for the terminal: plays back keys, then idles until shutdown."""

    def __init__(self, keys=(), width=80, fail_open=False, fail_after_keys=False,
                 gate=None):
        self.keys = list(keys)
        self._width = width
        self.fail_open = fail_open
        self.fail_after_keys = fail_after_keys
        self.gate = gate
        self.opened = False
        self.closed = False

    def open(self):
        if self.gate is not None:
            self.gate.wait()
        if self.fail_open:
            raise TerminalIOFailure("cannot take over the terminal: not a tty")
        self.opened = True
        return self

    def close(self):
        self.closed = True

    def width(self):
        return self._width

    def events(self, shutdown):
        for key in self.keys:
            yield key
        if self.fail_after_keys:
            raise TerminalIOFailure("reading keys failed: I/O error")
        while not shutdown.is_set():
            shutdown.wait(0.01)


@pytest.fixture
def fake_keys():
    """Factory building FakeKeys and remembering the last one built."""
    built = []

    def factory(**kwargs):
        def make():
            keys = FakeKeys(**kwargs)
            built.append(keys)
            return keys
        make.built = built
        return make

    return factory


@pytest.fixture
def shutdown():
    return threading.Event()
