import io
import threading
import time

import pytest

from slowtail.errors import SourceUnavailable
from slowtail.pacing import PaceState, Pacer
from slowtail.relay import LineChannel, Producer, relay
from slowtail.sources import LineRecord, LineSource, StreamSource


class _FailingSource(LineSource):
    def records(self, shutdown):
        yield LineRecord(0, 'before failure')
        raise SourceUnavailable('log.txt: watch lost')


class _BrokenReadSource(LineSource):
    def records(self, shutdown):
        yield LineRecord(0, 'before failure')
        raise OSError(5, 'Input/output error')


class _ClosedOutputSource(LineSource):
    def records(self, shutdown):
        raise BrokenPipeError(32, 'Broken pipe')
        yield


class _EndlessSource(LineSource):
    def records(self, shutdown):
        index = 0
        while not shutdown.is_set():
            yield LineRecord(index, f'line {index}')
            index += 1


def _start(source, shutdown=None):
    shutdown = shutdown or threading.Event()
    channel = LineChannel(shutdown, poll_timeout=0.02)
    producer = Producer(source, channel)
    producer.start()
    return channel, producer


def test_channel_buffers_at_most_one_line():
    """Test the producer cannot run ahead of the reader by more than one line."""
    channel, producer = _start(StreamSource(io.StringIO('a\nb\nc\nd\n')))

    time.sleep(0.2)
    assert producer.produced == 1

    out = []
    relay(channel, Pacer(PaceState(0)), out.append)
    producer.join(timeout=2)

    assert out == ['a', 'b', 'c', 'd']
    assert producer.produced == 4


def test_relay_preserves_order_and_count():
    """Test every line is relayed once, in arrival order."""
    lines = [f'line {i}' for i in range(100)]
    channel, producer = _start(StreamSource(io.StringIO('\n'.join(lines) + '\n')))

    out = []
    relayed = relay(channel, Pacer(PaceState(0)), out.append)

    assert relayed == 100
    assert out == lines


def test_relay_paces_between_lines():
    """Test each line is written and then followed by the delay."""
    channel, producer = _start(StreamSource(io.StringIO('a\nb\nc\n')))
    stamps = []

    relay(channel, Pacer(PaceState(100)), lambda line: stamps.append(time.monotonic()))

    gaps = [b - a for a, b in zip(stamps, stamps[1:])]
    assert len(gaps) == 2
    assert all(gap >= 0.095 for gap in gaps)


def test_relay_ends_on_shutdown():
    """Test an endless source stops once shutdown is set."""
    shutdown = threading.Event()
    channel, producer = _start(_EndlessSource(), shutdown)
    out = []

    def write_line(text):
        out.append(text)
        if len(out) == 5:
            shutdown.set()

    relay(channel, Pacer(PaceState(0), shutdown), write_line)
    producer.join(timeout=2)

    assert out == [f'line {i}' for i in range(5)]
    assert not producer.is_alive()


def test_producer_keeps_source_error():
    """Test a source failure ends the relay and is raised afterwards."""
    channel, producer = _start(_FailingSource())
    out = []

    relay(channel, Pacer(PaceState(0)), out.append)
    producer.join(timeout=2)

    assert out == ['before failure']
    with pytest.raises(SourceUnavailable):
        producer.raise_if_failed()


def test_producer_turns_read_errors_into_source_failure():
    """Test a raw I/O error in the source still fails the run."""
    channel, producer = _start(_BrokenReadSource())
    out = []

    relay(channel, Pacer(PaceState(0)), out.append)
    producer.join(timeout=2)

    assert out == ['before failure']
    with pytest.raises(SourceUnavailable, match='Input/output error'):
        producer.raise_if_failed()


def test_producer_passes_broken_pipe_through():
    """Test a closed stdout during replay is not reported as an input failure."""
    channel, producer = _start(_ClosedOutputSource())

    relay(channel, Pacer(PaceState(0)), lambda line: None)
    producer.join(timeout=2)

    with pytest.raises(BrokenPipeError):
        producer.raise_if_failed()


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
