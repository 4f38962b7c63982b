import argparse
import io
import json
import threading
import time

import numpy as np
import psutil

from slowtail.pacing import PaceState, Pacer
from slowtail.relay import LineChannel, Producer, relay
from slowtail.sources import StreamSource


class _TimestampSink:
    """Records when each line reaches the output."""

    def __init__(self):
        self.timestamps = []

    def write_line(self, text: str) -> None:
        self.timestamps.append(time.monotonic())


def measure_pacing(delay_ms: int, lines: int, output_file: str = None) -> dict:
    """
    Relay synthetic lines through the pacer and report the gaps between them.

    Args:
        delay_ms: Pacer delay in milliseconds
        lines: Number of lines to relay
        output_file: Optional output JSON file

    Returns:
        Dictionary with gap statistics and CPU usage
    """
    print(f"[*] Relaying {lines} lines with delay={delay_ms} ms")

    stream = io.StringIO(''.join(f"line {i}\n" for i in range(lines)))
    shutdown = threading.Event()
    channel = LineChannel(shutdown)
    producer = Producer(StreamSource(stream), channel)
    sink = _TimestampSink()
    pacer = Pacer(PaceState(delay_ms), shutdown)

    process = psutil.Process()
    process.cpu_percent(interval=None)
    cpu_before = process.cpu_times()

    producer.start()
    relay(channel, pacer, sink.write_line)
    producer.join()

    cpu_after = process.cpu_times()
    cpu_percent = process.cpu_percent(interval=None)

    if len(sink.timestamps) < 2:
        print("[WARNING] Need at least 2 lines to measure gaps")
        return {}

    gaps = np.diff(sink.timestamps) * 1000.0
    overshoot = gaps - delay_ms

    stats = {
        'delay_ms': delay_ms,
        'count': int(len(gaps)),
        'mean': float(np.mean(gaps)),
        'median': float(np.median(gaps)),
        'std': float(np.std(gaps)),
        'min': float(np.min(gaps)),
        'max': float(np.max(gaps)),
        'p50': float(np.percentile(gaps, 50)),
        'p90': float(np.percentile(gaps, 90)),
        'p99': float(np.percentile(gaps, 99)),
        'mean_overshoot': float(np.mean(overshoot)),
        'cpu_seconds': float((cpu_after.user - cpu_before.user) + (cpu_after.system - cpu_before.system)),
        'cpu_percent': float(cpu_percent),
    }

    print("\nInter-line gaps (ms):")
    print(f"  Count:  {stats['count']:,}")
    print(f"  Mean:   {stats['mean']:.2f}")
    print(f"  Median: {stats['median']:.2f}")
    print(f"  Std:    {stats['std']:.2f}")
    print(f"  Min:    {stats['min']:.2f}")
    print(f"  Max:    {stats['max']:.2f}")
    print(f"  P90:    {stats['p90']:.2f}")
    print(f"  P99:    {stats['p99']:.2f}")
    print(f"  Mean overshoot: {stats['mean_overshoot']:.2f}")
    print(f"  CPU: {stats['cpu_seconds']:.3f}s ({stats['cpu_percent']:.1f}%)")

    if stats['min'] < delay_ms:
        print(f"[WARNING] Shortest gap {stats['min']:.2f} ms is below the configured delay")

    if output_file:
        with open(output_file, 'w') as f:
            json.dump(stats, f, indent=2)
        print(f"\n[OK] Saved to: {output_file}")

    return stats


def main():
    parser = argparse.ArgumentParser(description='Measure how closely the pacer keeps its delay')
    parser.add_argument('--delay', type=int, default=100, help='Delay in milliseconds')
    parser.add_argument('--lines', type=int, default=50, help='Number of lines to relay')
    parser.add_argument('--output', help='Output JSON file (optional)')

    args = parser.parse_args()

    measure_pacing(args.delay, args.lines, args.output)


if __name__ == '__main__':
    main()
