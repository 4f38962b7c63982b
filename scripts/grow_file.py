import argparse
import time
from datetime import datetime


def grow_file(output_file: str, rate: float, count: int = 0, source: str = None):
    """
    Append lines to a file at a fixed rate, for slowtail to follow.

    Args:
        output_file: File to append to (created if missing)
        rate: Lines per second (0 = as fast as possible)
        count: Lines to write (0 = until interrupted)
        source: Optional file whose lines are appended in a loop
    """
    print(f"▶️  Growing: {output_file} at {rate} lines/sec", flush=True)

    source_lines = []
    if source:
        with open(source, 'r', encoding='utf-8', errors='replace') as f:
            source_lines = [line.rstrip('\r\n') for line in f]

    lines_written = 0

    try:
        with open(output_file, 'a', encoding='utf-8') as out:
            while count == 0 or lines_written < count:
                if source_lines:
                    line = source_lines[lines_written % len(source_lines)]
                else:
                    line = f"line {lines_written + 1} - {datetime.now().strftime('%H:%M:%S.%f')[:-3]}"

                out.write(line + '\n')
                out.flush()
                lines_written += 1

                if rate > 0:
                    time.sleep(1.0 / rate)
    except KeyboardInterrupt:
        pass

    print(f"[OK] Wrote {lines_written:,} lines", flush=True)


def main():
    parser = argparse.ArgumentParser(description='Append lines to a file at a steady rate')
    parser.add_argument('--output', required=True, help='File to append to')
    parser.add_argument('--rate', type=float, default=10, help='Lines per second')
    parser.add_argument('--count', type=int, default=0,
                       help='Number of lines (0=until Ctrl-C)')
    parser.add_argument('--source', help='Cycle through the lines of this file')

    args = parser.parse_args()

    grow_file(args.output, args.rate, args.count, args.source)


if __name__ == '__main__':
    main()
