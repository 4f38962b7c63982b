"""Slow Tail: paced relay of lines from a growing file or stdin."""

__version__ = "0.2.0"
