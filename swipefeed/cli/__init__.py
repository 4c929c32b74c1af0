"""Command-line interface."""

from swipefeed.cli.main import cli


__all__ = ["cli"]
