"""Command-line interface for transitalign."""

from transitalign.cli.main import cli

__all__ = ["cli"]
