"""Command-line interface."""

from tallysheet.cli.app import main
from tallysheet.cli.parser import build_parser

__all__ = ["build_parser", "main"]
