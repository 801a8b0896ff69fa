"""CLI parser construction."""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version


def _package_version() -> str:
    try:
        return version("tallysheet")
    except PackageNotFoundError:
        return "0.0.0"


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default="./tallysheet.json", help="Path to tallysheet.json")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tallysheet")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    show_parser = subparsers.add_parser("show", help="Print the timesheet and its totals")
    _add_common(show_parser)

    set_parser = subparsers.add_parser("set", help="Update the description and/or rate")
    set_parser.add_argument("--description", default=None, help="Free-text description")
    set_parser.add_argument("--rate", type=float, default=None, help="Cost applied per minute")
    _add_common(set_parser)

    add_parser = subparsers.add_parser("add", help="Add a line item")
    add_parser.add_argument("--date", default="", help="ISO date (YYYY-MM-DD)")
    add_parser.add_argument("--minutes", type=float, default=0, help="Minutes worked")
    _add_common(add_parser)

    remove_parser = subparsers.add_parser("remove", help="Remove a line item")
    remove_parser.add_argument("key", help="Line item id")
    _add_common(remove_parser)

    watch_parser = subparsers.add_parser("watch", help="Follow live changes")
    _add_common(watch_parser)

    return parser


__all__ = ["build_parser"]
