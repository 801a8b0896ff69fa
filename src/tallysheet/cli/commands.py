"""CLI command implementations."""

from __future__ import annotations

import argparse
import asyncio

from rich.console import Console

from tallysheet.cli.render import RichStateObserver, render_state
from tallysheet.config import TallysheetConfig, load_config
from tallysheet.contracts.state import SaveResult, TimesheetState
from tallysheet.sdk import open_controller


def format_save_summary(result: SaveResult) -> str:
    lines = [f"Timesheet: {result.timesheet_id or '(not saved)'}"]
    if result.created:
        lines.append(f"Created:   {', '.join(result.created)}")
    if result.updated:
        lines.append(f"Updated:   {len(result.updated)} line item{'s' if len(result.updated) != 1 else ''}")
    if result.failed:
        lines.append(f"Failed:    {', '.join(result.failed)}")
    return "\n".join(lines)


def _load_config(args: argparse.Namespace) -> TallysheetConfig:
    config = load_config(args.config)
    if config.store == "memory":
        Console(stderr=True).print(
            "[yellow]![/yellow] Using the in-memory store: records are not kept after this command exits."
        )
    return config


def _print_state(state: TimesheetState, console: Console | None = None) -> None:
    (console or Console()).print(render_state(state))


async def run_show(args: argparse.Namespace) -> TimesheetState:
    config = _load_config(args)
    async with open_controller(config) as controller:
        state = controller.state
    _print_state(state)
    return state


async def run_set(args: argparse.Namespace) -> SaveResult:
    config = _load_config(args)
    async with open_controller(config) as controller:
        if args.description is not None:
            controller.edit_description(args.description)
        if args.rate is not None:
            controller.edit_rate(args.rate)
        result = await controller.save_all()
        state = controller.state
    _print_state(state)
    print(format_save_summary(result))
    return result


async def run_add(args: argparse.Namespace) -> SaveResult:
    config = _load_config(args)
    async with open_controller(config) as controller:
        controller.edit_draft(date=args.date, minutes=args.minutes)
        controller.add_line_item()
        result = await controller.save_all()
        state = controller.state
    _print_state(state)
    print(format_save_summary(result))
    return result


async def run_remove(args: argparse.Namespace) -> TimesheetState:
    config = _load_config(args)
    async with open_controller(config) as controller:
        controller.remove_line_item(args.key)
        await controller.drain()
        state = controller.state
    _print_state(state)
    return state


async def run_watch(args: argparse.Namespace) -> None:
    config = _load_config(args)
    with RichStateObserver() as observer:
        async with open_controller(config, observer=observer, refresh=False) as controller:
            await controller.run()


COMMANDS = {
    "show": run_show,
    "set": run_set,
    "add": run_add,
    "remove": run_remove,
    "watch": run_watch,
}


def run_command(args: argparse.Namespace) -> None:
    asyncio.run(COMMANDS[args.command](args))


__all__ = ["COMMANDS", "format_save_summary", "run_command"]
