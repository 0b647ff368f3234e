"""Harvest CLI entry points.
This module exposes extraction, reindex, and state inspection commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.debug_command import (
    add_debug_download_command,
    add_debug_transform_command,
    run_debug_download_command,
    run_debug_transform_command,
)
from core.config import HarvestConfig, parse_today
from extract.client import HarvestClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="harvest", description="Periodic source extraction CLI")
    parser.add_argument("--data-root", help="Override HARVEST_DATA_ROOT for this command")
    parser.add_argument("--sources-file", help="Override HARVEST_SOURCES_FILE for this command")
    parser.add_argument("--today", help="Reference date YYYY-MM-DD; overrides HARVEST_TODAY")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_run_command(subparsers)
    _add_reindex_command(subparsers)
    add_debug_download_command(subparsers)
    add_debug_transform_command(subparsers)
    _add_state_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Harvest CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    client = _build_client(args.data_root, args.sources_file, args.today)
    if args.command == "run":
        return _run_run_command(client, args)
    if args.command == "reindex":
        return _run_reindex_command(client, args)
    if args.command == "debug-download":
        return run_debug_download_command(client, args)
    if args.command == "debug-transform":
        return run_debug_transform_command(client, args)
    if args.command == "state":
        return _run_state_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(
    data_root: str | None,
    sources_file: str | None,
    today: str | None,
) -> HarvestClient:
    """Build SDK client with optional overrides.

    Args:
        data_root: Optional data root override path.
        sources_file: Optional sources file override path.
        today: Optional reference date override.

    Returns:
        Configured SDK client.
    """
    config = HarvestConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    if sources_file:
        config = replace(config, sources_file=Path(sources_file).expanduser().resolve())
    if today:
        config = replace(config, today=parse_today(today))
    return HarvestClient(config)


def _run_run_command(client: HarvestClient, args: argparse.Namespace) -> int:
    """Handle run command.

    Prints one ``source<TAB>status<TAB>period<TAB>datasets`` line per
    connector. Failures of one connector never stop the others; the exit
    code is 1 when any of them failed.
    """
    reports = client.run(args.source)
    for report in reports:
        print(
            f"{report.source}\t"
            f"{report.status}\t"
            f"{report.period or '-'}\t"
            f"{','.join(report.datasets) or '-'}"
        )
    return 1 if any(report.failed for report in reports) else 0


def _run_reindex_command(client: HarvestClient, args: argparse.Namespace) -> int:
    report = client.reindex(args.source)
    print(f"periods={len(report.periods)}")
    for dataset, row_count in report.row_counts.items():
        print(f"{dataset}\t{row_count}")
    return 0


def _run_state_command(client: HarvestClient, args: argparse.Namespace) -> int:
    state = client.state(args.source)
    print(f"downloaded={','.join(sorted(state.downloaded)) or '-'}")
    print(f"transformed={','.join(sorted(state.transformed)) or '-'}")
    return 0


def _add_run_command(subparsers: Any) -> None:
    """Register run subcommand."""
    parser = subparsers.add_parser("run", help="Extract the current period of every source")
    parser.add_argument("--source", help="Only run the named source")


def _add_reindex_command(subparsers: Any) -> None:
    """Register reindex subcommand."""
    parser = subparsers.add_parser(
        "reindex",
        help="Rebuild a source's output tables from its raw artifacts",
    )
    parser.add_argument("source", help="Source name")


def _add_state_command(subparsers: Any) -> None:
    """Register state subcommand."""
    parser = subparsers.add_parser("state", help="Show downloaded and transformed periods")
    parser.add_argument("source", help="Source name")
