"""Debug command wiring for Harvest CLI."""

from __future__ import annotations

import argparse
import json
from typing import Any

from extract.client import HarvestClient


def add_debug_download_command(subparsers: Any) -> None:
    """Register debug-download subcommand."""
    parser = subparsers.add_parser(
        "debug-download",
        help="Download one period into the archive without transforming it",
    )
    parser.add_argument("source", help="Source name")
    parser.add_argument("period", help="Period such as 2024_03, 2024_Q1, or 2024_03_05")


def add_debug_transform_command(subparsers: Any) -> None:
    """Register debug-transform subcommand."""
    parser = subparsers.add_parser(
        "debug-transform",
        help="Transform an archived period and print records without saving",
    )
    parser.add_argument("source", help="Source name")
    parser.add_argument("period", help="Archived period to transform")


def run_debug_download_command(client: HarvestClient, args: argparse.Namespace) -> int:
    """Download a period and print the artifact path."""
    artifact = client.debug_download(args.source, args.period)
    if artifact is None:
        print("status=pending")
        return 0
    print(f"artifact_path={artifact.path}")
    return 0


def run_debug_transform_command(client: HarvestClient, args: argparse.Namespace) -> int:
    """Transform an archived period and print records as JSON lines."""
    record_sets = client.debug_transform(args.source, args.period)
    for record_set in record_sets:
        print(f"dataset={record_set.dataset}\trecords={len(record_set.records)}")
        for record in record_set.records:
            print(json.dumps(record, default=str, sort_keys=False))
    return 0
