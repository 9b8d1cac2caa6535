"""
Command line ABN lookup.

Usage examples:
    mxm-abnchecker 51824753556
    mxm-abnchecker "51 824 753 556" --json
    mxm-abnchecker 51824753556 --force-refresh --verbose
    mxm-abnchecker 51824753556 --config ~/.config/mxm-abnchecker.yaml
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from mxm.abnchecker.config.config import (
    ConfigError,
    load_abnchecker_config,
    load_checker_settings,
)
from mxm.abnchecker.sources.abr.common.models import (
    AbnRecord,
    ErrorCode,
    LookupResult,
)
from mxm.abnchecker.sources.abr.lookup.api import AbnChecker

console = Console()

EXIT_CODES: dict[ErrorCode, int] = {
    ErrorCode.NO_IDENTIFIER: 2,
    ErrorCode.INVALID_FORMAT: 2,
    ErrorCode.NOT_FOUND: 1,
    ErrorCode.UPSTREAM_UNAVAILABLE: 3,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mxm-abnchecker",
        description="Look up an ABN on the Australian Business Register.",
    )
    parser.add_argument("abn", help="ABN to look up (spaces and dashes allowed).")
    parser.add_argument("--config", type=Path, help="Extra YAML config file.")
    parser.add_argument(
        "--force-refresh",
        action="store_true",
        help="Ignore any cached record and fetch the page again.",
    )
    parser.add_argument(
        "--no-cache", action="store_true", help="Neither read nor write the cache."
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the raw JSON result."
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress.")
    return parser


def _since(value: date | None) -> str:
    return f" from {value.isoformat()}" if value else ""


def render_record(record: AbnRecord, origin: str | None) -> None:
    """Pretty-print one record."""
    name = escape(record.entity_name or "(no name)")
    header = f"[bold cyan]{name}[/bold cyan]\n[white]ABN:[/white] {record.abn}"
    console.print(Panel(header, title="ABN Lookup", subtitle=origin))

    table = Table(title="Registration")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    status = record.registration_status
    if status:
        table.add_row("ABN status", status.status + _since(status.effective_date))
    if record.entity_type:
        table.add_row(
            "Entity type",
            f"{record.entity_type.type_name} ({record.entity_type.type_code})",
        )
    gst = record.tax_registration
    if gst.registered:
        table.add_row("GST", "Registered" + _since(gst.effective_date))
    else:
        table.add_row("GST", "Not registered")
    if record.location:
        table.add_row(
            "Location", f"{record.location.state_code} {record.location.postcode}"
        )
    table.add_row("Retrieved", record.retrieved_at.isoformat())
    console.print(table)


def render_result(result: LookupResult, *, as_json: bool) -> None:
    if as_json:
        console.print_json(json.dumps(result.to_json(), ensure_ascii=False))
        return
    if result.success and result.record is not None:
        render_record(result.record, result.origin)
        return
    error = result.error
    code = error.code.value if error else "ERROR"
    message = error.message if error else ""
    console.print(Panel(f"[red]{escape(message)}[/red]", title=code))


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        cfg = load_abnchecker_config(config_path=args.config)
        settings = load_checker_settings(cfg)
    except (FileNotFoundError, ConfigError, ValueError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 2

    if args.no_cache:
        settings = replace(settings, cache=replace(settings.cache, enabled=False))

    with AbnChecker(settings) as checker:
        result = checker.lookup(args.abn, force_refresh=args.force_refresh)

    render_result(result, as_json=args.json)
    if result.success or result.error is None:
        return 0
    return EXIT_CODES[result.error.code]


if __name__ == "__main__":
    raise SystemExit(main())
