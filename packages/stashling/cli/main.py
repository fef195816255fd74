"""Command-line interface for inspecting and clearing stashes."""

from __future__ import annotations

import argparse
from datetime import datetime
import logging
from pathlib import Path
import sys

from rich.console import Console
from rich.table import Table

from stashling.core.caching import FSStash, NotFoundError, StashError
from stashling.core.config import StashSettings, load_settings
from stashling.core.stash import open_stash
from stashling.core.utils.logging import configure_logging

console = Console()
logger = logging.getLogger(__name__)


def _format_ms(ms: float | None) -> str:
    if ms is None:
        return "-"
    if ms >= 1000:
        return f"{ms / 1000:.1f}s"
    return f"{ms:.0f}ms"


def _format_bytes(size: int | None) -> str:
    if size is None:
        return "-"
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f}{unit}" if unit == "B" else f"{value:.1f}{unit}"
        value /= 1024
    return f"{value:.1f}GB"


def list_entries(store: FSStash) -> int:
    """Print a table of stash entries."""
    entries = store.entries()
    if not entries:
        console.print(f"[dim]No stashed objects in {store.root}[/dim]")
        return 0

    table = Table(title=f"Stash: {store.root}")
    table.add_column("Key")
    table.add_column("Depends on")
    table.add_column("Created")
    table.add_column("Compute", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Complete")

    for entry in entries:
        record = entry.record
        if record is None:
            table.add_row(entry.key, "[red]unreadable[/red]", "-", "-", "-", "[red]no[/red]")
            continue
        created = datetime.fromtimestamp(record.created_at).strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(
            entry.key,
            ", ".join(record.fingerprint.dependency_names) or "-",
            created,
            _format_ms(record.compute_ms),
            _format_bytes(record.value_bytes),
            "[green]yes[/green]" if entry.complete else "[red]no[/red]",
        )

    console.print(table)
    return 0


def show_entry(store: FSStash, key: str) -> int:
    """Print the fingerprint of one entry."""
    try:
        record = store.read_record(key)
    except NotFoundError:
        console.print(f"[red]ERROR: No stash entry for {key!r}[/red]")
        return 1

    table = Table(title=f"Fingerprint: {key}")
    table.add_column("Component")
    table.add_column("Digest")
    for component in record.fingerprint.components:
        table.add_row(component.name, component.digest)
    console.print(table)
    console.print(f"Value stored: {'yes' if store.values.exists(key) else 'no'}")
    return 0


def clear_entries(store: FSStash, keys: list[str]) -> int:
    """Remove the given entries, or all of them when no keys are given."""
    targets = keys or store.keys()
    missing = []
    removed = 0
    for key in targets:
        if store.remove(key):
            removed += 1
        else:
            missing.append(key)

    console.print(f"[green]Removed {removed} stash entr{'y' if removed == 1 else 'ies'}[/green]")
    if missing:
        console.print(f"[yellow]Not found: {', '.join(missing)}[/yellow]")
        return 1
    return 0


def _load_settings(args: argparse.Namespace) -> StashSettings:
    settings = load_settings(Path(args.config) if args.config else None)
    if args.stash_dir:
        settings = settings.model_copy(update={"stash_dir": args.stash_dir})
    return settings


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="stashling",
        description="Inspect and clear stashed computation results",
    )
    p.add_argument("--stash-dir", help="Stash directory (default: from settings)")
    p.add_argument("--config", help="Settings file (.json, .yaml or .yml)")
    p.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: from settings)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list", help="List stashed objects")

    show = sub.add_parser("show", help="Show the fingerprint of a stashed object")
    show.add_argument("key", help="Stash key")

    clear = sub.add_parser("clear", help="Remove stashed objects (all if no keys given)")
    clear.add_argument("keys", nargs="*", help="Stash keys to remove")

    return p


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    args = build_arg_parser().parse_args(argv)

    try:
        settings = _load_settings(args)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]ERROR: Could not load settings: {e}[/red]")
        return 1

    configure_logging(
        level=args.log_level or settings.logging.level,
        format_string=settings.logging.format,
        structured=settings.logging.structured,
    )

    store = open_stash(settings)
    try:
        if args.cmd == "list":
            return list_entries(store)
        if args.cmd == "show":
            return show_entry(store, args.key)
        if args.cmd == "clear":
            return clear_entries(store, args.keys)
    except StashError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    return 1


if __name__ == "__main__":
    sys.exit(main())
