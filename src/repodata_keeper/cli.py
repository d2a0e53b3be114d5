"""Command-line interface for repodata-keeper."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import ConfigError, KeeperConfig, resolve_config
from .metadata import scan_old_metadata
from .repomd import REPOMD_FILENAME
from .retention import (
    STRATEGIES,
    RetentionError,
    purge,
    retain_copy,
    select_blacklist,
)

console = Console()


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send diagnostics to stderr through rich."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _settings(args: argparse.Namespace) -> tuple[int, str]:
    """Merge command-line options over the config file.

    Raises:
        ConfigError: If the config file is missing or invalid
    """
    config: KeeperConfig = resolve_config(args.config)
    retain = args.retain_old if args.retain_old is not None else config.retain_old
    strategy = args.strategy or config.strategy
    return retain, strategy


def _print_failures(failed: list[tuple[str, str]]) -> None:
    for name, error in failed:
        print(f"  {name}: {error}", file=sys.stderr)


def cmd_purge(args: argparse.Namespace) -> int:
    """Remove old metadata from a repository."""
    try:
        retain, strategy = _settings(args)
        result = purge(args.repo, retain, strategy=strategy, dry_run=args.dry_run)
    except (ConfigError, RetentionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    verb = "Would remove" if result.dry_run else "Removed"
    if not args.quiet:
        for name in sorted(result.removed):
            console.print(f"  [dim]-[/] {name}")
        console.print(f"{verb} {len(result.removed)} file(s) from {result.repodata_dir}")

    if result.failed:
        print(f"Error: {len(result.failed)} file(s) could not be removed:", file=sys.stderr)
        _print_failures(result.failed)
        return 1

    return 0


def cmd_retain(args: argparse.Namespace) -> int:
    """Carry old metadata over into a new repodata directory."""
    try:
        retain, strategy = _settings(args)
        result = retain_copy(
            args.old_repodata,
            args.new_repodata,
            retain,
            strategy=strategy,
            dry_run=args.dry_run,
        )
    except (ConfigError, RetentionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if result.source_missing:
        if not args.quiet:
            console.print(f"Nothing to retain: {result.old_dir} doesn't exist")
        return 0

    verb = "Would copy" if result.dry_run else "Copied"
    if not args.quiet:
        for name in sorted(result.copied):
            console.print(f"  [green]+[/] {name}")
        console.print(
            f"{verb} {len(result.copied)} file(s), "
            f"skipped {len(result.skipped)} existing, "
            f"excluded {len(result.excluded)}"
        )

    if result.failed:
        print(f"Error: {len(result.failed)} file(s) could not be copied:", file=sys.stderr)
        _print_failures(result.failed)
        return 1

    return 0


def cmd_blacklist(args: argparse.Namespace) -> int:
    """Show which old metadata files would be kept or dropped."""
    repodata_dir: Path = args.repodata

    if not repodata_dir.is_dir():
        print(f"Error: Repodata directory not found: {repodata_dir}", file=sys.stderr)
        return 1

    try:
        retain, strategy = _settings(args)
        blacklist = select_blacklist(repodata_dir, retain, strategy)
        sequences = scan_old_metadata(repodata_dir)
    except (ConfigError, RetentionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Cannot open directory: {repodata_dir}: {e}", file=sys.stderr)
        return 1

    table = Table(title=f"{repodata_dir} (retain {retain}, {strategy})")
    table.add_column("Category")
    table.add_column("File")
    table.add_column("Modified")
    table.add_column("Action")

    listed: set[str] = set()
    for category, files in sequences.items():
        for f in files:
            listed.add(f.name)
            modified = datetime.fromtimestamp(f.mtime, UTC).strftime("%Y-%m-%d %H:%M")
            action = "[red]drop[/]" if f.name in blacklist else "[green]keep[/]"
            table.add_row(category.label, f.name, modified, action)

    # The manifest strategy can blacklist files that aren't classified
    for name in sorted(blacklist - listed):
        table.add_row("-", name, "", "[red]drop[/]")

    console.print(table)
    if not args.quiet:
        console.print(f"[dim]{REPOMD_FILENAME} is always dropped[/]")

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for repodata-keeper CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-r",
        "--retain-old",
        type=int,
        default=None,
        help="Old metadata files to keep per category; -1 keeps all (default: from config, else 0)",
    )
    common.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default=None,
        help="How old metadata is recognized (default: from config, else classic)",
    )
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: ./repodata-keeper.toml if present)",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug diagnostics",
    )
    common.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only print errors",
    )

    parser = argparse.ArgumentParser(
        prog="repodata-keeper",
        description="Apply the old metadata retention policy to repodata directories",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # purge subcommand
    purge_parser = subparsers.add_parser(
        "purge",
        parents=[common],
        help="Remove old metadata and repomd.xml from REPO/repodata",
    )
    purge_parser.add_argument(
        "repo",
        type=Path,
        help="Repository root containing repodata/",
    )
    purge_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be removed without removing anything",
    )
    purge_parser.set_defaults(func=cmd_purge)

    # retain subcommand
    retain_parser = subparsers.add_parser(
        "retain",
        parents=[common],
        help="Copy old metadata worth keeping into a new repodata directory",
    )
    retain_parser.add_argument(
        "old_repodata",
        type=Path,
        help="Old repodata directory",
    )
    retain_parser.add_argument(
        "new_repodata",
        type=Path,
        help="Newly generated repodata directory",
    )
    retain_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be copied without copying anything",
    )
    retain_parser.set_defaults(func=cmd_retain)

    # blacklist subcommand
    blacklist_parser = subparsers.add_parser(
        "blacklist",
        parents=[common],
        help="Show which old metadata files would be kept or dropped",
    )
    blacklist_parser.add_argument(
        "repodata",
        type=Path,
        help="Repodata directory to inspect",
    )
    blacklist_parser.set_defaults(func=cmd_blacklist)

    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose, quiet=args.quiet)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
