#!/usr/bin/env python3
"""
brim - Browser profile import

Detect installed browser profiles, preview what they hold, and import
history, bookmarks, cookies and saved logins into the local store.
"""
import sys
import argparse
import json
import logging
from pathlib import Path
from rich.console import Console
from rich.table import Table

from brim.config import get_config, init_config
from brim.db import get_db
from brim.engine import ImportEngine, ProfileNotFoundError
from brim.records import Category, ImportRunOptions
from brim.timestamps import to_datetime

logger = logging.getLogger(__name__)


console = Console()


def _engine(args) -> ImportEngine:
    return ImportEngine(get_db(args.db))


def _format_ms(ms) -> str:
    dt = to_datetime(ms)
    return dt.strftime("%Y-%m-%d %H:%M") if dt else "session"


def cmd_profiles(args):
    """List detected browser profiles."""
    profiles = _engine(args).detect_profiles()

    if args.output == "json":
        print(json.dumps([p.to_dict() for p in profiles], indent=2))
        return

    if not profiles:
        console.print("[yellow]No browser profiles detected[/yellow]")
        return

    table = Table(title="Detected Browser Profiles")
    table.add_column("ID", style="cyan")
    table.add_column("Browser", style="green")
    table.add_column("Name", style="white")
    table.add_column("Path", style="dim")

    for profile in profiles:
        table.add_row(
            profile.id,
            profile.browser_kind.label,
            profile.display_name,
            str(profile.profile_dir or ""),
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(profiles)} profiles[/dim]")


def cmd_preview(args):
    """Show what a profile holds."""
    preview = _engine(args).preview(args.profile_id)

    if args.output == "json":
        print(json.dumps(preview.to_dict(), indent=2))
        return

    table = Table(title=f"Preview: {preview.profile_id}")
    table.add_column("Category", style="cyan")
    table.add_column("Available", style="green", justify="right")

    for category in Category:
        count = preview.counts.get(category.value)
        table.add_row(category.label, str(count) if count is not None else "[dim]-[/dim]")

    console.print(table)
    for note in preview.notes:
        console.print(f"[yellow]{note}[/yellow]")


def cmd_run(args):
    """Import a profile into the store."""
    options = ImportRunOptions(
        history=args.history,
        bookmarks=args.bookmarks,
        cookies=args.cookies,
        passwords=args.passwords,
        limit=args.limit,
    )
    if options.limit is None:
        options.limit = get_config().get_limit()

    if args.output != "json":
        console.print(f"[cyan]Importing from {args.profile_id}...[/cyan]")

    result = _engine(args).run(args.profile_id, options)

    if args.output == "json":
        print(json.dumps(result.to_dict(), indent=2))
    else:
        table = Table(title=f"Imported from {result.profile_id}")
        table.add_column("Category", style="cyan")
        table.add_column("Rows", style="green", justify="right")
        for category in Category:
            if options.selected(category):
                table.add_row(category.label, str(result.imported.get(category.value, 0)))
        console.print(table)

        for error in result.errors:
            console.print(f"[red]✗ {error}[/red]")
        if result.ok:
            console.print("[green]✓ Import complete[/green]")

    if not result.ok:
        sys.exit(1)


def cmd_db_stats(args):
    """Show canonical store statistics and recent imports."""
    db = get_db(args.db)
    stats = db.stats()
    recent = db.recent_imports(limit=5)

    if args.output == "json":
        stats["recent_imports"] = [
            {
                "profile_id": log.profile_id,
                "browser": log.browser,
                "finished_at": log.finished_at,
                "imported": log.imported,
                "errors": log.errors or [],
            }
            for log in recent
        ]
        print(json.dumps(stats, indent=2))
        return

    table = Table(title="Database Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for key, value in stats.items():
        if key == "database_size":
            value = f"{value / 1024 / 1024:.2f} MB"
        table.add_row(key.replace("_", " ").title(), str(value))
    console.print(table)

    if recent:
        log_table = Table(title="Recent Imports")
        log_table.add_column("Profile", style="cyan")
        log_table.add_column("When", style="dim")
        log_table.add_column("Imported", style="green")
        log_table.add_column("Errors", style="red", justify="right")
        for log in recent:
            log_table.add_row(
                log.profile_id,
                _format_ms(log.finished_at),
                ", ".join(f"{k}={v}" for k, v in (log.imported or {}).items()),
                str(len(log.errors or [])),
            )
        console.print(log_table)


def cmd_cookies(args):
    """List imported cookies."""
    cookies = get_db(args.db).cookies(source=args.source)

    if args.output == "json":
        print(json.dumps([
            {
                "host": c.host,
                "name": c.name,
                "path": c.path,
                "expires_at": c.expires_at,
                "secure": c.secure,
                "http_only": c.http_only,
                "same_site": c.same_site,
                "source": c.source,
            }
            for c in cookies
        ], indent=2))
        return

    if not cookies:
        console.print("[yellow]No cookies imported[/yellow]")
        return

    table = Table(title="Imported Cookies")
    table.add_column("Host", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Path", style="dim")
    table.add_column("Expires", style="green")
    table.add_column("Source", style="dim")
    for c in cookies:
        table.add_row(c.host, c.name, c.path, _format_ms(c.expires_at), c.source or "")
    console.print(table)
    console.print(f"\n[dim]Total: {len(cookies)} cookies[/dim]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brim",
        description="brim - import another browser's profile data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  brim profiles
  brim preview chrome:Default
  brim run chrome:Default --cookies --limit 1000
  brim run firefox:abcd1234.default-release --no-history
  brim cookies --source chrome
  brim db stats

Configuration:
  Default database: ./brim.db or from config
  Config file: ~/.config/brim/config.toml
  Environment: BRIM_DATABASE, BRIM_BROWSER_ROOTS, BRIM_OUTPUT_FORMAT
        """
    )

    # Global options
    parser.add_argument("--db", help="Database file (default: brim.db)")
    parser.add_argument("--config", help="Config file path")
    parser.add_argument("-o", "--output", choices=["table", "json"], help="Output format")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Commands")

    profiles_parser = subparsers.add_parser("profiles", help="List detected browser profiles")
    profiles_parser.set_defaults(func=cmd_profiles)

    preview_parser = subparsers.add_parser("preview", help="Count what a profile holds")
    preview_parser.add_argument("profile_id", help="Profile id (see 'brim profiles')")
    preview_parser.set_defaults(func=cmd_preview)

    run_parser = subparsers.add_parser("run", help="Import a profile")
    run_parser.add_argument("profile_id", help="Profile id (see 'brim profiles')")
    run_parser.add_argument("--history", action=argparse.BooleanOptionalAction, default=True,
                            help="Import browsing history (default: on)")
    run_parser.add_argument("--bookmarks", action=argparse.BooleanOptionalAction, default=True,
                            help="Import bookmarks (default: on)")
    run_parser.add_argument("--cookies", action="store_true", help="Import cookies")
    run_parser.add_argument("--passwords", action="store_true", help="Import saved logins")
    run_parser.add_argument("--limit", type=int, help="Newest rows per category")
    run_parser.set_defaults(func=cmd_run)

    db_parser = subparsers.add_parser("db", help="Database management")
    db_subparsers = db_parser.add_subparsers(dest="db_command", required=True)
    db_stats = db_subparsers.add_parser("stats", help="Show store statistics")
    db_stats.set_defaults(func=cmd_db_stats)

    cookies_parser = subparsers.add_parser("cookies", help="List imported cookies")
    cookies_parser.add_argument("--source", help="Only cookies imported from this browser kind")
    cookies_parser.set_defaults(func=cmd_cookies)

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Initialize configuration with CLI overrides
    config_args = {}
    if args.output:
        config_args["output_format"] = args.output
    if args.config:
        config_args["config_file"] = Path(args.config)

    config = init_config(database=args.db, **config_args)

    if not args.output:
        args.output = config.output_format
    if not config.color_output:
        console.no_color = True

    level = logging.DEBUG if args.verbose else getattr(logging, str(config.log_level).upper(), logging.INFO)
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')

    try:
        args.func(args)
    except ProfileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
