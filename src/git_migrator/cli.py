import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .config import Config
from .constants import APP_NAME, LOG_FILE
from .errors import MigratorError
from .history import HistoryMap, read_destination_markers, read_history
from .migrate import MigrationResult, migrate_to_fake_commit_repo

logger = logging.getLogger(APP_NAME)
console = Console()
err_console = Console(stderr=True)


def setup_logging(
    level: str = "INFO", log_to_file: bool = False, max_log_size: int = 5 * 1024 * 1024
) -> None:
    """Configures the logging subsystem.

    Replaces any handlers installed by a previous call.

    Args:
        level (str): Threshold level name for the application logger.
        log_to_file (bool): If True, also write to a rotating log file.
        max_log_size (int): Max bytes of the log file before rotation.
    """
    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_to_file:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=max_log_size,
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def _records_table(title: str, records: HistoryMap) -> Table:
    """Builds a table of records ordered by timestamp (oldest first)."""
    table = Table(title=title, header_style="bold magenta")
    table.add_column("Global ID", style="cyan", no_wrap=True)
    table.add_column("Commit", style="dim")
    table.add_column("Timestamp", style="green")

    for record in sorted(records.values(), key=lambda r: r.timestamp):
        table.add_row(record.global_id, record.commit_id, record.timestamp.isoformat())
    return table


def show_history(repo: str) -> None:
    """Displays the global identifiers derived from an origin repository."""
    history = read_history(repo)
    if not history:
        console.print(f"[yellow]No commits found in {repo}.[/yellow]")
        return
    console.print(_records_table(f"History of {repo}", history))


def show_markers(repo: str) -> None:
    """Displays the migration markers present in a destination repository."""
    markers = read_destination_markers(repo)
    if not markers:
        console.print(f"[yellow]No markers found in {repo}.[/yellow]")
        return
    console.print(_records_table(f"Markers in {repo}", markers))


def _print_summary(result: MigrationResult) -> None:
    verb = "Would create" if result.dry_run else "Created"
    console.print(
        f"[bold green]✔ {verb} {len(result.created)} commit(s)[/bold green], "
        f"{len(result.skipped)} already present "
        f"(origin has {result.total})."
    )


def run_migrate(
    origin: str, destination: str, dry_run: bool = False, no_verify: bool = False
) -> MigrationResult:
    """Runs a migration with a progress spinner and prints a summary."""
    with console.status("Migrating commit timeline...", spinner="dots"):
        result = migrate_to_fake_commit_repo(
            origin, destination, dry_run=dry_run, no_verify=no_verify
        )
    _print_summary(result)
    return result


def main(argv: list[str] | None = None) -> None:
    """Entry point for the `git-migrator` command."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Copy the commit timeline of a repository into another "
        "repository as empty, timestamped commits.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command")

    migrate_parser = subparsers.add_parser(
        "migrate", help="Create missing timeline commits in the destination"
    )
    migrate_parser.add_argument("origin", help="Repository to read")
    migrate_parser.add_argument(
        "destination", help="Repository receiving empty commits"
    )
    migrate_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Show what would be created without committing",
    )
    migrate_parser.add_argument(
        "--no-verify",
        action="store_true",
        default=None,
        help="Bypass commit hooks in the destination",
    )

    history_parser = subparsers.add_parser(
        "history", help="Show the global identifiers of a repository's commits"
    )
    history_parser.add_argument("repo", help="Origin repository")

    markers_parser = subparsers.add_parser(
        "markers", help="Show markers already present in a destination"
    )
    markers_parser.add_argument("repo", help="Destination repository")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    # Paths stay as typed: the origin spelling is what gets hashed
    config_root = Path(args.destination if args.command == "migrate" else args.repo)
    config = Config.load(config_root if config_root.is_dir() else None)
    setup_logging(
        "DEBUG" if args.verbose else config.logging.level,
        config.logging.log_to_file,
        config.logging.max_log_size,
    )

    try:
        if args.command == "migrate":
            dry_run = config.migrate.dry_run if args.dry_run is None else args.dry_run
            no_verify = (
                config.migrate.no_verify if args.no_verify is None else args.no_verify
            )
            run_migrate(args.origin, args.destination, dry_run, no_verify)
        elif args.command == "history":
            show_history(args.repo)
        elif args.command == "markers":
            show_markers(args.repo)
    except MigratorError as e:
        err_console.print(f"[bold red]ERROR:[/bold red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
