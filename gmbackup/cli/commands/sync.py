"""Sync command implementation.

Backs up the Gmail mailbox into a local directory: downloads messages
that are missing locally and, with --delete, removes local messages
that were deleted in Gmail.
"""

from pathlib import Path

import typer
from typing_extensions import Annotated

from gmbackup import __version__
from gmbackup.auth import get_credentials
from gmbackup.config import get_defaults, load_config
from gmbackup.config.paths import DEFAULT_MAIL_DIR
from gmbackup.errors import GmbackupError, UsageError
from gmbackup.logger import setup_logging
from gmbackup.storage.mailstore import MailStore
from gmbackup.sync.engine import SyncEngine, SyncOptions, SyncResult
from gmbackup.sync.gmail import DEFAULT_QUERY, DEFAULT_USER, GmailClient


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gmbackup version {__version__}")
        raise typer.Exit()


def resolve_destination(destination: list[str] | None, default: Path) -> Path:
    """Pick the backup directory from the positional arguments.

    Raises:
        UsageError: If more than one destination was given.
    """
    if not destination:
        return default

    if len(destination) > 1:
        raise UsageError("expected at most one destination directory")

    return Path(destination[0]).expanduser()


def _summary(result: SyncResult, options: SyncOptions) -> str:
    summary = (
        f"{result.processed} messages processed, "
        f"{result.downloaded} downloaded, {result.deleted} deleted"
    )
    if result.stopped_early:
        summary += " (stopped early)"
    if options.dry_run:
        summary += " (dry run)"
    return summary


def sync(
    ctx: typer.Context,
    destination: Annotated[
        list[str] | None,
        typer.Argument(
            help="Backup directory [default: $HOME/mail/]", show_default=False
        ),
    ] = None,
    delete: Annotated[
        bool,
        typer.Option(
            "--delete", "-d", help="Delete local mail that has been deleted in Gmail"
        ),
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", "-n", help="Don't make any changes")
    ] = False,
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="Gmail account to backup [default: me]"),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log each message processed")
    ] = False,
    incremental: Annotated[
        bool,
        typer.Option(
            "--incremental",
            "-i",
            help="Stop fetching on first existing mail, won't detect deletes",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version information and exit",
        ),
    ] = False,
):
    """Back up a Gmail mailbox to a local directory."""
    setup_logging(verbose)

    try:
        config = load_config()
    except (OSError, ValueError) as e:
        typer.echo(f"Error: unable to load config: {e}", err=True)
        raise typer.Exit(1)

    defaults = get_defaults(config)
    default_dir = Path(defaults.get("mail_dir", DEFAULT_MAIL_DIR)).expanduser()

    try:
        mail_dir = resolve_destination(destination, default_dir)
    except UsageError as e:
        typer.echo(ctx.get_usage(), err=True)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    options = SyncOptions(
        dry_run=dry_run,
        incremental=incremental,
        delete_orphans=delete,
    )

    store = MailStore(mail_dir)

    try:
        local = store.scan()
    except OSError as e:
        typer.echo(f"Error: unable to list messages: {e}", err=True)
        raise typer.Exit(1)

    try:
        creds = get_credentials(defaults)
        client = GmailClient(creds, user_id=user or defaults.get("user", DEFAULT_USER))
        engine = SyncEngine(client, store)

        pages = client.iter_pages(query=defaults.get("query", DEFAULT_QUERY))
        result = engine.reconcile(local, pages, options)
    except (GmbackupError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(_summary(result, options))
