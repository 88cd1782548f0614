"""Config command implementation.

Manages gmbackup configuration and Gmail authentication.
"""

import typer
from typing_extensions import Annotated

from gmbackup.auth import authenticate_loopback_flow, clear_token, load_client_config
from gmbackup.config import (
    CONFIG_FILE,
    get_defaults,
    init_config,
    load_config,
    set_config_value,
)
from gmbackup.config.paths import CONFIG_DIR, TOKEN_FILE
from gmbackup.config.schema import GmbackupConfig
from gmbackup.errors import AuthError
from gmbackup.logger import setup_logging

app = typer.Typer(
    name="gmbackup-config",
    help="Manage gmbackup configuration and authentication",
    no_args_is_help=True,
)


def _load_config_or_exit() -> GmbackupConfig:
    try:
        return load_config()
    except (OSError, ValueError) as e:
        typer.echo(f"Error: unable to load config: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def init(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite existing config")
    ] = False,
):
    """Initialize configuration directory and template config file."""
    created = init_config(overwrite=force)

    if created:
        typer.echo(f"Created config directory: {CONFIG_DIR}")
        typer.echo(f"Created config file: {CONFIG_FILE}")
        typer.echo()
        typer.echo("Edit the config file to set up your OAuth client.")
    else:
        typer.echo(f"Config already exists at {CONFIG_FILE}")
        typer.echo("Use --force to overwrite.")


@app.command()
def auth(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show where credentials come from")
    ] = False,
):
    """Authenticate with Gmail using the browser-based OAuth flow.

    Requests read-only access to your mailbox. The token is cached
    locally for future runs.
    """
    setup_logging(verbose)
    defaults = get_defaults(_load_config_or_exit())

    typer.echo("Starting authentication...")

    try:
        authenticate_loopback_flow(load_client_config(defaults))
    except AuthError as e:
        typer.echo(f"Authentication failed: {e}", err=True)
        raise typer.Exit(1)

    typer.echo("Authentication successful!")
    typer.echo(f"Token saved to: {TOKEN_FILE}")


@app.command()
def logout():
    """Remove the cached OAuth token."""
    if clear_token():
        typer.echo(f"Removed {TOKEN_FILE}")
    else:
        typer.echo("Not logged in.")


@app.command()
def show():
    """Display current configuration.

    Secrets (like client_secret) are redacted in output.
    """
    config = _load_config_or_exit()

    if not config:
        typer.echo("No configuration found.")
        typer.echo(f"Run 'gmbackup-config init' to create {CONFIG_FILE}")
        return

    for section, values in config.items():
        if not isinstance(values, dict):
            typer.echo(f"{section} = {values}")
            continue

        typer.echo(f"[{section}]")
        for key, value in values.items():
            if key == "client_secret":
                # Redact secret but indicate it's set
                value = "***REDACTED***" if value else "(not set)"
            typer.echo(f"  {key} = {value}")
        typer.echo()


@app.command("set")
def set_value(
    key: Annotated[
        str,
        typer.Argument(help="Configuration key (dot notation, e.g., 'defaults.user')"),
    ],
    value: Annotated[str, typer.Argument(help="Configuration value")],
):
    """Set a configuration value using dot notation.

    Examples:
        gmbackup-config set defaults.user me
        gmbackup-config set defaults.mail_dir ~/Backups/mail
    """
    try:
        set_config_value(key, value)
        typer.echo(f"Set {key} = {value}")
    except ValueError as e:
        typer.echo(f"Invalid value: {e}", err=True)
        raise typer.Exit(1)
    except OSError as e:
        typer.echo(f"Error: unable to update config: {e}", err=True)
        raise typer.Exit(1)
