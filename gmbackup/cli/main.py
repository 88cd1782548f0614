"""Main CLI entry points for gmbackup."""

import typer

from gmbackup.cli import commands

app = typer.Typer(
    name="gmbackup",
    help="Back up a Gmail mailbox to a local directory",
    add_completion=False,
)

# A single registered command runs directly, without a subcommand name
app.command(
    epilog="Default destination is $HOME/mail/ (or defaults.mail_dir from the config file)."
)(commands.sync.sync)

config_app = commands.config.app


def main():
    """Entry point for the gmbackup command."""
    app()


def config_main():
    """Entry point for the gmbackup-config command."""
    config_app()


if __name__ == "__main__":
    main()
