"""Allow running as `python -m gmbackup`."""

from gmbackup.cli.main import main

main()
