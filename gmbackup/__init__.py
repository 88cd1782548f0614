"""gmbackup: incremental backup of a Gmail mailbox to a local directory."""

__version__ = "0.1.0"
