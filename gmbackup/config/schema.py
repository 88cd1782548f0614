"""Configuration schema definitions.

Uses TypedDict for type safety without runtime overhead.
These types match the structure of config.toml.
"""

from typing import TypedDict


class DefaultsConfig(TypedDict, total=False):
    """Default settings, overridden by command line flags.

    Attributes:
        user: Gmail account to back up ("me" for the authenticated user).
        mail_dir: Backup directory (e.g., "~/mail").
        query: Gmail search query filtering which messages are backed up.
        client_id: Google Cloud OAuth client ID.
        client_secret: Optional client secret (prefer env var).
    """

    user: str
    mail_dir: str
    query: str
    client_id: str
    client_secret: str


class GmbackupConfig(TypedDict, total=False):
    """Root configuration structure.

    Attributes:
        defaults: Default settings for all operations.
    """

    defaults: DefaultsConfig
