"""Authentication module for Gmail.

Provides OAuth credentials for the Gmail API client.

Usage:
    from gmbackup.auth import get_credentials

    creds = get_credentials(get_defaults(load_config()))
"""

from .gmail import (
    SCOPES,
    authenticate_loopback_flow,
    clear_token,
    get_credentials,
    load_client_config,
)

__all__ = [
    "SCOPES",
    "authenticate_loopback_flow",
    "clear_token",
    "get_credentials",
    "load_client_config",
]
