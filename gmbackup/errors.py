"""Error hierarchy for gmbackup.

Local filesystem failures are not wrapped: they surface as the built-in
OSError. Everything that goes wrong talking to Gmail is a RemoteError.
"""


class GmbackupError(Exception):
    """Base exception for all gmbackup errors."""


class RemoteError(GmbackupError):
    """Listing or fetching from the remote mailbox failed.

    Covers expired or revoked credentials, network failures and API
    error responses. The underlying exception is kept as __cause__.
    """


class AuthError(RemoteError):
    """OAuth credentials could not be obtained or refreshed."""


class UsageError(GmbackupError):
    """The command line was invoked incorrectly."""
