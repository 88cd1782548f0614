"""Flat directory storage for backed-up messages.

Each message lives in a single file named after its Gmail message ID.
The file holds the raw RFC 2822 bytes exactly as delivered by the API,
is read-only for the owner, and carries the message's internal date as
its modification time.

The directory listing is the only sync state: a message is "already
backed up" if a file with its ID exists.

Names starting with "." are reserved for sidecar and lock files and are
never treated as orphans.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from gmbackup.logger import get_logger

log = get_logger("storage")

# Prefix for in-flight downloads. Temp files live next to their final
# path so the rename never crosses a filesystem boundary.
TEMP_PREFIX = "gmbackup"

# Permission bits for stored messages: read-only for the owner
MESSAGE_MODE = 0o400

RESERVED_PREFIX = "."


@dataclass(frozen=True)
class LocalEntry:
    """A file found in the backup directory."""

    message_id: str
    exists: bool = True
    is_hidden: bool = False


def is_reserved(message_id: str) -> bool:
    """Return True if a local name must never be deleted as an orphan.

    Hidden names (leading ".") are reserved for sidecar and lock files
    that share the backup directory with the messages.
    """
    return message_id.startswith(RESERVED_PREFIX)


def scan_directory(path: Path) -> dict[str, LocalEntry]:
    """List the backup directory once.

    The scan is not recursive and relies on the metadata returned by the
    listing itself, so no extra stat call is made per file.

    Args:
        path: Backup directory to scan.

    Returns:
        Dict mapping each filename to its LocalEntry.

    Raises:
        OSError: If the directory cannot be opened or listed. No partial
            result is returned.
    """
    entries: dict[str, LocalEntry] = {}

    with os.scandir(path) as it:
        for entry in it:
            entries[entry.name] = LocalEntry(
                message_id=entry.name,
                exists=True,
                is_hidden=is_reserved(entry.name),
            )

    log.debug("Found %d local entries in %s", len(entries), path)
    return entries


class MailStore:
    """Writes and removes message files in a backup directory.

    Example:
        store = MailStore(Path("~/mail"))
        store.write_message("18c2f0a1b2c3d4e5", raw_bytes, 1704067200000)
    """

    def __init__(self, base_path: Path):
        """Initialize the store.

        Args:
            base_path: Backup directory. Must already exist.
        """
        self._base_path = base_path.expanduser()

    @property
    def base_path(self) -> Path:
        """Get the backup directory."""
        return self._base_path

    def message_path(self, message_id: str) -> Path:
        """Get the final path for a message ID."""
        return self._base_path / message_id

    def scan(self) -> dict[str, LocalEntry]:
        """Scan this store's directory. See scan_directory()."""
        return scan_directory(self._base_path)

    def write_message(self, message_id: str, raw: bytes, internal_date: int) -> Path:
        """Persist a message atomically.

        The bytes go to a temp file in the backup directory, which is
        made read-only and stamped with the message date before being
        renamed into place. A partially written message is therefore only
        ever visible under its temp name.

        If a step fails the temp file is left behind.

        Args:
            message_id: Gmail message ID, used as the filename.
            raw: Raw RFC 2822 message bytes.
            internal_date: Message timestamp in epoch milliseconds.

        Returns:
            Path to the written message file.

        Raises:
            OSError: If any filesystem step fails.
        """
        fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=self._base_path)
        dest_path = self.message_path(message_id)

        with os.fdopen(fd, "wb") as f:
            f.write(raw)
            # Flush before stamping the mtime, a later flush would bump it
            f.flush()

            os.chmod(tmp_name, MESSAGE_MODE)

            timestamp_ns = internal_date * 1_000_000
            os.utime(tmp_name, ns=(timestamp_ns, timestamp_ns))

            # Atomic on POSIX as long as src and dest share a filesystem
            os.rename(tmp_name, dest_path)

        return dest_path

    def delete_message(self, message_id: str) -> None:
        """Remove a message file.

        An empty directory under the same name is removed as well; a
        non-empty one is left in place and reported.

        Raises:
            OSError: If the entry cannot be removed.
        """
        path = self.message_path(message_id)

        if path.is_dir() and not path.is_symlink():
            os.rmdir(path)
        else:
            os.remove(path)
