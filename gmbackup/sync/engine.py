"""Sync engine for mailbox backup.

Reconciles the remote listing against the local backup directory:
messages missing locally are downloaded, and with delete_orphans local
files whose message is gone from Gmail are removed.

The engine never retries and never continues past a failure. Any error
from the listing, a fetch, a write or a delete propagates to the caller
and ends the run. Re-running is always safe: files already on disk are
skipped.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from gmbackup.logger import get_logger
from gmbackup.storage.mailstore import LocalEntry, is_reserved
from gmbackup.sync.gmail import FetchedMessage, RemotePage

log = get_logger("sync")


class MessageFetcher(Protocol):
    def get_message(self, message_id: str) -> FetchedMessage: ...


class MessageStore(Protocol):
    def write_message(
        self, message_id: str, raw: bytes, internal_date: int
    ) -> Path: ...

    def delete_message(self, message_id: str) -> None: ...


@dataclass
class SyncOptions:
    """Switches for a reconciliation run.

    Attributes:
        dry_run: Report what would happen without touching the filesystem.
        incremental: Stop at the first remote message that already exists
            locally. Deletions can't be detected in this mode.
        delete_orphans: Remove local messages that are no longer listed
            remotely. Only applied when the listing ran to completion.
    """

    dry_run: bool = False
    incremental: bool = False
    delete_orphans: bool = False


@dataclass
class SyncResult:
    """Outcome of a reconciliation run.

    processed counts every remote message examined, whether it was
    downloaded or already present.
    """

    processed: int = 0
    downloaded: int = 0
    skipped: int = 0
    deleted: int = 0
    stopped_early: bool = False
    remote_seen: set[str] = field(default_factory=set)


class SyncEngine:
    """Engine for backing up a Gmail mailbox to a directory.

    Example:
        client = GmailClient(get_credentials())
        store = MailStore(Path("~/mail"))
        engine = SyncEngine(client, store)

        result = engine.reconcile(store.scan(), client.iter_pages())
        print(f"Processed {result.processed} messages")
    """

    def __init__(self, fetcher: MessageFetcher, store: MessageStore):
        """Initialize sync engine.

        Args:
            fetcher: Source of raw messages, usually a GmailClient.
            store: Destination for messages, usually a MailStore.
        """
        self._fetcher = fetcher
        self._store = store

    def reconcile(
        self,
        local: Mapping[str, LocalEntry],
        pages: Iterable[RemotePage],
        options: SyncOptions | None = None,
    ) -> SyncResult:
        """Bring the local directory in line with the remote listing.

        Pages are consumed in order and IDs within a page in the order
        returned. A message ID seen twice is only downloaded once.

        Args:
            local: Snapshot of the backup directory from scan_directory().
            pages: Lazy sequence of remote pages, e.g. GmailClient.iter_pages().
            options: Run switches, defaults to a plain full sync.

        Returns:
            SyncResult with the counts for this run.

        Raises:
            RemoteError: If listing or fetching fails.
            OSError: If writing or deleting a local file fails.
        """
        options = options or SyncOptions()
        result = SyncResult()
        fetched: set[str] = set()

        for page in pages:
            for message_id in page.message_ids:
                result.remote_seen.add(message_id)

                if message_id not in local and message_id not in fetched:
                    self._download(message_id, options.dry_run)
                    fetched.add(message_id)
                    result.downloaded += 1
                elif options.incremental:
                    log.info("Found existing message %s, stopping", message_id)
                    result.stopped_early = True
                    return result
                else:
                    result.skipped += 1

                result.processed += 1

        if options.delete_orphans:
            result.deleted = self._delete_orphans(
                local, result.remote_seen, options.dry_run
            )

        return result

    def _download(self, message_id: str, dry_run: bool) -> None:
        if dry_run:
            log.info("Downloading %s (dry run)", message_id)
            return

        log.info("Downloading %s", message_id)
        message = self._fetcher.get_message(message_id)
        self._store.write_message(message_id, message.raw, message.internal_date)

    def _delete_orphans(
        self,
        local: Mapping[str, LocalEntry],
        remote_seen: set[str],
        dry_run: bool,
    ) -> int:
        """Remove local messages missing from the remote listing.

        Reserved names (see is_reserved()) are always kept. A failed delete
        aborts the sweep; files removed before it stay removed.

        Returns:
            Number of messages deleted (or that would be, in a dry run).
        """
        deleted = 0

        for message_id in sorted(local):
            if message_id in remote_seen or is_reserved(message_id):
                continue

            if dry_run:
                log.info("Deleting %s (dry run)", message_id)
            else:
                log.info("Deleting %s", message_id)
                self._store.delete_message(message_id)

            deleted += 1

        return deleted
