"""Gmail API client for mailbox backup.

Wraps the Gmail API behind the two capabilities the sync engine needs:
a paginated lister of message IDs and a raw message fetcher. Every call
is a single blocking round trip; nothing is retried.
"""

import base64
from collections.abc import Iterator
from dataclasses import dataclass

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from gmbackup.errors import RemoteError

# API maximum for users.messages.list
MAX_PAGE_SIZE = 500

# Chat transcripts are not mail, leave them out of the backup
DEFAULT_QUERY = "-in:CHAT"

DEFAULT_USER = "me"

# Exceptions raised by the Google client stack for a failed round trip.
# httplib2 reports DNS and connection failures with its own hierarchy,
# socket timeouts and resets surface as OSError.
_API_ERRORS = (
    HttpError,
    RefreshError,
    TransportError,
    httplib2.HttpLib2Error,
    OSError,
)


@dataclass(frozen=True)
class RemotePage:
    """One page of a message listing.

    An empty next_page_token marks the last page.
    """

    message_ids: tuple[str, ...]
    next_page_token: str | None = None


@dataclass(frozen=True)
class FetchedMessage:
    """A downloaded message.

    Attributes:
        message_id: Gmail message ID.
        raw: Decoded RFC 2822 message bytes.
        internal_date: Gmail's internal date in epoch milliseconds.
    """

    message_id: str
    raw: bytes
    internal_date: int


class GmailClient:
    """Client for the Gmail API calls used by the backup.

    Example:
        creds = get_credentials()
        client = GmailClient(creds)
        for page in client.iter_pages():
            for message_id in page.message_ids:
                message = client.get_message(message_id)
    """

    def __init__(self, credentials: Credentials, user_id: str = DEFAULT_USER):
        """Initialize Gmail client with credentials.

        Args:
            credentials: Google OAuth credentials object.
            user_id: Mailbox to read, "me" for the authenticated user.
        """
        self._credentials = credentials
        self._user_id = user_id
        self._service = build("gmail", "v1", credentials=credentials)

    @property
    def user_id(self) -> str:
        """Get the mailbox this client reads from."""
        return self._user_id

    def list_page(
        self,
        query: str = DEFAULT_QUERY,
        page_size: int = MAX_PAGE_SIZE,
        page_token: str | None = None,
    ) -> RemotePage:
        """Fetch one page of message IDs.

        Args:
            query: Gmail search query filtering the listing.
            page_size: Requested page size, capped at MAX_PAGE_SIZE.
            page_token: Continuation token from the previous page.

        Returns:
            RemotePage with the IDs in listing order.

        Raises:
            RemoteError: If the API call fails.
        """
        params = {
            "userId": self._user_id,
            "maxResults": min(page_size, MAX_PAGE_SIZE),
        }
        if query:
            params["q"] = query
        if page_token:
            params["pageToken"] = page_token

        try:
            result = self._service.users().messages().list(**params).execute()
        except _API_ERRORS as e:
            raise RemoteError(f"Unable to retrieve messages: {e}") from e

        message_ids = tuple(msg["id"] for msg in result.get("messages", []))
        return RemotePage(message_ids, result.get("nextPageToken") or None)

    def iter_pages(
        self,
        query: str = DEFAULT_QUERY,
        page_size: int = MAX_PAGE_SIZE,
    ) -> Iterator[RemotePage]:
        """Lazily iterate over all pages of a listing.

        Each page is requested only when the consumer asks for it, so a
        caller that stops early never pays for the remaining pages.

        Raises:
            RemoteError: If any page request fails.
        """
        page_token = None

        while True:
            page = self.list_page(query, page_size, page_token)
            yield page

            if not page.next_page_token:
                return
            page_token = page.next_page_token

    def get_message(self, message_id: str) -> FetchedMessage:
        """Download a single message in RAW format.

        Args:
            message_id: The message ID to fetch.

        Returns:
            FetchedMessage with decoded bytes and internal date.

        Raises:
            RemoteError: If the API call fails or the payload can't be decoded.
        """
        try:
            result = (
                self._service.users()
                .messages()
                .get(userId=self._user_id, id=message_id, format="raw")
                .execute()
            )
        except _API_ERRORS as e:
            raise RemoteError(f"Unable to retrieve message {message_id}: {e}") from e

        try:
            # Gmail uses URL-safe base64 encoding
            raw = base64.urlsafe_b64decode(result["raw"])
            internal_date = int(result["internalDate"])
        except (KeyError, ValueError) as e:
            raise RemoteError(f"Malformed message {message_id}: {e}") from e

        return FetchedMessage(message_id, raw, internal_date)
