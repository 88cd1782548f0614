"""Tests for the backup directory storage.

Uses pytest tmp_path fixture for isolated filesystem tests.
"""

import os
import stat
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from gmbackup.storage.mailstore import (
    TEMP_PREFIX,
    LocalEntry,
    MailStore,
    is_reserved,
    scan_directory,
)


@pytest.fixture
def store(tmp_path: Path) -> MailStore:
    """Create a MailStore on a temporary directory."""
    return MailStore(tmp_path)


class TestIsReserved:
    """Tests for the reserved-name policy."""

    def test_hidden_names_are_reserved(self):
        """Names starting with a dot are reserved."""
        assert is_reserved(".lock")
        assert is_reserved(".gmbackup-state")

    def test_message_ids_are_not_reserved(self):
        """Regular message IDs are not reserved."""
        assert not is_reserved("18c2f0a1b2c3d4e5")
        assert not is_reserved("a.b")


class TestScanDirectory:
    """Tests for scan_directory."""

    def test_returns_entries_by_name(self, tmp_path: Path):
        """scan_directory maps each filename to a LocalEntry."""
        (tmp_path / "msg1").write_bytes(b"one")
        (tmp_path / "msg2").write_bytes(b"two")

        entries = scan_directory(tmp_path)

        assert set(entries) == {"msg1", "msg2"}
        assert entries["msg1"] == LocalEntry("msg1", exists=True, is_hidden=False)

    def test_flags_hidden_entries(self, tmp_path: Path):
        """Hidden files are listed and flagged."""
        (tmp_path / ".lock").write_bytes(b"")

        entries = scan_directory(tmp_path)

        assert entries[".lock"].is_hidden is True

    def test_is_not_recursive(self, tmp_path: Path):
        """Files in subdirectories are not listed."""
        sub = tmp_path / "sub"
        sub.mkdir()
        (sub / "nested").write_bytes(b"x")

        entries = scan_directory(tmp_path)

        assert set(entries) == {"sub"}

    def test_empty_directory(self, tmp_path: Path):
        """An empty directory yields no entries."""
        assert scan_directory(tmp_path) == {}

    def test_missing_directory_raises(self, tmp_path: Path):
        """scan_directory fails fast when the directory doesn't exist."""
        with pytest.raises(FileNotFoundError):
            scan_directory(tmp_path / "missing")

    def test_file_instead_of_directory_raises(self, tmp_path: Path):
        """scan_directory fails when the path is a regular file."""
        path = tmp_path / "file"
        path.write_bytes(b"x")

        with pytest.raises(NotADirectoryError):
            scan_directory(path)


class TestWriteMessage:
    """Tests for MailStore.write_message."""

    def test_writes_raw_bytes_under_message_id(self, store: MailStore):
        """write_message stores the exact bytes at <dir>/<message_id>."""
        raw = b"From: a@example.com\r\nSubject: Hi\r\n\r\nBody"

        path = store.write_message("msg1", raw, 1704067200000)

        assert path == store.base_path / "msg1"
        assert path.read_bytes() == raw

    def test_file_is_read_only_for_owner(self, store: MailStore):
        """Written messages have mode 0400."""
        path = store.write_message("msg1", b"data", 1704067200000)

        assert stat.S_IMODE(path.stat().st_mode) == 0o400

    def test_mtime_is_message_date(self, store: MailStore):
        """The modification time is the message date, not the download time."""
        path = store.write_message("msg1", b"data", 1704067200000)

        assert path.stat().st_mtime == 1704067200
        assert abs(path.stat().st_mtime - time.time()) > 3600

    def test_leaves_no_temp_files(self, store: MailStore):
        """A successful write leaves only the final file behind."""
        store.write_message("msg1", b"data", 1704067200000)

        assert os.listdir(store.base_path) == ["msg1"]

    def test_failed_rename_leaves_no_final_file(self, store: MailStore):
        """A failure before the rename never exposes the final path."""
        with patch("gmbackup.storage.mailstore.os.rename", side_effect=OSError("boom")):
            with pytest.raises(OSError, match="boom"):
                store.write_message("msg1", b"partial", 1704067200000)

        assert not (store.base_path / "msg1").exists()
        # The temp file stays behind as an orphan
        leftovers = os.listdir(store.base_path)
        assert len(leftovers) == 1
        assert leftovers[0].startswith(TEMP_PREFIX)

    def test_failed_write_leaves_no_final_file(self, store: MailStore):
        """A failure while stamping the file never exposes the final path."""
        with patch("gmbackup.storage.mailstore.os.utime", side_effect=OSError("boom")):
            with pytest.raises(OSError):
                store.write_message("msg1", b"data", 1704067200000)

        assert not (store.base_path / "msg1").exists()

    def test_missing_directory_raises(self, tmp_path: Path):
        """write_message fails if the backup directory doesn't exist."""
        store = MailStore(tmp_path / "missing")

        with pytest.raises(FileNotFoundError):
            store.write_message("msg1", b"data", 1704067200000)


class TestDeleteMessage:
    """Tests for MailStore.delete_message."""

    def test_removes_read_only_message(self, store: MailStore):
        """delete_message removes a stored (read-only) message."""
        store.write_message("msg1", b"data", 1704067200000)

        store.delete_message("msg1")

        assert not (store.base_path / "msg1").exists()

    def test_missing_message_raises(self, store: MailStore):
        """delete_message raises when the file doesn't exist."""
        with pytest.raises(FileNotFoundError):
            store.delete_message("nope")

    def test_removes_empty_directory(self, store: MailStore):
        """An empty directory in the backup directory is removed."""
        (store.base_path / "emptydir").mkdir()

        store.delete_message("emptydir")

        assert not (store.base_path / "emptydir").exists()

    def test_non_empty_directory_raises(self, store: MailStore):
        """A directory with content is kept and reported."""
        sub = store.base_path / "subdir"
        sub.mkdir()
        (sub / "keep").write_bytes(b"x")

        with pytest.raises(OSError):
            store.delete_message("subdir")

        assert (sub / "keep").exists()

    def test_removes_symlink_not_target(self, store: MailStore, tmp_path: Path):
        """A symlink to a directory is unlinked, its target survives."""
        target = tmp_path / "elsewhere"
        target.mkdir()
        (store.base_path / "link").symlink_to(target)

        store.delete_message("link")

        assert not (store.base_path / "link").exists()
        assert target.is_dir()
