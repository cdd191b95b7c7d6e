# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for folder resolution and message lookup."""

import os

import pytest

from helpers import make_message
from mail_rescan.errors import InputResolutionError
from mail_rescan.maildir import (
    MessageFile,
    get_message_id,
    resolve_mailbox_path,
    scan_message_files,
    split_account,
    transform_path,
)


class TestTransformPath:
    """Folder name to Maildir directory mapping."""

    def test_inbox(self):
        assert transform_path("user", "/INBOX") == "/home/user/Maildir/cur"

    def test_inbox_subfolder(self):
        assert transform_path("user", "/INBOX/spam") == "/home/user/Maildir/.INBOX.spam/cur"

    def test_top_level_folder(self):
        assert transform_path("user", "/test") == "/home/user/Maildir/.test/cur"

    def test_nested_folder(self):
        path = transform_path("user", "/lists/lists-personal/Advertising")
        assert path == "/home/user/Maildir/.lists.lists-personal.Advertising/cur"

    def test_custom_root(self):
        assert transform_path("alice", "/lists/a/b", root="/var/mail") == "/var/mail/alice/Maildir/.lists.a.b/cur"

    def test_folder_without_leading_slash(self):
        assert transform_path("alice", "lists/a") == "/home/alice/Maildir/.lists.a/cur"
        assert transform_path("alice", "INBOX") == "/home/alice/Maildir/cur"

    @pytest.mark.parametrize("folder", ["/", "", "//"])
    def test_empty_folder_name(self, folder):
        with pytest.raises(InputResolutionError, match="empty folder name"):
            transform_path("alice", folder)


class TestAccounts:
    """Account address handling."""

    def test_split_account(self):
        assert split_account("alice@example.com") == ("alice", "example.com")

    @pytest.mark.parametrize("account", ["alice", "@example.com", ""])
    def test_malformed_account(self, account):
        with pytest.raises(InputResolutionError, match="failed parsing account"):
            split_account(account)

    def test_resolve_mailbox_path(self):
        path = resolve_mailbox_path("alice@example.com", "/INBOX/spam", root="/srv")
        assert path == "/srv/alice/Maildir/.INBOX.spam/cur"


class TestGetMessageId:
    """Message-ID extraction from a message file."""

    def test_strips_angle_brackets(self, tmp_path):
        path = tmp_path / "1.eml"
        path.write_text(make_message(message_id="abc@example.org"))
        assert get_message_id(str(path)) == "abc@example.org"

    def test_header_name_is_case_insensitive(self, tmp_path):
        path = tmp_path / "1.eml"
        path.write_text("Message-Id:   < spaced@example.org >  \nSubject: x\n\nbody\n")
        assert get_message_id(str(path)) == "spaced@example.org"

    def test_first_header_wins(self, tmp_path):
        path = tmp_path / "1.eml"
        path.write_text("Message-ID: <first@x>\nMessage-ID: <second@x>\n\nbody\n")
        assert get_message_id(str(path)) == "first@x"

    def test_body_is_not_searched(self, tmp_path):
        path = tmp_path / "1.eml"
        path.write_text("Subject: x\n\nMessage-ID: <in-body@x>\n")
        with pytest.raises(InputResolutionError, match="Message-Id"):
            get_message_id(str(path))

    def test_empty_message_id(self, tmp_path):
        path = tmp_path / "1.eml"
        path.write_text("Message-ID: <>\n\nbody\n")
        with pytest.raises(InputResolutionError) as excinfo:
            get_message_id(str(path))
        assert excinfo.value.path == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputResolutionError, match="failed opening file"):
            get_message_id(str(tmp_path / "missing.eml"))


class TestScanMessageFiles:
    """Directory enumeration with and without a Message-ID filter."""

    def _populate(self, inbox, count=3):
        for i in range(count):
            (inbox / f"{i}.eml").write_text(make_message(message_id=f"msg-{i}@example.org"))

    def test_lists_all_regular_files(self, inbox):
        self._populate(inbox)
        (inbox / "subdir").mkdir()

        files = scan_message_files(str(inbox))

        assert [os.path.basename(f.pathname) for f in files] == ["0.eml", "1.eml", "2.eml"]
        assert all(isinstance(f, MessageFile) for f in files)
        assert all(f.message_id is None for f in files)
        assert all(f.size > 0 for f in files)

    def test_unrestricted_mode_does_not_parse_files(self, inbox):
        (inbox / "broken.eml").write_text("no headers here")
        files = scan_message_files(str(inbox), [])
        assert len(files) == 1

    def test_filters_by_message_id(self, inbox):
        self._populate(inbox)

        files = scan_message_files(str(inbox), ["msg-2@example.org", "msg-0@example.org"])

        assert [f.message_id for f in files] == ["msg-0@example.org", "msg-2@example.org"]
        assert files[0].pathname == str(inbox / "0.eml")

    def test_stops_once_all_ids_found(self, inbox):
        self._populate(inbox, count=2)
        # Sorted after the match; would raise if it were opened.
        (inbox / "9.eml").write_text("Subject: no id\n\nbody\n")

        files = scan_message_files(str(inbox), ["msg-1@example.org"])

        assert [f.message_id for f in files] == ["msg-1@example.org"]

    def test_matching_is_case_sensitive(self, inbox):
        self._populate(inbox, count=1)
        assert scan_message_files(str(inbox), ["MSG-0@EXAMPLE.ORG"]) == []

    def test_candidate_without_message_id_is_an_error(self, inbox):
        self._populate(inbox, count=2)
        (inbox / "00.eml").write_text("Subject: no id\n\nbody\n")

        with pytest.raises(InputResolutionError) as excinfo:
            scan_message_files(str(inbox), ["msg-1@example.org"])
        assert excinfo.value.path == str(inbox / "00.eml")

    def test_unreadable_directory(self, tmp_path):
        with pytest.raises(InputResolutionError, match="failed reading directory"):
            scan_message_files(str(tmp_path / "nope"))
