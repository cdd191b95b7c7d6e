# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Maildir folder resolution and message file lookup.

Folder names map to Maildir++ directories::

    folder              directory
    ------------------  ----------------------------------------
    /INBOX              /home/USER/Maildir/cur
    /INBOX/spam         /home/USER/Maildir/.INBOX.spam/cur
    /lists/a/b          /home/USER/Maildir/.lists.a.b/cur

Message files are listed in filename order. When Message-IDs are given,
only the header block of each candidate is read.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from email.parser import BytesHeaderParser
from email.policy import compat32
from typing import BinaryIO, Iterable

from .errors import InputResolutionError

logger = logging.getLogger(__name__)

INBOX = "/INBOX"
FOLDER_DELIMITER = "."
CURRENT_DIR = "cur"


@dataclass(frozen=True)
class MessageFile:
    """A message file found in a Maildir ``cur`` directory.

    Attributes:
        pathname: Absolute path of the file.
        message_id: Normalized Message-ID, set only for filtered scans.
        size: File size in bytes.
        mtime: Modification time (seconds since the epoch).
    """

    pathname: str
    message_id: str | None = None
    size: int = 0
    mtime: float = 0.0


def transform_path(user: str, folder: str, root: str = "/home") -> str:
    """Map a logical folder to its Maildir ``cur`` directory.

    Raises:
        InputResolutionError: If the folder name is empty.
    """
    name = folder.strip("/")
    if not name:
        raise InputResolutionError(f"empty folder name: {folder!r}")
    if "/" + name == INBOX:
        path = os.path.join(root, user, "Maildir", CURRENT_DIR)
    else:
        maildir = FOLDER_DELIMITER + name.replace("/", FOLDER_DELIMITER)
        path = os.path.join(root, user, "Maildir", maildir, CURRENT_DIR)
    logger.debug("transform_path: user=%s folder=%s path=%s", user, folder, path)
    return path


def split_account(account: str) -> tuple[str, str]:
    """Split ``user@domain`` into its local part and domain."""
    username, sep, domain = account.partition("@")
    if not sep or not username:
        raise InputResolutionError(f"failed parsing account address: {account!r}")
    return username, domain


def resolve_mailbox_path(account: str, folder: str, root: str = "/home") -> str:
    """Resolve the ``cur`` directory of ``folder`` for an account address."""
    username, _ = split_account(account)
    return transform_path(username, folder, root)


def read_header_block(fp: BinaryIO) -> bytes:
    """Read lines from ``fp`` up to and including the blank separator line."""
    lines = []
    for line in fp:
        lines.append(line)
        if not line.strip(b"\r\n"):
            break
    return b"".join(lines)


def normalize_message_id(value: str) -> str:
    return value.strip().lstrip("<").rstrip(">").strip()


def get_message_id(pathname: str) -> str:
    """Return the normalized Message-ID of a message file.

    Raises:
        InputResolutionError: If the file cannot be read or has no usable
            Message-ID header.
    """
    try:
        with open(pathname, "rb") as fp:
            block = read_header_block(fp)
    except OSError as exc:
        raise InputResolutionError(f"failed opening file: {exc}", path=pathname) from exc

    header = BytesHeaderParser(policy=compat32).parsebytes(block)
    value = header.get("Message-Id")
    mid = normalize_message_id(str(value)) if value is not None else ""
    if not mid:
        raise InputResolutionError("failed parsing Message-Id header", path=pathname)
    logger.debug("get_message_id: %s -> %s", pathname, mid)
    return mid


def _message_file(entry: os.DirEntry, message_id: str | None = None) -> MessageFile:
    try:
        info = entry.stat()
    except OSError as exc:
        raise InputResolutionError(f"failed reading directory entry: {exc}", path=entry.path) from exc
    return MessageFile(
        pathname=entry.path,
        message_id=message_id,
        size=info.st_size,
        mtime=info.st_mtime,
    )


def scan_message_files(directory: str, message_ids: Iterable[str] | None = None) -> list[MessageFile]:
    """List message files in ``directory``.

    Args:
        directory: A Maildir ``cur`` directory.
        message_ids: Optional Message-IDs to select. When empty or None every
            regular file is returned.

    Returns:
        MessageFile entries in filename order.

    Raises:
        InputResolutionError: If the directory cannot be read or a candidate
            file has no usable Message-ID.
    """
    try:
        with os.scandir(directory) as it:
            entries = sorted((e for e in it if not e.is_dir()), key=lambda e: e.name)
    except OSError as exc:
        raise InputResolutionError(f"failed reading directory: {exc}", path=directory) from exc

    wanted = set(message_ids or ())
    found: list[MessageFile] = []

    if not wanted:
        found = [_message_file(entry) for entry in entries]
    else:
        matched: set[str] = set()
        for entry in entries:
            mid = get_message_id(entry.path)
            if mid in wanted:
                found.append(_message_file(entry, mid))
                matched.add(mid)
                if matched == wanted:
                    break

    logger.debug("scan_message_files: dir=%s count=%d", directory, len(found))
    for i, message_file in enumerate(found):
        logger.debug("  [%d] %s", i, message_file)
    return found


__all__ = [
    "CURRENT_DIR",
    "INBOX",
    "MessageFile",
    "get_message_id",
    "read_header_block",
    "resolve_mailbox_path",
    "scan_message_files",
    "split_account",
    "transform_path",
]
