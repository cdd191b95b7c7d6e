# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Rescan delivered mail and rewrite its classification headers.

Messages already sitting in a Maildir are sent back to rspamd, and a copy
with refreshed headers is written next to the folder's ``cur`` directory.

Components:
    maildir: Folder to directory mapping and Message-ID lookup.
    classifier: rspamd ``checkv2`` client and RoutingContext.
    reputation: DNS sender score lookup.
    filterctl: Address book and spam class lookups.
    rewrite: Header block parsing and rewriting.
    output: Non-destructive output writer.
    rescan: Batch and per-message pipelines.
    session: Configuration plus shared clients.

Example:
    Rescan a folder::

        from mail_rescan import RescanSession, load_settings, rescan

        with RescanSession(load_settings()) as session:
            result = rescan(session, "alice@example.com", "/INBOX")
            print(result.rescanned)
"""

from .config import RescanConfig, load_settings
from .errors import (
    ClassificationError,
    CollaboratorError,
    ContextExtractionError,
    InputResolutionError,
    OutputError,
    RescanError,
    ReputationError,
)
from .rescan import RescanResult, rescan, rescan_message
from .session import RescanSession

__all__ = [
    "ClassificationError",
    "CollaboratorError",
    "ContextExtractionError",
    "InputResolutionError",
    "OutputError",
    "RescanConfig",
    "RescanError",
    "RescanResult",
    "RescanSession",
    "ReputationError",
    "load_settings",
    "rescan",
    "rescan_message",
]
