# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Rescan pipeline: reclassify stored messages and write rewritten copies.

Per message, strictly in sequence::

    read -> routing context -> classify -> sender score
         -> address books -> spam class -> rewrite -> write

Messages are processed one at a time in the order the locator returns them.
A failure aborts the message with a ``RescanError`` naming the step and the
file; nothing is written for it. By default the batch stops on the first
failure; with ``stop_on_error=False`` failures are collected and the batch
continues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .errors import InputResolutionError, RescanError
from .maildir import MessageFile, resolve_mailbox_path, scan_message_files
from .output import generate_output_path, write_message
from .rewrite import compute_delta, extract_routing_context, parse_message, render_message
from .session import RescanSession

logger = logging.getLogger(__name__)


@dataclass
class RescanResult:
    """Outcome of a batch rescan.

    Attributes:
        rescanned: Output paths written, in processing order.
        errors: Per-message failures (only with ``stop_on_error=False``).
    """

    rescanned: list[str] = field(default_factory=list)
    errors: list[RescanError] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.rescanned)

    @property
    def ok(self) -> bool:
        return not self.errors


def rescan_message(session: RescanSession, account: str, message_file: MessageFile) -> str:
    """Rescan one message file and write its rewritten copy.

    Args:
        session: Session providing configuration and clients.
        account: Mailbox owner address (``user@domain``).
        message_file: The message to rescan.

    Returns:
        Path of the rewritten copy.

    Raises:
        RescanError: Any failing step; ``path`` is set to the message file.
    """
    pathname = message_file.pathname
    try:
        try:
            with open(pathname, "rb") as fp:
                content = fp.read()
        except OSError as exc:
            raise InputResolutionError(f"failed reading message: {exc}") from exc

        message = parse_message(content)
        context = extract_routing_context(message)
        logger.debug("routing context for %s: %s", pathname, context)

        verdict = session.classifier().classify(content, context)
        sender_score = session.reputation().reputation(context.sender_ip)

        filterctl = session.filterctl()
        books = filterctl.scan_address_books(account, context.from_addr)
        spam_class = filterctl.scan_class(account, verdict.score)

        delta = compute_delta(
            verdict,
            sender_score,
            books,
            spam_class,
            session.config.rewrite.max_header_length,
        )
        data = render_message(message, delta)

        out_path = generate_output_path(pathname)
        write_message(out_path, data)
    except RescanError as exc:
        if exc.path is None:
            exc.path = pathname
        raise

    logger.info(
        "rescanned %s: score=%.3f/%.3f class=%s -> %s",
        pathname,
        verdict.score,
        verdict.required_score,
        spam_class,
        out_path,
    )
    return out_path


def rescan(
    session: RescanSession,
    account: str,
    folder: str,
    message_ids: Iterable[str] | None = None,
    stop_on_error: bool = True,
) -> RescanResult:
    """Rescan the messages of one folder.

    Args:
        session: Session providing configuration and clients.
        account: Mailbox owner address (``user@domain``).
        folder: Logical folder path, e.g. ``/INBOX`` or ``/lists/announce``.
        message_ids: Restrict the batch to these Message-IDs.
        stop_on_error: Re-raise the first per-message failure.

    Returns:
        A RescanResult.

    Raises:
        InputResolutionError: Bad account, unreadable folder or unusable
            Message-ID in a candidate file.
        RescanError: The first per-message failure when ``stop_on_error``.
    """
    message_ids = list(message_ids or ())
    logger.debug("rescan: account=%s folder=%s", account, folder)
    for i, mid in enumerate(message_ids):
        logger.debug("   [%d] %s", i, mid)

    directory = resolve_mailbox_path(account, folder, session.config.maildir.root)
    message_files = scan_message_files(directory, message_ids)

    result = RescanResult()
    for message_file in message_files:
        try:
            out_path = rescan_message(session, account, message_file)
        except RescanError as exc:
            logger.error("rescan failed: %s", exc)
            if stop_on_error:
                raise
            result.errors.append(exc)
            continue
        result.rescanned.append(out_path)
    return result


__all__ = ["RescanResult", "rescan", "rescan_message"]
