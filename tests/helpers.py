# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Sample messages, verdicts and fake collaborators for the rescan tests."""

from __future__ import annotations

from mail_rescan.classifier import RoutingContext
from mail_rescan.verdict import ClassificationVerdict

FIRST_RECEIVED = (
    "Received: from mx.example.com (localhost [127.0.0.1])\n"
    "\tby mail.example.com with LMTP id abc; Mon, 1 Jan 2024 00:00:00 +0000\n"
)
SECOND_RECEIVED = (
    "Received: from sender.example.org (sender.example.org [203.0.113.9])\n"
    "\tby mx.example.com with ESMTPS id def; Mon, 1 Jan 2024 00:00:00 +0000\n"
)
BODY = "body line one\nX-Spam: not a header\n\nlast line\n"


def make_message(
    message_id: str = "msg-1@example.org",
    received: int = 2,
    extra_headers: str = "X-Old-Header: stale\nX-Spam-Status: No, score=1.0\n",
    body: str = BODY,
) -> str:
    """Build a delivered message with ``received`` trace headers."""
    trace = "".join([FIRST_RECEIVED, SECOND_RECEIVED][:received])
    return (
        "Return-Path: <bob@example.org>\n"
        "Delivered-To: alice@example.com\n"
        f"{trace}"
        f"{extra_headers}"
        "From: Bob <bob@example.org>\n"
        "To: alice@example.com\n"
        "Subject: hello\n"
        f"Message-ID: <{message_id}>\n"
        "\n"
        f"{body}"
    )


VERDICT = {
    "is_skipped": False,
    "score": 8.2,
    "required_score": 6.0,
    "action": "add header",
    "symbols": {
        "SPAM_A": {"name": "SPAM_A", "score": 3.0, "metric_score": 3.0, "options": ["x"]},
    },
    "milter": {
        "add_headers": {
            "X-Foo": {"value": "bar", "order": 0},
            "X-Spam-Status": {"value": "Yes, score=8.20", "order": 0},
            "X-Spamd-Result": {"value": "default: True [8.20 / 6.00]", "order": 0},
            "X-Rspamd-Action": {"value": "add header", "order": 0},
        },
        "remove_headers": {"X-Old-Header": 1},
    },
    "urls": ["example.org"],
    "thresholds": {"reject": 15.0, "add header": 6.0},
    "messages": {},
    "message-id": "msg-1@example.org",
}


class FakeClassifier:
    def __init__(self, verdict: dict | None = None, error: Exception | None = None):
        self.verdict = ClassificationVerdict.model_validate(verdict or VERDICT)
        self.error = error
        self.calls: list[tuple[bytes, RoutingContext]] = []

    def classify(self, content: bytes, context: RoutingContext) -> ClassificationVerdict:
        self.calls.append((content, context))
        if self.error:
            raise self.error
        return self.verdict


class FakeReputation:
    def __init__(self, score: int = 42):
        self.score = score
        self.calls: list[str] = []

    def reputation(self, ip: str) -> int:
        self.calls.append(ip)
        return self.score


class FakeFilterctl:
    def __init__(self, books: list[str] | None = None, spam_class: str = "spam"):
        self.books = books if books is not None else ["friends"]
        self.spam_class = spam_class
        self.book_calls: list[tuple[str, str]] = []
        self.class_calls: list[tuple[str, float]] = []

    def scan_address_books(self, username: str, address: str) -> list[str]:
        self.book_calls.append((username, address))
        return self.books

    def scan_class(self, username: str, score: float) -> str:
        self.class_calls.append((username, score))
        return self.spam_class
