# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Header rewrite engine.

A message is treated as raw lines: a header block, a blank separator line
and a body. Only the header block is interpreted; body lines are copied
through byte for byte.

Rewrite rules:
    - Headers named for removal by the verdict, headers the verdict is about
      to add, and headers in the classification namespaces (``X-Spam*``,
      ``X-Rspam*``, ``X-SenderScore``, ``X-Address-Book``) are dropped, so a
      second rescan replaces rather than accumulates.
    - The verdict's additions and the synthesized headers are inserted as
      one block right after the first ``Received`` header.

Example:
    Rewriting a message::

        parsed = parse_message(content)
        context = extract_routing_context(parsed)
        verdict = classifier.classify(content, context)
        delta = compute_delta(verdict, sender_score, books, spam_class)
        data = render_message(parsed, delta)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from email.utils import getaddresses

from .classifier import RoutingContext
from .config import DEFAULT_MAX_HEADER_LENGTH
from .errors import ContextExtractionError
from .verdict import ClassificationVerdict, Symbol

logger = logging.getLogger(__name__)

RECEIVED = "received"

RESERVED_PREFIXES = ("x-spam", "x-rspam", "x-senderscore", "x-address-book")

SPAM_STATUS = "X-Spam-Status"
SPAM_SCORE = "X-Spam-Score"
SENDER_SCORE = "X-SenderScore"
ADDRESS_BOOK = "X-Address-Book"
SPAM_CLASS = "X-Spam-Class"
SPAM_FLAG = "X-Spam"
SYNTHESIZED_HEADERS = (SPAM_STATUS, SPAM_SCORE, SENDER_SCORE, ADDRESS_BOOK, SPAM_CLASS, SPAM_FLAG)

# Milter additions that repeat what the synthesized headers already report.
SKIP_ADD_HEADERS = frozenset(
    name.lower()
    for name in ("X-Rspamd-Pre-Result", "X-Rspamd-Action", "X-Spamd-Bar", "X-Spamd-Result", *SYNTHESIZED_HEADERS)
)

SPAM_LABEL = "spam"
STATUS_INDENT = "    "

RECEIVED_IP_PATTERN = re.compile(r"[^\[]*\[([0-9]+\.[0-9]+\.[0-9]+\.[0-9]+)\]")


@dataclass
class HeaderField:
    """One header as it appears in the file, continuation lines included."""

    name: str
    lines: list[str]

    @classmethod
    def from_line(cls, line: str) -> HeaderField:
        name = line.split(":", 1)[0].strip() if ":" in line else ""
        return cls(name=name, lines=[line])

    @property
    def value(self) -> str:
        """Unfolded value."""
        first = self.lines[0].split(":", 1)[1] if ":" in self.lines[0] else self.lines[0]
        return " ".join(part.strip() for part in [first, *self.lines[1:]] if part.strip())


@dataclass
class ParsedMessage:
    """A message split into header fields and untouched body lines.

    Attributes:
        lines: Every line of the message without its trailing ``\\n``.
        fields: Header fields in file order.
        body_index: Index of the blank separator line (``len(lines)`` if none).
        eol: ``"\\r"`` for CRLF messages, ``""`` otherwise; appended to inserted lines.
    """

    lines: list[str]
    fields: list[HeaderField]
    body_index: int
    eol: str = ""

    def get_all(self, name: str) -> list[HeaderField]:
        lname = name.lower()
        return [f for f in self.fields if f.name.lower() == lname]


@dataclass
class HeaderDelta:
    """Changes applied to one message's header block.

    Attributes:
        remove: Lower-cased header names to drop, besides the reserved prefixes.
        add: Verdict additions as ``(name, value)`` pairs.
        synthesized: Physical lines of the engine's own headers.
    """

    remove: set[str] = field(default_factory=set)
    add: list[tuple[str, str]] = field(default_factory=list)
    synthesized: list[str] = field(default_factory=list)

    def removes(self, name: str) -> bool:
        lname = name.lower()
        return lname in self.remove or lname.startswith(RESERVED_PREFIXES)

    def insertion_lines(self) -> list[str]:
        lines = [f"{name}: {unfold(value)}" for name, value in self.add]
        lines.extend(self.synthesized)
        return lines


def unfold(value: str) -> str:
    return " ".join(part.strip() for part in value.splitlines() if part.strip())


def parse_message(content: bytes) -> ParsedMessage:
    """Split raw message bytes into header fields and body lines.

    Undecodable bytes survive through ``surrogateescape`` so rendering
    reproduces them exactly.
    """
    lines = content.decode("utf-8", errors="surrogateescape").split("\n")
    fields: list[HeaderField] = []
    body_index = len(lines)
    for index, line in enumerate(lines):
        if line in ("", "\r"):
            body_index = index
            break
        if line[:1] in (" ", "\t") and fields:
            fields[-1].lines.append(line)
        else:
            fields.append(HeaderField.from_line(line))
    eol = "\r" if lines and lines[0].endswith("\r") else ""
    return ParsedMessage(lines=lines, fields=fields, body_index=body_index, eol=eol)


def parse_header_addr(message: ParsedMessage, name: str) -> str:
    """First address in header ``name``.

    Raises:
        ContextExtractionError: If the header is missing or holds no address.
    """
    found = message.get_all(name)
    if not found:
        raise ContextExtractionError(f"header not found: {name}")
    value = found[0].value
    for _, addr in getaddresses([value]):
        if "@" in addr:
            return addr
    raise ContextExtractionError(f"failed parsing email address from {name} header: {value!r}")


def get_sender_ip(message: ParsedMessage) -> str:
    """IPv4 address recorded by the second ``Received`` header.

    The first ``Received`` header is the local delivery hop; the second one
    names the relay that handed the message to this server.

    Raises:
        ContextExtractionError: With fewer than two ``Received`` headers or
            no bracketed IPv4 address in the second one.
    """
    received = message.get_all("Received")
    if len(received) < 2:
        raise ContextExtractionError("insufficient Received headers")
    value = received[1].value
    match = RECEIVED_IP_PATTERN.match(value)
    if not match:
        raise ContextExtractionError(f"failed parsing IP address from: {value!r}")
    logger.debug("get_sender_ip returning: %s", match.group(1))
    return match.group(1)


def extract_routing_context(message: ParsedMessage) -> RoutingContext:
    """Collect the routing facts sent with the classification request."""
    return RoutingContext(
        from_addr=parse_header_addr(message, "From"),
        rcpt_addr=parse_header_addr(message, "To"),
        delivered_to=parse_header_addr(message, "Delivered-To"),
        sender_ip=get_sender_ip(message),
    )


def format_spam_status(
    status: str,
    required: float,
    symbols: list[Symbol],
    max_length: int = DEFAULT_MAX_HEADER_LENGTH,
) -> list[str]:
    """Render the composite ``X-Spam-Status`` header as physical lines.

    The first line carries the service status and the threshold, wrapped
    between words when it does not fit. The tests list follows on indented
    continuation lines, wrapped between entries. One column is kept free for
    the ``,`` or ``]`` that ends each tests line. An entry too long for an
    indented line of its own is still emitted whole.

    Example:
        >>> format_spam_status("Yes, score=8.20", 6.0, [Symbol(name="SPAM_A", score=3.0)])
        ['X-Spam-Status: Yes, score=8.20 required=6.000', '    tests[SPAM_A=3.000]']
    """
    lines: list[str] = []
    head = f"{SPAM_STATUS}:"
    line = head
    for word in [*status.split(), f"required={required:.3f}"]:
        if line != head and len(line) + 1 + len(word) > max_length:
            lines.append(line)
            line = STATUS_INDENT + word
        else:
            line += " " + word
    lines.append(line)

    line = STATUS_INDENT + "tests["
    for index, symbol in enumerate(symbols):
        token = f"{symbol.name}={symbol.score:.3f}"
        sep = ", " if index else ""
        if len(line) + len(sep) + len(token) + 1 <= max_length:
            line += sep + token
            continue
        lines.append(line + ("," if index else ""))
        line = STATUS_INDENT + token
    lines.append(line + "]")
    return lines


def synthesize_headers(
    verdict: ClassificationVerdict,
    sender_score: int,
    books: list[str],
    spam_class: str,
    max_length: int = DEFAULT_MAX_HEADER_LENGTH,
) -> list[str]:
    """Physical lines of the engine's own classification headers."""
    lines = format_spam_status(
        verdict.added_value(SPAM_STATUS) or "",
        verdict.required_score,
        verdict.sorted_symbols(),
        max_length,
    )
    lines.append(f"{SPAM_SCORE}: {verdict.score:.3f} / {verdict.required_score:.3f}")
    lines.append(f"{SENDER_SCORE}: {sender_score:d}")
    lines.extend(f"{ADDRESS_BOOK}: {book}" for book in books)
    lines.append(f"{SPAM_CLASS}: {spam_class}")
    lines.append(f"{SPAM_FLAG}: {'yes' if spam_class == SPAM_LABEL else 'no'}")
    return lines


def compute_delta(
    verdict: ClassificationVerdict,
    sender_score: int,
    books: list[str],
    spam_class: str,
    max_length: int = DEFAULT_MAX_HEADER_LENGTH,
) -> HeaderDelta:
    """Compute the header changes for one message."""
    add = [(name, value) for name, value in verdict.additions() if name.lower() not in SKIP_ADD_HEADERS]
    remove = verdict.removals() | {name.lower() for name, _ in add}
    return HeaderDelta(
        remove=remove,
        add=add,
        synthesized=synthesize_headers(verdict, sender_score, books, spam_class, max_length),
    )


def render_message(message: ParsedMessage, delta: HeaderDelta) -> bytes:
    """Apply ``delta`` and return the rewritten message bytes.

    Raises:
        ContextExtractionError: If the header block has no ``Received`` header.
    """
    out: list[str] = []
    inserted = False
    for header in message.fields:
        if delta.removes(header.name):
            logger.debug("deleting: %s", header.name)
        else:
            out.extend(header.lines)
        if not inserted and header.name.lower() == RECEIVED:
            block = delta.insertion_lines()
            for line in block:
                logger.debug("adding: %s", line)
            out.extend(line + message.eol for line in block)
            inserted = True
    if not inserted:
        raise ContextExtractionError("no Received header to insert after")
    out.extend(message.lines[message.body_index:])
    return "\n".join(out).encode("utf-8", errors="surrogateescape")


__all__ = [
    "HeaderDelta",
    "HeaderField",
    "ParsedMessage",
    "RESERVED_PREFIXES",
    "compute_delta",
    "extract_routing_context",
    "format_spam_status",
    "get_sender_ip",
    "parse_header_addr",
    "parse_message",
    "render_message",
    "synthesize_headers",
]
