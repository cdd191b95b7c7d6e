# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Sender reputation lookup through a DNS score zone.

The sender's IPv4 octets are reversed and prefixed to the score zone,
``1.2.3.4`` becoming ``4.3.2.1.score.senderscore.com``. The last octet of
the returned A record is the score.
"""

from __future__ import annotations

import ipaddress
import logging

import dns.exception
import dns.resolver

from .config import DEFAULT_REPUTATION_DOMAIN
from .errors import ReputationError

logger = logging.getLogger(__name__)


def lookup_name(ip: str, domain: str = DEFAULT_REPUTATION_DOMAIN) -> str:
    """Build the DNS name queried for ``ip``.

    Raises:
        ReputationError: If ``ip`` is not an IPv4 address.
    """
    try:
        address = ipaddress.ip_address(ip)
    except ValueError as exc:
        raise ReputationError(f"invalid sender address: {ip!r}") from exc
    if address.version != 4:
        raise ReputationError(f"sender score lookup supports IPv4 only: {ip}")
    octets = str(address).split(".")
    return ".".join(reversed(octets)) + "." + domain.strip(".")


class ReputationResolver:
    """Resolve sender scores with dnspython."""

    def __init__(
        self,
        domain: str = DEFAULT_REPUTATION_DOMAIN,
        timeout: float = 5.0,
        resolver: dns.resolver.Resolver | None = None,
    ):
        self.domain = domain
        self._resolver = resolver or dns.resolver.Resolver()
        self._resolver.lifetime = timeout

    def reputation(self, ip: str) -> int:
        """Return the 0-255 score for ``ip``.

        When several A records come back the last one enumerated wins.

        Raises:
            ReputationError: On lookup failure or an empty answer.
        """
        name = lookup_name(ip, self.domain)
        try:
            answer = self._resolver.resolve(name, "A")
        except dns.exception.DNSException as exc:
            raise ReputationError(f"DNS query failed for {name}: {exc}") from exc

        score = None
        for record in answer:
            score = int(str(record.address).rsplit(".", 1)[-1])
        if score is None:
            raise ReputationError(f"DNS query returned no addresses for {name}")

        logger.debug("senderScore for %s is %d", ip, score)
        return score


__all__ = ["ReputationResolver", "lookup_name"]
