# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Classification client: submit a message to rspamd and decode the verdict."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import requests
from pydantic import ValidationError

from .client import APIClient
from .errors import ClassificationError
from .verdict import ClassificationVerdict

logger = logging.getLogger(__name__)

CHECK_PATH = "/rspamc/checkv2"

# Delivered mail is always older than the scan; the date skew rule would fire on every rescan.
DISABLED_SYMBOLS = ("DATE_IN_PAST",)


@dataclass(frozen=True)
class RoutingContext:
    """Per-message routing facts sent with the classification request.

    Attributes:
        from_addr: Sender address from the From header.
        rcpt_addr: Recipient address from the To header.
        delivered_to: Final delivery address from Delivered-To.
        sender_ip: IPv4 address of the relay that handed the message over.
    """

    from_addr: str
    rcpt_addr: str
    delivered_to: str
    sender_ip: str


class ClassificationClient:
    """Client for the rspamd ``checkv2`` endpoint behind the management API."""

    def __init__(self, api: APIClient, hostname: str):
        self._api = api
        self._hostname = hostname

    def request_headers(self, context: RoutingContext) -> dict[str, str]:
        """Build the rspamd request headers for a message."""
        return {
            "settings": json.dumps({"symbols_disabled": list(DISABLED_SYMBOLS)}),
            "IP": context.sender_ip,
            "From": context.from_addr,
            "Rcpt": context.rcpt_addr,
            "Deliver-To": context.delivered_to,
            "Hostname": self._hostname,
        }

    def classify(self, content: bytes, context: RoutingContext) -> ClassificationVerdict:
        """Classify a raw message.

        Args:
            content: The message exactly as stored.
            context: Routing facts extracted from the message headers.

        Returns:
            The decoded verdict.

        Raises:
            ClassificationError: On transport failure, non-success status or
                an undecodable response.
        """
        try:
            payload = self._api.post(CHECK_PATH, content, headers=self.request_headers(context))
        except requests.RequestException as exc:
            raise ClassificationError(f"request failed: {exc}") from exc
        except ValueError as exc:
            raise ClassificationError(f"failed decoding JSON response: {exc}") from exc

        try:
            verdict = ClassificationVerdict.model_validate(payload)
        except ValidationError as exc:
            raise ClassificationError(f"failed decoding verdict: {exc}") from exc

        for name in verdict.milter.remove_headers:
            logger.debug("remove: %s", name)
        for name, value in verdict.additions():
            logger.debug("add: %s %s", name, value)
        return verdict


__all__ = ["CHECK_PATH", "ClassificationClient", "RoutingContext"]
