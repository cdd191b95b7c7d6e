# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Address book and spam class lookups through the filterctl API.

Endpoints::

    GET /filterctl/scan/<user>/<address>/   -> {"Success": true, "Books": [...]}
    GET /filterctl/class/<user>/<score>/    -> {"Success": true, "Class": "spam"}
"""

from __future__ import annotations

import logging
import re
from typing import Any

import requests

from .client import APIClient
from .errors import CollaboratorError

logger = logging.getLogger(__name__)

ADDR_PATTERN = re.compile(r"^.*<([^>]*)>.*$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email_address(address: str) -> str:
    """Return the bare address, unwrapping ``Name <addr>`` forms.

    Raises:
        CollaboratorError: If no valid address can be found.
    """
    if "<" in address:
        match = ADDR_PATTERN.match(address)
        if not match:
            raise CollaboratorError(f"failed parsing address from: {address!r}")
        address = match.group(1)
    if not EMAIL_PATTERN.match(address):
        raise CollaboratorError(f"invalid address: {address!r}")
    return address


class FilterctlClient:
    """Address book membership and spam class lookups."""

    def __init__(self, api: APIClient):
        self._api = api

    def _get(self, path: str) -> dict[str, Any]:
        try:
            response = self._api.get(path)
        except (requests.RequestException, ValueError) as exc:
            raise CollaboratorError(f"request failed: {exc}") from exc
        if not isinstance(response, dict) or not response.get("Success"):
            message = response.get("Message") if isinstance(response, dict) else response
            raise CollaboratorError(f"scan request failed: {message}")
        return response

    def scan_address_books(self, username: str, address: str) -> list[str]:
        """Names of the user's address books containing ``address``."""
        username = validate_email_address(username)
        address = validate_email_address(address)
        response = self._get(f"/filterctl/scan/{username}/{address}/")
        books = [str(book) for book in response.get("Books") or []]
        logger.debug("scan_address_books: user=%s from=%s books=%s", username, address, books)
        return books

    def scan_class(self, username: str, score: float) -> str:
        """Spam class the user's thresholds assign to ``score``."""
        username = validate_email_address(username)
        response = self._get(f"/filterctl/class/{username}/{score:.4f}/")
        spam_class = response.get("Class")
        if not spam_class:
            raise CollaboratorError(f"class response missing Class for {username}")
        logger.debug("scan_class: user=%s score=%.4f class=%s", username, score, spam_class)
        return str(spam_class)


__all__ = ["FilterctlClient", "validate_email_address"]
