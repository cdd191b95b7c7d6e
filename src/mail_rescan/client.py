# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""HTTP client for the mail queue management API.

The management API fronts both rspamd (``/rspamc/...``) and the filterctl
address book service (``/filterctl/...``). Requests authenticate with a
client certificate.

Example:
    >>> client = APIClient("https://mailqueue:2016", cert="client.pem", key="client.key")
    >>> client.get("/filterctl/scan/alice@example.com/bob@example.org/")
    {'Success': True, 'Books': ['friends'], ...}
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from .config import ApiConfig

logger = logging.getLogger(__name__)


class APIClient:
    """Thin ``requests`` wrapper for the management API.

    Attributes:
        url: Base URL without trailing slash.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        url: str,
        cert: str | None = None,
        key: str | None = None,
        ca: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        """Initialize the client.

        Args:
            url: Base URL of the management API.
            cert: Client certificate file.
            key: Client private key file.
            ca: CA bundle used to verify the server; None uses system roots.
            timeout: Per-request timeout in seconds.
            session: Preconfigured session (tests inject a mock).
        """
        self.url = url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        if cert and key:
            self._session.cert = (cert, key)
        elif cert:
            self._session.cert = cert
        if ca:
            self._session.verify = ca

    @classmethod
    def from_config(cls, config: ApiConfig) -> APIClient:
        return cls(config.server_url, cert=config.cert, key=config.key, ca=config.ca, timeout=config.timeout)

    def request(
        self,
        method: str,
        path: str,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and decode the JSON response.

        Raises:
            requests.RequestException: On transport failure or non-2xx status.
            ValueError: If the body is not JSON.
        """
        url = f"{self.url}{path}"
        logger.debug("<-- %s %s", method, url)
        resp = self._session.request(method, url, data=data, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        logger.debug("--> [%d] %s", resp.status_code, resp.text)
        return resp.json()

    def get(self, path: str) -> Any:
        """Make a GET request."""
        return self.request("GET", path)

    def post(self, path: str, data: bytes, headers: dict[str, str] | None = None) -> Any:
        """Make a POST request with a raw body."""
        return self.request("POST", path, data=data, headers=headers)

    def close(self) -> None:
        self._session.close()


__all__ = ["APIClient"]
