# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Rescan session: configuration plus the external clients it needs.

The session replaces process-wide settings and client handles. Clients are
created on first use through ``_acquire()``, which holds a lock so a handle
is never built or handed out concurrently.

Example:
    >>> with RescanSession(load_settings()) as session:
    ...     result = rescan(session, "alice@example.com", "/INBOX")
"""

from __future__ import annotations

import threading
from typing import Callable, TypeVar

from .classifier import ClassificationClient
from .client import APIClient
from .config import RescanConfig
from .filterctl import FilterctlClient
from .reputation import ReputationResolver

T = TypeVar("T")


class RescanSession:
    """Holds configuration and lazily created clients for a rescan batch.

    Attributes:
        config: The RescanConfig in effect.
    """

    def __init__(
        self,
        config: RescanConfig | None = None,
        api: APIClient | None = None,
        classifier: ClassificationClient | None = None,
        reputation: ReputationResolver | None = None,
        filterctl: FilterctlClient | None = None,
    ):
        """Initialize the session.

        Args:
            config: Settings; defaults to ``RescanConfig()``.
            api: Preconfigured management API client.
            classifier: Classification client override.
            reputation: Reputation resolver override.
            filterctl: Address book / class client override.
        """
        self.config = config or RescanConfig()
        self._lock = threading.RLock()
        self._clients: dict[str, object] = {}
        for name, client in (
            ("api", api),
            ("classifier", classifier),
            ("reputation", reputation),
            ("filterctl", filterctl),
        ):
            if client is not None:
                self._clients[name] = client

    def _acquire(self, name: str, factory: Callable[[], T]) -> T:
        with self._lock:
            client = self._clients.get(name)
            if client is None:
                client = factory()
                self._clients[name] = client
            return client  # type: ignore[return-value]

    def _api(self) -> APIClient:
        return self._acquire("api", lambda: APIClient.from_config(self.config.api))

    def classifier(self) -> ClassificationClient:
        """Classification client bound to the management API."""
        return self._acquire("classifier", lambda: ClassificationClient(self._api(), self.config.rewrite.hostname))

    def reputation(self) -> ReputationResolver:
        """Sender score resolver."""
        return self._acquire(
            "reputation",
            lambda: ReputationResolver(self.config.reputation.domain, self.config.reputation.timeout),
        )

    def filterctl(self) -> FilterctlClient:
        """Address book and spam class client shared by the batch."""
        return self._acquire("filterctl", lambda: FilterctlClient(self._api()))

    def close(self) -> None:
        with self._lock:
            api = self._clients.pop("api", None)
            self._clients.clear()
        if isinstance(api, APIClient):
            api.close()

    def __enter__(self) -> RescanSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["RescanSession"]
